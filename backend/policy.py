# policy.py — Visibility policy
# Single decision point for who may read or write submission data.
# Pure functions: no I/O, no database access; callers load the facts first.

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import Forbidden
from models import UserRole, PartnershipStatus


class Action(str, Enum):
    READ_SUBMISSION = "submission:read"
    READ_NOTES = "notes:read"
    READ_CHAT = "chat:read"
    POST_CHAT = "chat:post"
    REVIEW = "submission:review"            # status and rating writes
    ANNOTATE = "submission:annotate"        # notes, tags, meeting requests, AI analysis
    READ_PARTNERS = "partners:read"
    CLAIM_PARTNERSHIP = "partnership:claim"
    RESPOND_PARTNERSHIP = "partnership:respond"
    PARTNER_WORKSPACE = "partnership:workspace"  # partnership chat and shared links


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


@dataclass(frozen=True)
class SubmissionFacts:
    """What the policy needs to know about a submission, relative to one actor."""
    owner_id: str
    actor_partnership_status: Optional[str] = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def role_satisfies(actual: str, required: str) -> bool:
    """Admin is a superset of every other role; otherwise roles must match exactly."""
    actual_role = UserRole(actual)
    if actual_role == UserRole.ADMIN:
        return True
    return actual_role == UserRole(required)


def is_reviewer(actor: Actor) -> bool:
    return role_satisfies(actor.role, UserRole.BOARD.value)


def is_owner(actor: Actor, facts: SubmissionFacts) -> bool:
    return actor.id == facts.owner_id


def decide(actor: Actor, action: Action, facts: SubmissionFacts) -> Decision:
    owner = is_owner(actor, facts)
    reviewer = is_reviewer(actor)

    if action in (Action.READ_SUBMISSION, Action.READ_NOTES, Action.READ_CHAT,
                  Action.POST_CHAT, Action.READ_PARTNERS):
        if reviewer or owner:
            return ALLOW
        return Decision(False, "Access denied")

    if action in (Action.REVIEW, Action.ANNOTATE, Action.CLAIM_PARTNERSHIP):
        if reviewer:
            return ALLOW
        return Decision(False, "Access restricted to board members")

    if action == Action.RESPOND_PARTNERSHIP:
        if owner:
            return ALLOW
        return Decision(False, "Only the founder of this submission can respond")

    if action == Action.PARTNER_WORKSPACE:
        if owner or facts.actor_partnership_status == PartnershipStatus.ACCEPTED.value:
            return ALLOW
        return Decision(False, "Partnership workspace requires an accepted partnership")

    return Decision(False, f"Unknown action: {action}")


def authorize(actor: Actor, action: Action, facts: SubmissionFacts) -> None:
    decision = decide(actor, action, facts)
    if not decision:
        raise Forbidden(decision.reason)


def list_scope(actor: Actor) -> Optional[str]:
    """Owner id a submission listing must be restricted to, or None for all."""
    if is_reviewer(actor):
        return None
    return actor.id


def note_visible(actor: Actor, facts: SubmissionFacts, founder_visible: bool) -> bool:
    if is_reviewer(actor):
        return True
    return is_owner(actor, facts) and bool(founder_visible)
