# lifecycle.py — Submission lifecycle
# Status moves freely between the five states; the only rule is membership in
# the valid set. Rating is an independent 1-5 integer with overwrite semantics.
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import mailer
import notifier
from errors import NotFound, ValidationError
from models import (
    Submission, SubmissionStatus, Partnership, PartnershipStatus, User, AuditLog, AuditEventType,
    NotificationType,
)
from policy import Action, Actor, SubmissionFacts, authorize

logger = logging.getLogger("partner.lifecycle")

VALID_STATUSES = tuple(s.value for s in SubmissionStatus)
INITIAL_STATUS = SubmissionStatus.NEW
MIN_RATING = 1
MAX_RATING = 5


def parse_status(value: Any) -> SubmissionStatus:
    try:
        return SubmissionStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")


def parse_rating(value: Any) -> int:
    # bool is an int subclass; 4.5, inf and nan are not whole ratings
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}")
    rating = int(value)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def status_value(status) -> str:
    return status.value if isinstance(status, SubmissionStatus) else status


async def get_submission(db: AsyncSession, submission_id: str) -> Submission:
    result = await db.execute(select(Submission).where(Submission.id == submission_id))
    submission = result.scalar_one_or_none()
    if not submission:
        raise NotFound("Submission not found")
    return submission


async def facts_for(db: AsyncSession, submission: Submission, actor: Actor) -> SubmissionFacts:
    """Collect what the visibility policy needs about this submission for this actor."""
    result = await db.execute(
        select(Partnership.status).where(
            Partnership.submission_id == submission.id,
            Partnership.user_id == actor.id,
        )
    )
    status = result.scalar_one_or_none()
    return SubmissionFacts(
        owner_id=submission.user_id,
        actor_partnership_status=status.value if isinstance(status, PartnershipStatus) else status,
    )


async def load_authorized(db: AsyncSession, submission_id: str, actor: Actor, action: Action):
    """Existence check first (404), then the policy (403)."""
    submission = await get_submission(db, submission_id)
    facts = await facts_for(db, submission, actor)
    authorize(actor, action, facts)
    return submission, facts


async def change_status(db: AsyncSession, submission_id: str, actor: Actor, value: Any) -> Submission:
    submission, _ = await load_authorized(db, submission_id, actor, Action.REVIEW)
    new_status = parse_status(value)

    previous = status_value(submission.status)
    submission.status = new_status
    db.add(AuditLog(
        event_type=AuditEventType.SUBMISSION_STATUS_CHANGED,
        user_id=actor.id,
        resource_type="submission",
        resource_id=submission.id,
        details={"old_status": previous, "new_status": new_status.value},
    ))
    await db.commit()
    await db.refresh(submission)
    logger.info(f"Submission {submission.id} status {previous} -> {new_status.value} by {actor.id}")

    founder = await db.get(User, submission.user_id)
    if founder is not None:
        await notifier.notify(
            db, founder, NotificationType.STATUS_CHANGE,
            mailer.status_change_email(founder.name, submission.company_name, new_status.value),
        )
    return submission


async def change_rating(db: AsyncSession, submission_id: str, actor: Actor, value: Any) -> Submission:
    submission, _ = await load_authorized(db, submission_id, actor, Action.REVIEW)
    rating = parse_rating(value)

    submission.rating = rating
    db.add(AuditLog(
        event_type=AuditEventType.SUBMISSION_RATED,
        user_id=actor.id,
        resource_type="submission",
        resource_id=submission.id,
        details={"rating": rating},
    ))
    await db.commit()
    await db.refresh(submission)
    return submission


def normalize_looking_for(value: Optional[Any]) -> list:
    """Accept a list or a comma-separated string; keep order, drop blanks."""
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [str(item).strip() for item in items if str(item).strip()]
