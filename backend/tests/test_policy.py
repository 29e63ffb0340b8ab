# tests/test_policy.py — Visibility policy decision table (no HTTP, no DB)
import pytest

from errors import Forbidden
from policy import Action, Actor, SubmissionFacts, decide, authorize, list_scope, note_visible

OWNER = Actor(id="founder-1", role="founder")
STRANGER = Actor(id="founder-2", role="founder")
BOARD = Actor(id="board-1", role="board")
ADMIN = Actor(id="admin-1", role="admin")

FACTS = SubmissionFacts(owner_id="founder-1")

READS = (Action.READ_SUBMISSION, Action.READ_NOTES, Action.READ_CHAT, Action.POST_CHAT, Action.READ_PARTNERS)
REVIEW_WRITES = (Action.REVIEW, Action.ANNOTATE, Action.CLAIM_PARTNERSHIP)


@pytest.mark.parametrize("action", READS)
def test_reads_allowed_for_owner_and_reviewers(action):
    assert decide(OWNER, action, FACTS)
    assert decide(BOARD, action, FACTS)
    assert decide(ADMIN, action, FACTS)


@pytest.mark.parametrize("action", READS)
def test_reads_denied_for_other_founders(action):
    decision = decide(STRANGER, action, FACTS)
    assert not decision
    assert decision.reason == "Access denied"


@pytest.mark.parametrize("action", REVIEW_WRITES)
def test_review_writes_are_board_only(action):
    assert not decide(OWNER, action, FACTS)
    assert not decide(STRANGER, action, FACTS)
    assert decide(BOARD, action, FACTS)
    assert decide(ADMIN, action, FACTS)


def test_only_owner_responds_to_partnerships():
    assert decide(OWNER, Action.RESPOND_PARTNERSHIP, FACTS)
    assert not decide(STRANGER, Action.RESPOND_PARTNERSHIP, FACTS)
    assert not decide(BOARD, Action.RESPOND_PARTNERSHIP, FACTS)
    assert not decide(ADMIN, Action.RESPOND_PARTNERSHIP, FACTS)


def test_admin_owner_may_respond():
    admin_owned = SubmissionFacts(owner_id=ADMIN.id)
    assert decide(ADMIN, Action.RESPOND_PARTNERSHIP, admin_owned)


@pytest.mark.parametrize("status,allowed", [
    (None, False),
    ("pending", False),
    ("declined", False),
    ("accepted", True),
])
def test_workspace_requires_accepted_partnership(status, allowed):
    facts = SubmissionFacts(owner_id="founder-1", actor_partnership_status=status)
    assert bool(decide(BOARD, Action.PARTNER_WORKSPACE, facts)) is allowed


def test_workspace_open_to_owner_and_closed_to_strangers():
    assert decide(OWNER, Action.PARTNER_WORKSPACE, FACTS)
    assert not decide(STRANGER, Action.PARTNER_WORKSPACE, FACTS)
    # Admin gets no workspace access without an accepted partnership
    assert not decide(ADMIN, Action.PARTNER_WORKSPACE, FACTS)


def test_authorize_raises_forbidden_with_reason():
    with pytest.raises(Forbidden) as exc:
        authorize(STRANGER, Action.READ_SUBMISSION, FACTS)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Access denied"


def test_list_scope():
    assert list_scope(OWNER) == OWNER.id
    assert list_scope(STRANGER) == STRANGER.id
    assert list_scope(BOARD) is None
    assert list_scope(ADMIN) is None


def test_note_visibility():
    assert note_visible(BOARD, FACTS, founder_visible=False)
    assert note_visible(ADMIN, FACTS, founder_visible=False)
    assert note_visible(OWNER, FACTS, founder_visible=True)
    assert not note_visible(OWNER, FACTS, founder_visible=False)
    assert not note_visible(STRANGER, FACTS, founder_visible=True)
