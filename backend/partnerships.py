# partnerships.py — Partnership allocator
# - At most 3 pending/accepted partnerships per submission, re-checked on every claim
# - At most one partnership row per (submission, board member), whatever its status
# - pending -> accepted | declined, once, by the submission's founder only
# - Withdrawal deletes a pending row; declined rows stay and block re-claiming
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from sqlalchemy import select, func, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import mailer
import notifier
from errors import NotFound, Conflict, ResourceExhausted, ValidationError
from models import (
    Submission, Partnership, PartnershipStatus, User, AuditLog, AuditEventType,
    NotificationType, utcnow,
)
from policy import Action, Actor, authorize
from lifecycle import facts_for
from telemetry import span

logger = logging.getLogger("partner.partnerships")

MAX_ACTIVE_PARTNERS = 3
ACTIVE_STATUSES = (PartnershipStatus.PENDING, PartnershipStatus.ACCEPTED)
RESPONSES = (PartnershipStatus.ACCEPTED, PartnershipStatus.DECLINED)

# Per-submission claim locks for this process; the submission row lock
# (SELECT ... FOR UPDATE) serialises claims across processes on PostgreSQL.
# An entry lives only while some claim holds or awaits it.
_claim_locks: Dict[str, asyncio.Lock] = {}
_claim_lock_users: Dict[str, int] = {}


@asynccontextmanager
async def _submission_claim_lock(submission_id: str):
    lock = _claim_locks.setdefault(submission_id, asyncio.Lock())
    _claim_lock_users[submission_id] = _claim_lock_users.get(submission_id, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _claim_lock_users[submission_id] -= 1
        if not _claim_lock_users[submission_id]:
            del _claim_lock_users[submission_id]
            del _claim_locks[submission_id]


def partnership_status(p: Partnership) -> str:
    return p.status.value if isinstance(p.status, PartnershipStatus) else p.status


async def count_active(db: AsyncSession, submission_id: str) -> int:
    result = await db.execute(
        select(func.count(Partnership.id)).where(
            Partnership.submission_id == submission_id,
            Partnership.status.in_(ACTIVE_STATUSES),
        )
    )
    return result.scalar() or 0


async def claim(db: AsyncSession, submission_id: str, actor: Actor) -> Partnership:
    with span("partnership.claim", submission_id=submission_id, user_id=actor.id):
        partnership, submission = await _claim_locked(db, submission_id, actor)

    await db.refresh(partnership)
    logger.info(f"Board member {actor.id} claimed a partner slot on {submission_id}")

    founder = await db.get(User, submission.user_id)
    claimant = await db.get(User, actor.id)
    if founder is not None and claimant is not None:
        await notifier.notify(
            db, founder, NotificationType.PARTNER_REQUEST,
            mailer.partner_request_email(founder.name, claimant.name, claimant.specialty, submission.company_name),
        )
    return partnership


async def _claim_locked(db: AsyncSession, submission_id: str, actor: Actor):
    """Cap check and insert as one critical section."""
    async with _submission_claim_lock(submission_id):
        result = await db.execute(
            select(Submission).where(Submission.id == submission_id).with_for_update()
        )
        submission = result.scalar_one_or_none()
        if not submission:
            raise NotFound("Submission not found")
        authorize(actor, Action.CLAIM_PARTNERSHIP, await facts_for(db, submission, actor))

        existing = await db.execute(
            select(Partnership.id).where(
                Partnership.submission_id == submission_id,
                Partnership.user_id == actor.id,
            )
        )
        if existing.scalar_one_or_none():
            await db.rollback()
            raise Conflict("You already have a partner request on this submission")

        if await count_active(db, submission_id) >= MAX_ACTIVE_PARTNERS:
            await db.rollback()
            raise ResourceExhausted(
                f"This submission already has the maximum of {MAX_ACTIVE_PARTNERS} partners"
            )

        partnership = Partnership(
            submission_id=submission_id,
            user_id=actor.id,
            status=PartnershipStatus.PENDING,
        )
        db.add(partnership)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise Conflict("You already have a partner request on this submission")
        return partnership, submission


async def respond(db: AsyncSession, partnership_id: str, actor: Actor, decision: Any) -> Partnership:
    partnership = await db.get(Partnership, partnership_id)
    if partnership is None:
        raise NotFound("Partnership not found")
    submission = await db.get(Submission, partnership.submission_id)
    if submission is None:
        raise NotFound("Submission not found")
    authorize(actor, Action.RESPOND_PARTNERSHIP, await facts_for(db, submission, actor))

    try:
        new_status = PartnershipStatus(decision)
    except ValueError:
        new_status = None
    if new_status not in RESPONSES:
        raise ValidationError("Decision must be 'accepted' or 'declined'")

    # Conditional update: only a still-pending row can be resolved
    result = await db.execute(
        update(Partnership)
        .where(Partnership.id == partnership_id, Partnership.status == PartnershipStatus.PENDING)
        .values(status=new_status, responded_at=utcnow())
    )
    if result.rowcount != 1:
        await db.rollback()
        raise Conflict("This partner request has already been responded to")

    db.add(AuditLog(
        event_type=AuditEventType.PARTNERSHIP_RESPONDED,
        user_id=actor.id,
        resource_type="partnership",
        resource_id=partnership_id,
        details={"status": new_status.value, "claimant_id": partnership.user_id},
    ))
    await db.commit()
    await db.refresh(partnership)

    claimant = await db.get(User, partnership.user_id)
    founder = await db.get(User, submission.user_id)
    if claimant is not None and founder is not None:
        await notifier.notify(
            db, claimant, NotificationType.PARTNER_RESPONSE,
            mailer.partner_response_email(
                claimant.name, founder.name, submission.company_name,
                new_status == PartnershipStatus.ACCEPTED,
            ),
        )
    return partnership


async def withdraw(db: AsyncSession, submission_id: str, actor: Actor) -> None:
    result = await db.execute(
        delete(Partnership).where(
            Partnership.submission_id == submission_id,
            Partnership.user_id == actor.id,
            Partnership.status == PartnershipStatus.PENDING,
        )
    )
    if result.rowcount != 1:
        await db.rollback()
        # Callers cannot tell "never claimed" from "already resolved"
        raise ValidationError("No pending partner request to withdraw")
    await db.commit()
    logger.info(f"Board member {actor.id} withdrew a partner request on {submission_id}")
