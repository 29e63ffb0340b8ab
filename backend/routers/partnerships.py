# routers/partnerships.py — Partner slot claims, founder responses and withdrawals
from typing import Any, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import lifecycle
import partnerships
from auth import get_current_user, require_board, CurrentUser
from database import get_db_session
from models import Partnership, Submission, User
from policy import Action, is_reviewer
from presenters import PartnerOut, partner_to_out, load_partners

router = APIRouter(prefix="/api/v1", tags=["Partnerships"])


class PartnershipResponse(BaseModel):
    status: Any = None


async def _enriched(db: AsyncSession, p: Partnership) -> PartnerOut:
    claimant = await db.get(User, p.user_id)
    submission = await db.get(Submission, p.submission_id)
    return partner_to_out(
        p,
        claimant.name if claimant else None,
        claimant.specialty if claimant else None,
        submission.company_name if submission else None,
    )


@router.post("/submissions/{submission_id}/partner", response_model=PartnerOut, status_code=201)
async def claim_partnership(
    submission_id: str,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Claim one of the submission's three partner slots"""
    partnership = await partnerships.claim(db, submission_id, user.actor)
    return await _enriched(db, partnership)


@router.delete("/submissions/{submission_id}/partner")
async def withdraw_partnership(
    submission_id: str,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Withdraw a still-pending partner request"""
    await partnerships.withdraw(db, submission_id, user.actor)
    return {"status": "withdrawn", "submission_id": submission_id}


@router.get("/submissions/{submission_id}/partners", response_model=List[PartnerOut])
async def list_partners(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.READ_PARTNERS)
    return await load_partners(db, submission_id)


@router.get("/partnerships", response_model=List[PartnerOut])
async def list_partnerships(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Founders: requests on their submissions. Board: their own claims."""
    stmt = (
        select(Partnership, User.name, User.specialty, Submission.company_name)
        .join(Submission, Submission.id == Partnership.submission_id)
        .outerjoin(User, User.id == Partnership.user_id)
    )
    if is_reviewer(user.actor):
        stmt = stmt.where(Partnership.user_id == user.id)
    else:
        stmt = stmt.where(Submission.user_id == user.id)
    result = await db.execute(stmt.order_by(Partnership.created_at.desc()))
    return [
        partner_to_out(p, name, specialty, company_name)
        for p, name, specialty, company_name in result.all()
    ]


@router.patch("/partnerships/{partnership_id}", response_model=PartnerOut)
async def respond_to_partnership(
    partnership_id: str,
    data: PartnershipResponse,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Founder accepts or declines a pending request, once"""
    partnership = await partnerships.respond(db, partnership_id, user.actor, data.status)
    return await _enriched(db, partnership)
