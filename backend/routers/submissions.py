# routers/submissions.py — Founder pitches: create, list, detail, review and AI analysis
import logging
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

import ai_analysis
import lifecycle
from auth import get_current_user, require_founder, require_board, CurrentUser
from database import get_db_session
from errors import ServiceUnavailable
from models import Submission, User
from policy import Action, list_scope
from presenters import SubmissionOut, SubmissionDetailOut, submission_to_out

logger = logging.getLogger("partner.submissions")

router = APIRouter(prefix="/api/v1/submissions", tags=["Submissions"])

ALL = "all"


# ============================================================
# SCHEMAS
# ============================================================

class SubmissionCreate(BaseModel):
    company_name: str = Field(..., max_length=200)
    one_liner: str = Field(..., max_length=500)
    industry: str = Field(..., max_length=100)
    stage: str = Field(..., max_length=100)
    problem: str
    solution: str
    traction: str
    looking_for: Union[List[str], str]
    team_size: Optional[str] = None
    website: Optional[str] = None
    funding_target: Optional[str] = None
    additional_notes: Optional[str] = None

    @field_validator("company_name", "one_liner", "industry", "stage", "problem", "solution", "traction")
    @classmethod
    def required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Required fields are missing")
        return v

    @field_validator("looking_for")
    @classmethod
    def validate_looking_for(cls, v) -> List[str]:
        items = lifecycle.normalize_looking_for(v)
        if not items:
            raise ValueError("Select at least one thing you are looking for")
        return items


class StatusUpdate(BaseModel):
    status: Any = None


class RatingUpdate(BaseModel):
    rating: Any = None


class AnalysisOut(BaseModel):
    submission_id: str
    analysis: dict


# ============================================================
# ENDPOINTS
# ============================================================

@router.post("", response_model=SubmissionDetailOut, status_code=201)
async def create_submission(
    data: SubmissionCreate,
    user: CurrentUser = Depends(require_founder),
    db: AsyncSession = Depends(get_db_session),
):
    """Submit a company profile for board review"""
    sub = Submission(
        user_id=user.id,
        company_name=data.company_name,
        one_liner=data.one_liner,
        industry=data.industry,
        stage=data.stage,
        team_size=data.team_size or None,
        website=data.website or None,
        problem=data.problem,
        solution=data.solution,
        traction=data.traction,
        looking_for=data.looking_for,
        funding_target=data.funding_target or None,
        additional_notes=data.additional_notes or None,
        status=lifecycle.INITIAL_STATUS,
    )
    db.add(sub)
    await db.commit()
    await db.refresh(sub)
    logger.info(f"Founder {user.id} submitted {sub.id} ({sub.company_name})")

    facts = await lifecycle.facts_for(db, sub, user.actor)
    return await submission_to_out(db, sub, user.actor, facts, founder_name=user.name, detail=True)


@router.get("", response_model=List[SubmissionOut])
async def list_submissions(
    status: Optional[str] = Query(None),
    industry: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """List submissions; founders only ever see their own"""
    actor = user.actor
    stmt = select(Submission, User.name).join(User, User.id == Submission.user_id)

    # Role scoping first, then the caller's filters
    owner_id = list_scope(actor)
    if owner_id is not None:
        stmt = stmt.where(Submission.user_id == owner_id)

    if status and status != ALL:
        stmt = stmt.where(Submission.status == lifecycle.parse_status(status))
    if industry and industry != ALL:
        stmt = stmt.where(Submission.industry == industry)
    if search:
        term = f"%{search.strip()}%"
        stmt = stmt.where(or_(
            Submission.company_name.ilike(term),
            Submission.one_liner.ilike(term),
            Submission.industry.ilike(term),
        ))

    stmt = stmt.order_by(Submission.submitted_at.desc())
    result = await db.execute(stmt)

    out = []
    for sub, founder_name in result.all():
        facts = await lifecycle.facts_for(db, sub, actor)
        out.append(await submission_to_out(db, sub, actor, facts, founder_name=founder_name))
    return out


@router.get("/{submission_id}", response_model=SubmissionDetailOut)
async def get_submission(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Submission with notes, tags, chat and partners as the caller may see them"""
    sub, facts = await lifecycle.load_authorized(db, submission_id, user.actor, Action.READ_SUBMISSION)
    return await submission_to_out(db, sub, user.actor, facts, detail=True)


@router.patch("/{submission_id}/status", response_model=SubmissionDetailOut)
async def update_status(
    submission_id: str,
    data: StatusUpdate,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Move a submission to any of the five review states"""
    sub = await lifecycle.change_status(db, submission_id, user.actor, data.status)
    facts = await lifecycle.facts_for(db, sub, user.actor)
    return await submission_to_out(db, sub, user.actor, facts, detail=True)


@router.patch("/{submission_id}/rating", response_model=SubmissionDetailOut)
async def update_rating(
    submission_id: str,
    data: RatingUpdate,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Set the 1-5 board rating (overwrites any previous rating)"""
    sub = await lifecycle.change_rating(db, submission_id, user.actor, data.rating)
    facts = await lifecycle.facts_for(db, sub, user.actor)
    return await submission_to_out(db, sub, user.actor, facts, detail=True)


@router.post("/{submission_id}/analysis", response_model=AnalysisOut)
async def run_analysis(
    submission_id: str,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Generate and store a structured AI analysis of the submission"""
    sub, _ = await lifecycle.load_authorized(db, submission_id, user.actor, Action.ANNOTATE)
    if not ai_analysis.is_enabled():
        raise ServiceUnavailable("AI analysis is not configured")

    analysis = await ai_analysis.analyze_submission(sub)
    if analysis is None:
        raise ServiceUnavailable("AI analysis failed, please try again")

    sub.ai_analysis = analysis
    await db.commit()
    logger.info(f"Stored AI analysis for {sub.id} requested by {user.id}")
    return AnalysisOut(submission_id=sub.id, analysis=analysis)
