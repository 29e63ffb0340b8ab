# routers/meetings.py — Board meeting requests
# A request is a point-in-time event (no status); it is mirrored into the
# discussion chat and e-mailed to the founder.
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import lifecycle
import mailer
import notifier
from auth import get_current_user, require_board, CurrentUser
from database import get_db_session
from models import MeetingRequest, ChatMessage, Submission, User, NotificationType
from policy import Action, is_reviewer
from presenters import MeetingOut, meeting_to_out, load_meetings

logger = logging.getLogger("partner.meetings")

router = APIRouter(prefix="/api/v1", tags=["Meetings"])

CHAT_PREFIX = "📅 Meeting requested"


class MeetingCreate(BaseModel):
    message: Optional[str] = Field(None, max_length=5000)


def meeting_chat_text(message: Optional[str]) -> str:
    return f"{CHAT_PREFIX}: {message}" if message else CHAT_PREFIX


@router.post("/submissions/{submission_id}/meeting", response_model=MeetingOut, status_code=201)
async def request_meeting(
    submission_id: str,
    data: MeetingCreate,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Ask the founder for a meeting"""
    sub, _ = await lifecycle.load_authorized(db, submission_id, user.actor, Action.ANNOTATE)
    message = (data.message or "").strip() or None

    meeting = MeetingRequest(submission_id=submission_id, user_id=user.id, message=message)
    db.add(meeting)
    db.add(ChatMessage(submission_id=submission_id, user_id=user.id, text=meeting_chat_text(message)))
    await db.commit()
    await db.refresh(meeting)
    logger.info(f"Board member {user.id} requested a meeting on {submission_id}")

    member = await db.get(User, user.id)
    founder = await db.get(User, sub.user_id)
    if founder is not None:
        await notifier.notify(
            db, founder, NotificationType.MEETING_REQUEST,
            mailer.meeting_request_email(founder.name, member.name, member.specialty, sub.company_name, message),
        )
    return meeting_to_out(meeting, member.name, member.specialty, sub.company_name)


@router.get("/submissions/{submission_id}/meetings", response_model=List[MeetingOut])
async def list_submission_meetings(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.READ_SUBMISSION)
    return await load_meetings(db, submission_id)


@router.get("/meetings", response_model=List[MeetingOut])
async def list_meetings(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Founders: requests on their submissions. Board: requests they made."""
    stmt = (
        select(MeetingRequest, User.name, User.specialty, Submission.company_name)
        .join(Submission, Submission.id == MeetingRequest.submission_id)
        .outerjoin(User, User.id == MeetingRequest.user_id)
    )
    if is_reviewer(user.actor):
        stmt = stmt.where(MeetingRequest.user_id == user.id)
    else:
        stmt = stmt.where(Submission.user_id == user.id)
    result = await db.execute(stmt.order_by(MeetingRequest.created_at.desc()))
    return [
        meeting_to_out(m, name, specialty, company_name)
        for m, name, specialty, company_name in result.all()
    ]
