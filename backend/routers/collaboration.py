# routers/collaboration.py — Board notes, member tags and the discussion chat on a submission
# Notes: board-authored, founder sees only founder_visible ones. Tags: idempotent.
# Chat: board plus the owning founder, oldest first.
import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import lifecycle
from auth import get_current_user, require_board, CurrentUser
from database import get_db_session
from errors import NotFound, ValidationError
from models import BoardNote, TaggedMember, ChatMessage, User, UserRole
from policy import Action
from presenters import (
    NoteOut, TaggedMemberOut, ChatMessageOut,
    note_to_out, chat_to_out, load_notes, load_tagged, load_chat,
)

logger = logging.getLogger("partner.collaboration")

router = APIRouter(prefix="/api/v1/submissions", tags=["Collaboration"])

REVIEWER_ROLES = (UserRole.BOARD, UserRole.ADMIN)


class NoteCreate(BaseModel):
    text: str = ""
    founder_visible: bool = False


class TagCreate(BaseModel):
    user_id: str


class ChatCreate(BaseModel):
    text: str = ""


def require_text(text: str, what: str) -> str:
    text = (text or "").strip()
    if not text:
        raise ValidationError(f"{what} cannot be empty")
    return text


# ============================================================
# NOTES
# ============================================================

@router.get("/{submission_id}/notes", response_model=List[NoteOut])
async def list_notes(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    _, facts = await lifecycle.load_authorized(db, submission_id, user.actor, Action.READ_NOTES)
    return await load_notes(db, submission_id, user.actor, facts)


@router.post("/{submission_id}/notes", response_model=NoteOut, status_code=201)
async def add_note(
    submission_id: str,
    data: NoteCreate,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Add a board note; founder_visible is fixed at creation"""
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.ANNOTATE)
    note = BoardNote(
        submission_id=submission_id,
        user_id=user.id,
        text=require_text(data.text, "Note"),
        founder_visible=data.founder_visible,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note_to_out(note, user.name)


# ============================================================
# TAGS
# ============================================================

@router.post("/{submission_id}/tag", response_model=List[TaggedMemberOut])
async def tag_member(
    submission_id: str,
    data: TagCreate,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Flag a board member on a submission; tagging twice is a no-op"""
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.ANNOTATE)

    member = await db.get(User, data.user_id)
    if member is None or member.role not in REVIEWER_ROLES:
        raise NotFound("Board member not found")

    existing = await db.execute(
        select(TaggedMember.id).where(
            TaggedMember.submission_id == submission_id,
            TaggedMember.user_id == data.user_id,
        )
    )
    if existing.scalar_one_or_none() is None:
        db.add(TaggedMember(submission_id=submission_id, user_id=data.user_id, tagged_by=user.id))
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with an identical tag; the pair exists either way
            await db.rollback()
        else:
            logger.info(f"{user.id} tagged {data.user_id} on {submission_id}")

    return await load_tagged(db, submission_id)


@router.delete("/{submission_id}/tag/{member_id}", response_model=List[TaggedMemberOut])
async def untag_member(
    submission_id: str,
    member_id: str,
    user: CurrentUser = Depends(require_board),
    db: AsyncSession = Depends(get_db_session),
):
    """Remove a tag; removing an absent tag is a no-op"""
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.ANNOTATE)
    await db.execute(
        delete(TaggedMember).where(
            TaggedMember.submission_id == submission_id,
            TaggedMember.user_id == member_id,
        )
    )
    await db.commit()
    return await load_tagged(db, submission_id)


# ============================================================
# DISCUSSION CHAT
# ============================================================

@router.get("/{submission_id}/chat", response_model=List[ChatMessageOut])
async def list_chat(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.READ_CHAT)
    return await load_chat(db, submission_id)


@router.post("/{submission_id}/chat", response_model=ChatMessageOut, status_code=201)
async def post_chat(
    submission_id: str,
    data: ChatCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.POST_CHAT)
    msg = ChatMessage(
        submission_id=submission_id,
        user_id=user.id,
        text=require_text(data.text, "Message"),
    )
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    return chat_to_out(msg, user.name, user.role)
