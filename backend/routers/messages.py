# routers/messages.py — Inbox for admin-to-user messages
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from errors import NotFound
from models import AdminMessage, User, utcnow
from presenters import iso

router = APIRouter(prefix="/api/v1/messages", tags=["Messages"])


class MessageOut(BaseModel):
    id: str
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    recipient_id: str
    recipient_name: Optional[str] = None
    subject: str
    body: str
    created_at: Optional[str] = None
    read_at: Optional[str] = None
    is_read: bool


def message_to_out(m: AdminMessage, sender_name: Optional[str], recipient_name: Optional[str]) -> MessageOut:
    return MessageOut(
        id=m.id,
        sender_id=m.sender_id,
        sender_name=sender_name,
        recipient_id=m.recipient_id,
        recipient_name=recipient_name,
        subject=m.subject,
        body=m.body,
        created_at=iso(m.created_at),
        read_at=iso(m.read_at),
        is_read=m.read_at is not None,
    )


async def query_messages(db: AsyncSession, *where) -> List[MessageOut]:
    """Messages matching `where`, newest first, with both parties' names."""
    sender = aliased(User)
    recipient = aliased(User)
    stmt = (
        select(AdminMessage, sender.name, recipient.name)
        .outerjoin(sender, sender.id == AdminMessage.sender_id)
        .outerjoin(recipient, recipient.id == AdminMessage.recipient_id)
        .where(*where)
        .order_by(AdminMessage.created_at.desc())
    )
    result = await db.execute(stmt)
    return [message_to_out(m, s, r) for m, s, r in result.all()]


@router.get("", response_model=List[MessageOut])
async def inbox(
    unread_only: bool = Query(default=False),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    where = [AdminMessage.recipient_id == user.id]
    if unread_only:
        where.append(AdminMessage.read_at.is_(None))
    return await query_messages(db, *where)


@router.post("/{message_id}/read", response_model=MessageOut)
async def mark_read(
    message_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    msg = await db.get(AdminMessage, message_id)
    # Other users' messages are indistinguishable from missing ones
    if msg is None or msg.recipient_id != user.id:
        raise NotFound("Message not found")
    if msg.read_at is None:
        msg.read_at = utcnow()
        await db.commit()
        await db.refresh(msg)
    sender = await db.get(User, msg.sender_id) if msg.sender_id else None
    return message_to_out(msg, sender.name if sender else None, user.name)
