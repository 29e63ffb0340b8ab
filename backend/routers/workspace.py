# routers/workspace.py — Private partnership workspace: partnership chat and shared links
# Open to the submission's founder and to board members with an accepted partnership.
from typing import List
from urllib.parse import urlparse

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

import lifecycle
from auth import get_current_user, CurrentUser
from database import get_db_session
from errors import ValidationError
from models import PartnershipMessage, SharedLink
from policy import Action
from presenters import (
    ChatMessageOut, SharedLinkOut, chat_to_out, link_to_out, load_partnership_chat, load_links,
)
from routers.collaboration import require_text

router = APIRouter(prefix="/api/v1/submissions", tags=["Partnership Workspace"])

ALLOWED_SCHEMES = ("http", "https")


class WorkspaceMessageCreate(BaseModel):
    text: str = ""


class SharedLinkCreate(BaseModel):
    title: str = Field("", max_length=300)
    url: str = Field("", max_length=2000)


def validate_url(url: str) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not parsed.netloc:
        raise ValidationError("URL must start with http:// or https://")
    return url


@router.get("/{submission_id}/partnership-chat", response_model=List[ChatMessageOut])
async def list_partnership_chat(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.PARTNER_WORKSPACE)
    return await load_partnership_chat(db, submission_id)


@router.post("/{submission_id}/partnership-chat", response_model=ChatMessageOut, status_code=201)
async def post_partnership_chat(
    submission_id: str,
    data: WorkspaceMessageCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.PARTNER_WORKSPACE)
    msg = PartnershipMessage(
        submission_id=submission_id,
        user_id=user.id,
        text=require_text(data.text, "Message"),
    )
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    return chat_to_out(msg, user.name, user.role)


@router.get("/{submission_id}/shared-links", response_model=List[SharedLinkOut])
async def list_shared_links(
    submission_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.PARTNER_WORKSPACE)
    return await load_links(db, submission_id)


@router.post("/{submission_id}/shared-links", response_model=SharedLinkOut, status_code=201)
async def add_shared_link(
    submission_id: str,
    data: SharedLinkCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    await lifecycle.load_authorized(db, submission_id, user.actor, Action.PARTNER_WORKSPACE)
    link = SharedLink(
        submission_id=submission_id,
        user_id=user.id,
        title=require_text(data.title, "Title"),
        url=validate_url(data.url),
    )
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link_to_out(link, user.name)
