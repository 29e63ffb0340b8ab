# routers/profile.py — Own profile and e-mail notification preferences
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser, UserOut, user_to_out
from database import get_db_session
from errors import NotFound, ValidationError
from models import User, NotificationPref, NotificationType
from patching import Patch, apply_patch
from policy import is_reviewer

logger = logging.getLogger("partner.profile")

router = APIRouter(prefix="/api/v1/profile", tags=["Profile"])

PROFILE_FIELDS = ("name", "bio", "linkedin", "website", "location")
REVIEWER_FIELDS = PROFILE_FIELDS + ("specialty",)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=5000)
    linkedin: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=200)
    specialty: Optional[str] = Field(None, max_length=200)


@router.put("", response_model=UserOut)
async def update_profile(
    data: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Partial update: absent fields are untouched, explicit null clears"""
    db_user = await db.get(User, user.id)
    if db_user is None:
        raise NotFound("User not found")

    patch = Patch.from_model(data)
    name = patch.get("name")
    if isinstance(name, str):
        name = name.strip()
        if not name:
            raise ValidationError("name cannot be empty")
        patch = Patch({**patch.values, "name": name})

    allowed = REVIEWER_FIELDS if is_reviewer(user.actor) else PROFILE_FIELDS
    changed = apply_patch(db_user, patch, allowed, non_nullable=("name",))
    await db.commit()
    await db.refresh(db_user)
    if changed:
        logger.info(f"Profile {user.id} updated: {', '.join(changed)}")
    return user_to_out(db_user)


async def _preferences(db: AsyncSession, user_id: str) -> Dict[str, bool]:
    result = await db.execute(select(NotificationPref).where(NotificationPref.user_id == user_id))
    stored = {pref.notif_type.value: pref.enabled for pref in result.scalars().all()}
    # No row means enabled
    return {t.value: stored.get(t.value, True) for t in NotificationType}


@router.get("/notifications")
async def get_notification_preferences(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await _preferences(db, user.id)


@router.put("/notifications")
async def update_notification_preferences(
    prefs: Dict[str, bool],
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Toggle individual notification types, e.g. {"status_change": false}"""
    if not prefs:
        raise ValidationError("No preferences to update")
    try:
        updates = {NotificationType(key): enabled for key, enabled in prefs.items()}
    except ValueError:
        valid = ", ".join(t.value for t in NotificationType)
        raise ValidationError(f"Unknown notification type. Must be one of: {valid}")

    result = await db.execute(select(NotificationPref).where(NotificationPref.user_id == user.id))
    existing = {pref.notif_type: pref for pref in result.scalars().all()}
    for notif_type, enabled in updates.items():
        if notif_type in existing:
            existing[notif_type].enabled = enabled
        else:
            db.add(NotificationPref(user_id=user.id, notif_type=notif_type, enabled=enabled))
    await db.commit()
    return await _preferences(db, user.id)
