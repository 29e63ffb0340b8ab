# routers/admin.py — Admin console: board roster, invitations, platform settings,
# direct messages and the audit trail. Every endpoint requires the admin role.
import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

import mailer
import notifier
from auth import AuthService, UserOut, user_to_out, require_admin, CurrentUser, check_password_length
from database import get_db_session
from errors import Conflict, NotFound, ValidationError
from models import (
    User, UserRole, NotificationPref, NotificationType, TaggedMember, Partnership,
    BoardNote, ChatMessage, MeetingRequest, PartnershipMessage, SharedLink,
    PlatformSetting, Invitation, InvitationStatus, AdminMessage, AuditLog, AuditEventType, utcnow, new_uuid,
)
from presenters import iso
from routers.messages import MessageOut, message_to_out, query_messages

logger = logging.getLogger("partner.admin")

router = APIRouter(prefix="/api/v1/admin", tags=["Admin"])

INVITATION_TTL = timedelta(days=7)

# Authored content outlives its author; the author column is cleared instead
_AUTHORED_MODELS = (BoardNote, ChatMessage, MeetingRequest, PartnershipMessage, SharedLink)


# ============================================================
# SCHEMAS
# ============================================================

class BoardMemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str
    specialty: Optional[str] = Field(None, max_length=200)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_length(v)


class InvitationCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=200)
    specialty: Optional[str] = Field(None, max_length=200)


class InvitationOut(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    specialty: Optional[str] = None
    status: str
    invited_by: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    accepted_at: Optional[str] = None


class AdminMessageCreate(BaseModel):
    recipient_id: str
    subject: str = Field(..., max_length=300)
    body: str = Field(..., max_length=20000)


class AuditOut(BaseModel):
    id: str
    timestamp: Optional[str] = None
    event_type: str
    user_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


def _invitation_to_out(inv: Invitation) -> InvitationOut:
    return InvitationOut(
        id=inv.id,
        email=inv.email,
        name=inv.name,
        specialty=inv.specialty,
        status=inv.status.value if hasattr(inv.status, "value") else inv.status,
        invited_by=inv.invited_by,
        created_at=iso(inv.created_at),
        expires_at=iso(inv.expires_at),
        accepted_at=iso(inv.accepted_at),
    )


# ============================================================
# BOARD ROSTER
# ============================================================

@router.get("/board-members", response_model=List[UserOut])
async def list_board_members(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    result = await db.execute(
        select(User).where(User.role == UserRole.BOARD).order_by(User.created_at.asc())
    )
    return [user_to_out(u) for u in result.scalars().all()]


@router.post("/board-members", response_model=UserOut, status_code=201)
async def add_board_member(
    data: BoardMemberCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a board member account directly"""
    member = await AuthService.create_user(
        db, data.name, data.email, data.password, UserRole.BOARD, specialty=data.specialty,
    )
    db.add(AuditLog(
        event_type=AuditEventType.BOARD_MEMBER_ADDED,
        user_id=admin.id,
        resource_type="user",
        resource_id=member.id,
        details={"email": member.email},
    ))
    await db.commit()
    await db.refresh(member)
    logger.info(f"Admin {admin.id} added board member {member.id}")
    return user_to_out(member)


@router.delete("/board-members/{member_id}")
async def remove_board_member(
    member_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Remove a board member; their tags, claims and preferences go with them"""
    member = await db.get(User, member_id)
    if member is None or member.role != UserRole.BOARD:
        raise NotFound("Board member not found")

    await db.execute(delete(TaggedMember).where(TaggedMember.user_id == member_id))
    await db.execute(update(TaggedMember).where(TaggedMember.tagged_by == member_id).values(tagged_by=None))
    await db.execute(delete(Partnership).where(Partnership.user_id == member_id))
    await db.execute(delete(NotificationPref).where(NotificationPref.user_id == member_id))
    await db.execute(delete(AdminMessage).where(AdminMessage.recipient_id == member_id))
    for model in _AUTHORED_MODELS:
        await db.execute(update(model).where(model.user_id == member_id).values(user_id=None))
    await db.execute(update(Invitation).where(Invitation.invited_by == member_id).values(invited_by=None))
    await db.execute(update(PlatformSetting).where(PlatformSetting.updated_by == member_id).values(updated_by=None))

    await db.execute(delete(User).where(User.id == member_id))
    db.add(AuditLog(
        event_type=AuditEventType.BOARD_MEMBER_REMOVED,
        user_id=admin.id,
        resource_type="user",
        resource_id=member_id,
        details={"email": member.email},
    ))
    await db.commit()
    logger.info(f"Admin {admin.id} removed board member {member_id}")
    return {"status": "deleted", "user_id": member_id}


# ============================================================
# PLATFORM SETTINGS
# ============================================================

async def _settings(db: AsyncSession) -> Dict[str, Any]:
    result = await db.execute(select(PlatformSetting).order_by(PlatformSetting.key.asc()))
    return {s.key: s.value for s in result.scalars().all()}


@router.get("/settings")
async def get_settings(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await _settings(db)


@router.put("/settings")
async def update_settings(
    values: Dict[str, Any],
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Upsert key/value settings; keys not sent are left alone"""
    if not values:
        raise ValidationError("No settings to update")
    if any(not key.strip() for key in values):
        raise ValidationError("Setting keys cannot be empty")

    for key, value in values.items():
        setting = await db.get(PlatformSetting, key)
        if setting is None:
            db.add(PlatformSetting(key=key, value=value, updated_by=admin.id))
        else:
            setting.value = value
            setting.updated_by = admin.id
    db.add(AuditLog(
        event_type=AuditEventType.SETTINGS_UPDATED,
        user_id=admin.id,
        resource_type="settings",
        details={"keys": sorted(values)},
    ))
    await db.commit()
    return await _settings(db)


# ============================================================
# INVITATIONS
# ============================================================

@router.get("/invitations", response_model=List[InvitationOut])
async def list_invitations(
    status: Optional[str] = Query(None),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(Invitation).order_by(Invitation.created_at.desc())
    if status:
        try:
            stmt = stmt.where(Invitation.status == InvitationStatus(status))
        except ValueError:
            raise ValidationError("Invalid invitation status")
    result = await db.execute(stmt)
    return [_invitation_to_out(inv) for inv in result.scalars().all()]


@router.post("/invitations", response_model=InvitationOut, status_code=201)
async def create_invitation(
    data: InvitationCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Invite someone to join the board; the link is e-mailed to them"""
    email = data.email.strip().lower()
    if await AuthService.get_user_by_email(email, db):
        raise Conflict("An account with this email already exists")

    pending = await db.execute(
        select(Invitation.id).where(
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING,
            Invitation.expires_at > utcnow(),
        )
    )
    if pending.first() is not None:
        raise Conflict("A pending invitation already exists for this email")

    invitation = Invitation(
        id=new_uuid(),
        email=email,
        name=(data.name or "").strip() or None,
        specialty=data.specialty,
        token=secrets.token_urlsafe(32),
        invited_by=admin.id,
        expires_at=utcnow() + INVITATION_TTL,
    )
    db.add(invitation)
    db.add(AuditLog(
        event_type=AuditEventType.INVITATION_SENT,
        user_id=admin.id,
        resource_type="invitation",
        resource_id=invitation.id,
        details={"email": email},
    ))
    await db.commit()
    await db.refresh(invitation)
    logger.info(f"Admin {admin.id} invited {invitation.id}")

    # The invitee has no account yet, so there are no preferences to consult
    subject, html_body = mailer.invitation_email(invitation.name, admin.name, invitation.token)
    notifier.dispatch(mailer.send_email(email, subject, html_body), f"invitation -> {invitation.id}")
    return _invitation_to_out(invitation)


@router.delete("/invitations/{invitation_id}", response_model=InvitationOut)
async def revoke_invitation(
    invitation_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    invitation = await db.get(Invitation, invitation_id)
    if invitation is None:
        raise NotFound("Invitation not found")
    if invitation.status != InvitationStatus.PENDING:
        raise Conflict("Invitation is no longer pending")

    invitation.status = InvitationStatus.REVOKED
    db.add(AuditLog(
        event_type=AuditEventType.INVITATION_REVOKED,
        user_id=admin.id,
        resource_type="invitation",
        resource_id=invitation_id,
    ))
    await db.commit()
    await db.refresh(invitation)
    return _invitation_to_out(invitation)


# ============================================================
# MESSAGES
# ============================================================

@router.post("/messages", response_model=MessageOut, status_code=201)
async def send_message(
    data: AdminMessageCreate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    """Send a direct message to any user; it is also e-mailed to them"""
    subject = data.subject.strip()
    body = data.body.strip()
    if not subject or not body:
        raise ValidationError("Subject and body are required")

    recipient = await db.get(User, data.recipient_id)
    if recipient is None:
        raise NotFound("Recipient not found")

    msg = AdminMessage(sender_id=admin.id, recipient_id=recipient.id, subject=subject, body=body)
    db.add(msg)
    await db.commit()
    await db.refresh(msg)

    await notifier.notify(
        db, recipient, NotificationType.ADMIN_MESSAGE,
        mailer.admin_message_email(recipient.name, subject, body),
    )
    return message_to_out(msg, admin.name, recipient.name)


@router.get("/messages", response_model=List[MessageOut])
async def list_sent_messages(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    return await query_messages(db, AdminMessage.sender_id == admin.id)


# ============================================================
# AUDIT TRAIL
# ============================================================

@router.get("/audit", response_model=List[AuditOut])
async def list_audit_events(
    event_type: Optional[str] = Query(None),
    limit: int = Query(default=100, ge=1, le=1000),
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(AuditLog).order_by(AuditLog.timestamp.desc()).limit(limit)
    if event_type:
        try:
            stmt = stmt.where(AuditLog.event_type == AuditEventType(event_type))
        except ValueError:
            raise ValidationError("Unknown audit event type")
    result = await db.execute(stmt)
    return [
        AuditOut(
            id=e.id,
            timestamp=iso(e.timestamp),
            event_type=e.event_type.value,
            user_id=e.user_id,
            resource_type=e.resource_type,
            resource_id=e.resource_id,
            details=e.details,
        )
        for e in result.scalars().all()
    ]
