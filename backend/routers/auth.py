# routers/auth.py — Registration, login and session endpoints
# Sessions are stateless JWTs: logout only records an audit entry.
import logging
from datetime import timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import (
    AuthService, UserRegister, UserLogin, UserOut, TokenResponse,
    get_current_user, CurrentUser, user_to_out, check_password_length,
)
from database import get_db_session
from errors import AuthError, NotFound, ValidationError
from models import (
    User, UserRole, Invitation, InvitationStatus, AuditLog, AuditEventType, utcnow,
)

logger = logging.getLogger("partner.auth")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password_length(v, "New password")


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=1)
    password: str
    name: Optional[str] = Field(None, max_length=200)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_length(v)


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new founder account"""
    user = await AuthService.register_user(user_data, db)
    return AuthService.issue(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive a session token"""
    user = await AuthService.authenticate_user(credentials.email, credentials.password, db)
    return AuthService.issue(user)


@router.post("/logout")
async def logout(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Record the logout; the client discards its token"""
    db.add(AuditLog(
        event_type=AuditEventType.USER_LOGOUT,
        user_id=user.id,
        resource_type="user",
        resource_id=user.id,
    ))
    await db.commit()
    return {"status": "logged_out", "message": "Session terminated"}


@router.get("/me", response_model=UserOut)
async def get_current_user_info(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Get the authenticated user's profile"""
    db_user = await db.get(User, user.id)
    if db_user is None:
        raise NotFound("User not found")
    return user_to_out(db_user)


@router.post("/change-password")
async def change_password(
    password_data: PasswordChange,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Change the current user's password"""
    db_user = await db.get(User, user.id)
    if db_user is None:
        raise NotFound("User not found")

    if not AuthService.verify_password(password_data.current_password, db_user.password_hash):
        raise AuthError("Current password is incorrect")
    if password_data.current_password == password_data.new_password:
        raise ValidationError("New password must differ from the current password")

    db_user.password_hash = AuthService.hash_password(password_data.new_password)
    db.add(AuditLog(
        event_type=AuditEventType.PASSWORD_CHANGED,
        user_id=user.id,
        resource_type="user",
        resource_id=user.id,
    ))
    await db.commit()
    logger.info(f"Password changed for {user.id}")
    return {"status": "password_changed"}


@router.post("/accept-invitation", response_model=TokenResponse, status_code=201)
async def accept_invitation(
    data: InvitationAccept,
    db: AsyncSession = Depends(get_db_session),
):
    """Create a board member account from a pending invitation"""
    result = await db.execute(select(Invitation).where(Invitation.token == data.token))
    invitation = result.scalar_one_or_none()
    if invitation is None or invitation.status != InvitationStatus.PENDING:
        raise NotFound("Invitation not found or no longer valid")

    expires_at = invitation.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    if expires_at < utcnow():
        raise ValidationError("Invitation has expired")

    name = (data.name or invitation.name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    user = await AuthService.create_user(
        db, name, invitation.email, data.password, UserRole.BOARD, specialty=invitation.specialty,
    )
    invitation.status = InvitationStatus.ACCEPTED
    invitation.accepted_at = utcnow()
    db.add(AuditLog(
        event_type=AuditEventType.INVITATION_ACCEPTED,
        user_id=user.id,
        resource_type="invitation",
        resource_id=invitation.id,
    ))
    await db.commit()
    await db.refresh(user)
    logger.info(f"Invitation {invitation.id} accepted, board member {user.id} created")
    return AuthService.issue(user)
