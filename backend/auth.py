# auth.py — Identity & role authority for the Partner platform
# Features:
# - bcrypt password hashing (salted, never stored or logged in plaintext)
# - Signed JWT session credentials carrying (user id, role), 7-day expiry
# - Identical failure for unknown e-mail and wrong password
# - Role checks where admin satisfies every role requirement
# - Signing key injected through the environment and validated on startup

import os
import uuid
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from errors import AuthError, Conflict, Forbidden
from models import User, UserRole, AuditLog, AuditEventType
from policy import Actor, role_satisfies

logger = logging.getLogger("partner.auth")

# ============================================================
# CONFIGURATION
# ============================================================

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
MIN_PASSWORD_LENGTH = 8
# bcrypt only reads the first 72 bytes and bcrypt>=5 rejects anything longer
MAX_PASSWORD_BYTES = 72
MIN_SECRET_LENGTH = 32
MIN_SECRET_DISTINCT_CHARS = 10

_PLACEHOLDER_SECRETS = {
    "change-this-to-a-secure-random-key-in-production",
    "generate-a-64-char-random-string-here",
    "partner-dev-secret-change-in-production",
}

security = HTTPBearer(auto_error=False)

# Compared against on unknown-e-mail logins; built at import, never lazily
DUMMY_PASSWORD_HASH = bcrypt.hashpw(
    secrets.token_urlsafe(16).encode("utf-8"), bcrypt.gensalt(rounds=12)
).decode("utf-8")


def check_secret_key(key: Optional[str]) -> Optional[str]:
    """Return a description of what is wrong with a signing key, or None if usable."""
    if not key:
        return "JWT_SECRET_KEY is not set"
    if key in _PLACEHOLDER_SECRETS:
        return "JWT_SECRET_KEY is a published placeholder value"
    if len(key) < MIN_SECRET_LENGTH:
        return f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters"
    if len(set(key)) < MIN_SECRET_DISTINCT_CHARS:
        return "JWT_SECRET_KEY does not look random enough"
    return None


def check_password_length(password: str, label: str = "Password") -> str:
    """Field validator body shared by every schema that accepts a new password."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"{label} must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


# ============================================================
# PYDANTIC SCHEMAS
# ============================================================

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str

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


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    role: str
    specialty: Optional[str] = None
    bio: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[str] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


class CurrentUser(BaseModel):
    id: str
    email: str
    name: str
    role: str

    @property
    def actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)


def role_value(role) -> str:
    return role.value if isinstance(role, UserRole) else role


def user_to_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        email=u.email,
        name=u.name,
        role=role_value(u.role),
        specialty=u.specialty,
        bio=u.bio,
        linkedin=u.linkedin,
        website=u.website,
        location=u.location,
        created_at=u.created_at.isoformat() if u.created_at else None,
    )


# ============================================================
# AUTH SERVICE
# ============================================================

class AuthService:
    """Credential checks and session token issuance"""

    @staticmethod
    def hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=12)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        # bcrypt.checkpw compares digests in constant time
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))

    @staticmethod
    def _burn_password_check(password: str) -> None:
        """Spend the same bcrypt work for unknown accounts as for real ones."""
        AuthService.verify_password(password, DUMMY_PASSWORD_HASH)

    @staticmethod
    def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
        problem = check_secret_key(SECRET_KEY)
        if problem:
            raise RuntimeError(f"Refusing to sign session token: {problem}")
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": user_id,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": now + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        if not SECRET_KEY:
            raise AuthError("Invalid or expired token")
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise AuthError("Token expired")
        except JWTError:
            raise AuthError("Invalid or expired token")
        if payload.get("type") != "access" or not payload.get("sub") or not payload.get("role"):
            raise AuthError("Invalid or expired token")
        return payload

    @staticmethod
    def verify(token: str) -> Tuple[str, str]:
        """Validate a session token and return (user_id, role)."""
        payload = AuthService.verify_token(token)
        try:
            role = UserRole(payload["role"]).value
        except ValueError:
            raise AuthError("Invalid or expired token")
        return payload["sub"], role

    @staticmethod
    def issue(user: User) -> TokenResponse:
        role = role_value(user.role)
        return TokenResponse(
            access_token=AuthService.create_access_token(user.id, role),
            expires_in=ACCESS_TOKEN_EXPIRE_DAYS * 86400,
            user=user_to_out(user),
        )

    @staticmethod
    async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_user(
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: UserRole,
        specialty: Optional[str] = None,
    ) -> User:
        """Insert a user; raises Conflict if the e-mail is taken (case-insensitive)."""
        if await AuthService.get_user_by_email(email, db):
            raise Conflict("An account with this email already exists")

        user = User(
            email=email.strip().lower(),
            name=name,
            password_hash=AuthService.hash_password(password),
            role=role,
            specialty=specialty,
        )
        db.add(user)
        await db.flush()
        return user

    @staticmethod
    async def register_user(user_data: UserRegister, db: AsyncSession) -> User:
        # Self-service registration always yields a founder
        new_user = await AuthService.create_user(
            db, user_data.name, user_data.email, user_data.password, UserRole.FOUNDER,
        )
        db.add(AuditLog(
            event_type=AuditEventType.USER_REGISTER,
            user_id=new_user.id,
            resource_type="user",
            resource_id=new_user.id,
        ))
        await db.commit()
        await db.refresh(new_user)
        logger.info(f"Registered founder account {new_user.id}")
        return new_user

    @staticmethod
    async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
        user = await AuthService.get_user_by_email(email, db)

        if user is None:
            AuthService._burn_password_check(password)
            raise AuthError("Invalid email or password")
        if not AuthService.verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")

        db.add(AuditLog(
            event_type=AuditEventType.USER_LOGIN,
            user_id=user.id,
            resource_type="user",
            resource_id=user.id,
        ))
        await db.commit()
        return user


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Authentication required")

    user_id, _ = AuthService.verify(credentials.credentials)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthError("User not found")

    return CurrentUser(
        id=user.id,
        email=user.email,
        name=user.name,
        role=role_value(user.role),
    )


def require_role(*roles: UserRole):
    """Dependency factory: the user must satisfy at least one of the roles (admin always does)"""
    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not any(role_satisfies(user.role, role.value) for role in roles):
            names = " or ".join(role.value for role in roles)
            raise Forbidden(f"Access restricted to {names} members")
        return user
    return _check


require_founder = require_role(UserRole.FOUNDER)
require_board = require_role(UserRole.BOARD)
require_admin = require_role(UserRole.ADMIN)
