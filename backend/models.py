# models.py — Database models for the Partner platform
# - UUID primary keys everywhere
# - 3 fixed roles (founder, board, admin); role never changes after creation
# - One partnership / one tag per (submission, member) pair, enforced by the schema
# - Append-only collaboration logs (notes, chat, partnership chat, shared links)

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, JSON, Boolean, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, PyEnum):
    FOUNDER = "founder"
    BOARD = "board"
    ADMIN = "admin"


class SubmissionStatus(str, PyEnum):
    NEW = "new"
    UNDER_REVIEW = "under_review"
    MORE_INFO = "more_info"
    APPROVED = "approved"
    PASSED = "passed"


class PartnershipStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class InvitationStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"


class NotificationType(str, PyEnum):
    STATUS_CHANGE = "status_change"
    PARTNER_REQUEST = "partner_request"
    PARTNER_RESPONSE = "partner_response"
    MEETING_REQUEST = "meeting_request"
    ADMIN_MESSAGE = "admin_message"


class AuditEventType(str, PyEnum):
    # Auth events
    USER_REGISTER = "auth.user.register"
    USER_LOGIN = "auth.user.login"
    USER_LOGOUT = "auth.user.logout"
    PASSWORD_CHANGED = "auth.password.changed"
    # Board roster
    BOARD_MEMBER_ADDED = "board.member.added"
    BOARD_MEMBER_REMOVED = "board.member.removed"
    INVITATION_SENT = "board.invitation.sent"
    INVITATION_ACCEPTED = "board.invitation.accepted"
    INVITATION_REVOKED = "board.invitation.revoked"
    # Review workflow
    SUBMISSION_STATUS_CHANGED = "submission.status.changed"
    SUBMISSION_RATED = "submission.rated"
    PARTNERSHIP_RESPONDED = "partnership.responded"
    # Platform
    SETTINGS_UPDATED = "platform.settings.updated"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    email = Column(String, unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.FOUNDER, nullable=False, index=True)
    specialty = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    linkedin = Column(String, nullable=True)
    website = Column(String, nullable=True)
    location = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    submissions = relationship("Submission", back_populates="owner")


class NotificationPref(Base):
    __tablename__ = "notification_prefs"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    notif_type = Column(SQLEnum(NotificationType), nullable=False)
    enabled = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("user_id", "notif_type", name="uq_notification_pref_user_type"),
    )


# ============================================================
# SUBMISSIONS
# ============================================================

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    company_name = Column(String, nullable=False, index=True)
    one_liner = Column(String, nullable=False)
    industry = Column(String, nullable=False, index=True)
    stage = Column(String, nullable=False)
    team_size = Column(String, nullable=True)
    website = Column(String, nullable=True)
    problem = Column(Text, nullable=False)
    solution = Column(Text, nullable=False)
    traction = Column(Text, nullable=False)
    looking_for = Column(JSON, nullable=False, default=list)
    funding_target = Column(String, nullable=True)
    additional_notes = Column(Text, nullable=True)
    status = Column(SQLEnum(SubmissionStatus), nullable=False, default=SubmissionStatus.NEW, index=True)
    rating = Column(Integer, nullable=True)
    ai_analysis = Column(JSON, nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    owner = relationship("User", back_populates="submissions")

    __table_args__ = (
        Index("idx_submission_status_submitted", "status", "submitted_at"),
    )


class BoardNote(Base):
    __tablename__ = "board_notes"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    text = Column(Text, nullable=False)
    founder_visible = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class TaggedMember(Base):
    __tablename__ = "tagged_members"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    tagged_by = Column(String, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("submission_id", "user_id", name="uq_tagged_member_pair"),
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


# ============================================================
# PARTNERSHIPS & MEETINGS
# ============================================================

class Partnership(Base):
    __tablename__ = "partnerships"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(SQLEnum(PartnershipStatus), nullable=False, default=PartnershipStatus.PENDING, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("submission_id", "user_id", name="uq_partnership_pair"),
        Index("idx_partnership_submission_status", "submission_id", "status"),
    )


class MeetingRequest(Base):
    __tablename__ = "meeting_requests"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class PartnershipMessage(Base):
    __tablename__ = "partnership_messages"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


class SharedLink(Base):
    __tablename__ = "shared_links"

    id = Column(String, primary_key=True, default=new_uuid)
    submission_id = Column(String, ForeignKey("submissions.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


# ============================================================
# ADMIN CONSOLE
# ============================================================

class PlatformSetting(Base):
    __tablename__ = "platform_settings"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=True)
    updated_by = Column(String, ForeignKey("users.id"), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(String, primary_key=True, default=new_uuid)
    email = Column(String, nullable=False, index=True)
    name = Column(String, nullable=True)
    specialty = Column(String, nullable=True)
    token = Column(String, unique=True, nullable=False, index=True)
    invited_by = Column(String, ForeignKey("users.id"), nullable=True)
    status = Column(SQLEnum(InvitationStatus), nullable=False, default=InvitationStatus.PENDING, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)


class AdminMessage(Base):
    __tablename__ = "admin_messages"

    id = Column(String, primary_key=True, default=new_uuid)
    sender_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    recipient_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)


# ============================================================
# AUDIT LOGS (append-only, never updated or deleted)
# ============================================================

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=new_uuid)
    timestamp = Column(DateTime(timezone=True), default=utcnow, index=True)
    event_type = Column(SQLEnum(AuditEventType), nullable=False, index=True)
    user_id = Column(String, nullable=True, index=True)
    resource_type = Column(String, nullable=True)
    resource_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_audit_event_timestamp", "event_type", "timestamp"),
    )
