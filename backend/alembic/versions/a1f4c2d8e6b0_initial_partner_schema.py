"""Initial partner platform schema

Revision ID: a1f4c2d8e6b0
Revises:
Create Date: 2026-10-17T09:12:44.501873
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = 'a1f4c2d8e6b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOTIFICATION_TYPES = ('STATUS_CHANGE', 'PARTNER_REQUEST', 'PARTNER_RESPONSE', 'MEETING_REQUEST', 'ADMIN_MESSAGE')


def upgrade() -> None:
    # --- users ---
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('FOUNDER', 'BOARD', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('specialty', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('linkedin', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    # --- notification_prefs ---
    op.create_table(
        'notification_prefs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('notif_type', sa.Enum(*NOTIFICATION_TYPES, name='notificationtype'), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'notif_type', name='uq_notification_pref_user_type'),
    )
    op.create_index('ix_notification_prefs_user_id', 'notification_prefs', ['user_id'])

    # --- submissions ---
    op.create_table(
        'submissions',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('company_name', sa.String(), nullable=False),
        sa.Column('one_liner', sa.String(), nullable=False),
        sa.Column('industry', sa.String(), nullable=False),
        sa.Column('stage', sa.String(), nullable=False),
        sa.Column('team_size', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('problem', sa.Text(), nullable=False),
        sa.Column('solution', sa.Text(), nullable=False),
        sa.Column('traction', sa.Text(), nullable=False),
        sa.Column('looking_for', sa.JSON(), nullable=False),
        sa.Column('funding_target', sa.String(), nullable=True),
        sa.Column('additional_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('NEW', 'UNDER_REVIEW', 'MORE_INFO', 'APPROVED', 'PASSED',
                                    name='submissionstatus'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('ai_analysis', sa.JSON(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_submissions_user_id', 'submissions', ['user_id'])
    op.create_index('ix_submissions_company_name', 'submissions', ['company_name'])
    op.create_index('ix_submissions_industry', 'submissions', ['industry'])
    op.create_index('ix_submissions_status', 'submissions', ['status'])
    op.create_index('ix_submissions_submitted_at', 'submissions', ['submitted_at'])
    op.create_index('idx_submission_status_submitted', 'submissions', ['status', 'submitted_at'])

    # --- board_notes ---
    op.create_table(
        'board_notes',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('founder_visible', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_board_notes_submission_id', 'board_notes', ['submission_id'])
    op.create_index('ix_board_notes_user_id', 'board_notes', ['user_id'])
    op.create_index('ix_board_notes_created_at', 'board_notes', ['created_at'])

    # --- tagged_members ---
    op.create_table(
        'tagged_members',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('tagged_by', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('submission_id', 'user_id', name='uq_tagged_member_pair'),
    )
    op.create_index('ix_tagged_members_submission_id', 'tagged_members', ['submission_id'])
    op.create_index('ix_tagged_members_user_id', 'tagged_members', ['user_id'])

    # --- chat_messages ---
    op.create_table(
        'chat_messages',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_messages_submission_id', 'chat_messages', ['submission_id'])
    op.create_index('ix_chat_messages_user_id', 'chat_messages', ['user_id'])
    op.create_index('ix_chat_messages_created_at', 'chat_messages', ['created_at'])

    # --- partnerships ---
    op.create_table(
        'partnerships',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'ACCEPTED', 'DECLINED', name='partnershipstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('submission_id', 'user_id', name='uq_partnership_pair'),
    )
    op.create_index('ix_partnerships_submission_id', 'partnerships', ['submission_id'])
    op.create_index('ix_partnerships_user_id', 'partnerships', ['user_id'])
    op.create_index('ix_partnerships_status', 'partnerships', ['status'])
    op.create_index('idx_partnership_submission_status', 'partnerships', ['submission_id', 'status'])

    # --- meeting_requests ---
    op.create_table(
        'meeting_requests',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_meeting_requests_submission_id', 'meeting_requests', ['submission_id'])
    op.create_index('ix_meeting_requests_user_id', 'meeting_requests', ['user_id'])
    op.create_index('ix_meeting_requests_created_at', 'meeting_requests', ['created_at'])

    # --- partnership_messages ---
    op.create_table(
        'partnership_messages',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_partnership_messages_submission_id', 'partnership_messages', ['submission_id'])
    op.create_index('ix_partnership_messages_user_id', 'partnership_messages', ['user_id'])
    op.create_index('ix_partnership_messages_created_at', 'partnership_messages', ['created_at'])

    # --- shared_links ---
    op.create_table(
        'shared_links',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('submission_id', sa.String(), sa.ForeignKey('submissions.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shared_links_submission_id', 'shared_links', ['submission_id'])
    op.create_index('ix_shared_links_user_id', 'shared_links', ['user_id'])
    op.create_index('ix_shared_links_created_at', 'shared_links', ['created_at'])

    # --- platform_settings ---
    op.create_table(
        'platform_settings',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_by', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('key'),
    )

    # --- invitations ---
    op.create_table(
        'invitations',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('specialty', sa.String(), nullable=True),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('invited_by', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('status', sa.Enum('PENDING', 'ACCEPTED', 'REVOKED', name='invitationstatus'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invitations_email', 'invitations', ['email'])
    op.create_index('ix_invitations_token', 'invitations', ['token'], unique=True)
    op.create_index('ix_invitations_status', 'invitations', ['status'])

    # --- admin_messages ---
    op.create_table(
        'admin_messages',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('sender_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('recipient_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_messages_sender_id', 'admin_messages', ['sender_id'])
    op.create_index('ix_admin_messages_recipient_id', 'admin_messages', ['recipient_id'])
    op.create_index('ix_admin_messages_created_at', 'admin_messages', ['created_at'])

    # --- audit_logs ---
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('event_type', sa.Enum(
            'USER_REGISTER', 'USER_LOGIN', 'USER_LOGOUT', 'PASSWORD_CHANGED',
            'BOARD_MEMBER_ADDED', 'BOARD_MEMBER_REMOVED',
            'INVITATION_SENT', 'INVITATION_ACCEPTED', 'INVITATION_REVOKED',
            'SUBMISSION_STATUS_CHANGED', 'SUBMISSION_RATED', 'PARTNERSHIP_RESPONDED',
            'SETTINGS_UPDATED',
            name='auditeventtype'), nullable=False),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('resource_type', sa.String(), nullable=True),
        sa.Column('resource_id', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('ix_audit_logs_event_type', 'audit_logs', ['event_type'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('idx_audit_event_timestamp', 'audit_logs', ['event_type', 'timestamp'])


def downgrade() -> None:
    for table in (
        'audit_logs', 'admin_messages', 'invitations', 'platform_settings',
        'shared_links', 'partnership_messages', 'meeting_requests', 'partnerships',
        'chat_messages', 'tagged_members', 'board_notes', 'submissions',
        'notification_prefs', 'users',
    ):
        op.drop_table(table)
    for enum_name in (
        'auditeventtype', 'invitationstatus', 'partnershipstatus', 'submissionstatus',
        'notificationtype', 'userrole',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
