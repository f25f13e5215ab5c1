"""Initial schema: users, sessions, events, cameras, switch log, simulcast, chat

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-16 09:12:44.102311
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    # ─── Users + sessions ────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_verification_token', sa.String(64), nullable=True),
        sa.Column('password_reset_token', sa.String(64), nullable=True),
        sa.Column('password_reset_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('ix_users_email_verification_token', 'users', ['email_verification_token'])
    op.create_index('ix_users_password_reset_token', 'users', ['password_reset_token'])

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        _timestamp('created_at'),
    )
    op.create_index('idx_user_sessions_user', 'user_sessions', ['user_id'])

    # ─── Events + cameras ────────────────────────────────
    op.create_table(
        'events',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sport_type', sa.String(50), nullable=False),
        sa.Column('start_date_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('event_code', sa.String(64), nullable=False, unique=True),
        sa.Column('organizer_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('max_cameras', sa.Integer(), nullable=False, server_default='9'),
        sa.Column('mux_stream_id', sa.String(100), nullable=True),
        sa.Column('playback_id', sa.String(100), nullable=True),
        sa.Column('ingest_url', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='idle'),
        sa.Column('active_camera_id', sa.String(36), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
    )
    op.create_index('idx_events_organizer', 'events', ['organizer_id'])

    op.create_table(
        'cameras',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('event_id', sa.String(36),
                  sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('quality', sa.String(20), nullable=False, server_default='720p'),
        sa.Column('operator_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('operator_name', sa.String(100), nullable=True),
        sa.Column('stream_key', sa.String(255), nullable=False),
        sa.Column('rtmp_url', sa.String(255), nullable=False),
        sa.Column('is_live', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('thumbnail_url', sa.String(255), nullable=True),
        _timestamp('joined_at'),
    )
    op.create_index('idx_cameras_event', 'cameras', ['event_id'])

    # ─── Switch log (append-only) ────────────────────────
    op.create_table(
        'switch_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_id', sa.String(36),
                  sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('camera_id', sa.String(36), nullable=False),
        _timestamp('switched_at'),
    )
    op.create_index('idx_switch_logs_event', 'switch_logs', ['event_id', 'id'])

    # ─── Simulcast + chat ────────────────────────────────
    op.create_table(
        'simulcast_targets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('event_id', sa.String(36),
                  sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.String(20), nullable=False),
        sa.Column('target_url', sa.String(255), nullable=False),
        sa.Column('stream_key', sa.String(255), nullable=False),
        sa.Column('mux_target_id', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        _timestamp('created_at'),
    )

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('event_id', sa.String(36),
                  sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('is_moderated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('moderated_by', sa.String(36), nullable=True),
        _timestamp('created_at'),
    )
    op.create_index('idx_chat_messages_event', 'chat_messages', ['event_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('chat_messages')
    op.drop_table('simulcast_targets')
    op.drop_table('switch_logs')
    op.drop_table('cameras')
    op.drop_table('events')
    op.drop_table('user_sessions')
    op.drop_table('users')
