"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic auto-generates migrations by comparing these models to the actual DB.

Key concepts:
- String UUID primary keys (event and camera ids travel through URLs,
  QR codes and WebSocket messages as plain strings)
- Integer autoincrement id for the append-only switch log, so log order
  is insertion order
- server_default for DB-level defaults (work even for raw SQL inserts)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


# Event lifecycle states
EVENT_IDLE = "idle"
EVENT_LIVE = "live"
EVENT_ENDED = "ended"

# User roles
ROLE_ORGANIZER = "organizer"
ROLE_DIRECTOR = "director"
ROLE_OPERATOR = "operator"
ROLE_VIEWER = "viewer"


# ══════════════════════════════════════════════════════════════
# Users + sessions
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A registered person — organizer, director, operator or viewer.

    Learn: Tokens for email verification and password reset live on the
    row itself. Consuming one is a single conditional UPDATE, so a token
    can never be used twice.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ROLE_ORGANIZER
    )  # organizer, director, operator, viewer
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    email_verification_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    password_reset_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    password_reset_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow
    )


class UserSession(Base):
    """Server-side login session. The cookie names one of these rows.

    Learn: The cookie is a signed token carrying the session id. Deleting
    the row (logout) revokes the cookie even though its signature is
    still valid.
    """

    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("idx_user_sessions_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Events + cameras
# ══════════════════════════════════════════════════════════════


class Event(Base):
    """One scheduled broadcast session with one or more camera sources.

    Learn: active_camera_id is deliberately NOT a foreign key — events
    and cameras would reference each other. The switch coordinator is
    the only writer and checks that the camera belongs to this event.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("idx_events_organizer", "organizer_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sport_type: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # hours
    event_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    organizer_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_cameras: Mapped[int] = mapped_column(Integer, nullable=False, default=9)

    # Opaque streaming-provider identifiers
    mux_stream_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    playback_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ingest_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EVENT_IDLE
    )  # idle, live, ended
    active_camera_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow
    )

    # Relationships
    cameras: Mapped[list["Camera"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Camera.joined_at",
    )


class Camera(Base):
    """One registered video source (phone operator) attached to an event.

    Learn: event_id, stream_key and rtmp_url are set once at registration
    and never change. Only is_live (and the thumbnail) toggle afterwards.
    """

    __tablename__ = "cameras"
    __table_args__ = (
        Index("idx_cameras_event", "event_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    quality: Mapped[str] = mapped_column(String(20), nullable=False, default="720p")
    operator_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    operator_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    stream_key: Mapped[str] = mapped_column(String(255), nullable=False)
    rtmp_url: Mapped[str] = mapped_column(String(255), nullable=False)
    is_live: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )

    event: Mapped["Event"] = relationship(back_populates="cameras")


# ══════════════════════════════════════════════════════════════
# Switch log (append-only audit trail)
# ══════════════════════════════════════════════════════════════


class SwitchLog(Base):
    """One row per accepted switch command. Never updated or deleted.

    Learn: Like an event-sourcing log, the rows are the history of who
    was on air. Event.active_camera_id is the projection of the latest row.
    """

    __tablename__ = "switch_logs"
    __table_args__ = (
        Index("idx_switch_logs_event", "event_id", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    # No FK: a removed camera keeps its history.
    camera_id: Mapped[str] = mapped_column(String(36), nullable=False)
    switched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )


# ══════════════════════════════════════════════════════════════
# Simulcast + chat
# ══════════════════════════════════════════════════════════════


class SimulcastTarget(Base):
    """A restream destination (YouTube, Twitch) attached to an event's Mux stream."""

    __tablename__ = "simulcast_targets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    platform: Mapped[str] = mapped_column(String(20), nullable=False)  # youtube, twitch
    target_url: Mapped[str] = mapped_column(String(255), nullable=False)
    stream_key: Mapped[str] = mapped_column(String(255), nullable=False)
    mux_target_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )


class ChatMessage(Base):
    """A viewer chat message shown next to the program feed."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("idx_chat_messages_event", "event_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_moderated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderated_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), default=utcnow
    )
