"""Event service — create broadcasts, look them up, run their lifecycle.

Learn: Creating an event also creates its Mux live stream, so the event
row is born with the opaque stream id, playback id and ingest URL it
needs. Cameras that join later reuse the ingest URL.

Lifecycle is a small guarded state machine:

    idle → live → ended
    idle → ended          (cancelled before it started)

"ended" is terminal: a stopped event cannot be resumed.
"""

import secrets
import string
import time
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from livecut.db.models import (
    EVENT_ENDED,
    EVENT_IDLE,
    EVENT_LIVE,
    ROLE_DIRECTOR,
    Event,
    User,
)
from livecut.integrations.mux import MuxService
from livecut.services.errors import (
    EventNotFoundError,
    InvalidTransitionError,
    PermissionDeniedError,
    StoreFailureError,
)

logger = structlog.get_logger()


# ═══════════════════════════════════════════════════════════
# State Machine
# ═══════════════════════════════════════════════════════════

VALID_TRANSITIONS: dict[str, set[str]] = {
    EVENT_IDLE: {EVENT_LIVE, EVENT_ENDED},
    EVENT_LIVE: {EVENT_ENDED},
    EVENT_ENDED: set(),  # terminal state
}


class StreamNotConfiguredError(Exception):
    """Raised when an event has no streaming-provider stream attached."""


_BASE36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_event_code(name: str) -> str:
    """Human-typeable join code: first 8 letters of the name + time + noise.

    "Cup Final 2026" → "CUPFINAL-LZ3K8Q2AX7F"
    """
    prefix = "".join(name.split())[:8].upper() or "EVENT"
    stamp = _base36(int(time.time() * 1000))
    noise = "".join(secrets.choice(_BASE36) for _ in range(3))
    return f"{prefix}-{stamp}{noise}"


# ═══════════════════════════════════════════════════════════
# Service
# ═══════════════════════════════════════════════════════════


class EventService:
    """Business logic for events and their streaming lifecycle."""

    def __init__(self, db: AsyncSession, provider: MuxService):
        self.db = db
        self.provider = provider

    # ─── Create ──────────────────────────────────────────

    async def create_event(
        self,
        *,
        name: str,
        sport_type: str,
        start_date_time: datetime,
        duration: int,
        organizer_id: Optional[str] = None,
        description: Optional[str] = None,
        is_public: bool = True,
        max_cameras: int = 9,
    ) -> Event:
        """Create the Mux stream, then the event row that points at it."""
        stream = await self.provider.create_live_stream()

        event = Event(
            name=name,
            description=description,
            sport_type=sport_type,
            start_date_time=start_date_time,
            duration=duration,
            event_code=generate_event_code(name),
            organizer_id=organizer_id,
            is_public=is_public,
            max_cameras=max_cameras,
            mux_stream_id=stream.id,
            playback_id=stream.playback_id,
            ingest_url=stream.rtmp_url,
            status=EVENT_IDLE,
        )
        self.db.add(event)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise StoreFailureError("Failed to create event") from e

        logger.info(
            "event.created",
            event_id=event.id,
            event_code=event.event_code,
            mux_stream_id=stream.id,
        )
        return event

    # ─── Read ────────────────────────────────────────────

    async def get_event(self, event_id: str, with_cameras: bool = False) -> Optional[Event]:
        query = (
            select(Event)
            .where(Event.id == event_id)
            .execution_options(populate_existing=True)
        )
        if with_cameras:
            query = query.options(selectinload(Event.cameras))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_event_by_code(self, event_code: str) -> Optional[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.event_code == event_code)
            .options(selectinload(Event.cameras))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_events(self, organizer_id: str) -> list[Event]:
        result = await self.db.execute(
            select(Event)
            .where(Event.organizer_id == organizer_id)
            .order_by(Event.start_date_time.desc())
        )
        return list(result.scalars().all())

    async def _require(self, event_id: str) -> Event:
        event = await self.db.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    async def require_control(self, event_id: str, user: User) -> Event:
        """The event, if `user` may run it: its organizer, or any director."""
        event = await self._require(event_id)
        if event.organizer_id != user.id and user.role != ROLE_DIRECTOR:
            raise PermissionDeniedError(
                "Only the event's organizer or a director can run this event"
            )
        return event

    # ─── Lifecycle ───────────────────────────────────────

    async def _transition(self, event: Event, new_status: str) -> None:
        allowed = VALID_TRANSITIONS.get(event.status, set())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition event from '{event.status}' to '{new_status}'. "
                f"Allowed: {sorted(allowed) or 'none (terminal)'}"
            )
        old_status = event.status
        event.status = new_status
        await self.db.commit()
        logger.info(
            "event.status_changed",
            event_id=event.id,
            from_status=old_status,
            to_status=new_status,
        )

    async def start_event(self, event_id: str) -> Event:
        """Mark the event live. Its Mux stream starts on first input."""
        event = await self._require(event_id)
        if not event.mux_stream_id:
            raise StreamNotConfiguredError("No Mux stream configured")
        if EVENT_LIVE not in VALID_TRANSITIONS.get(event.status, set()):
            raise InvalidTransitionError(
                f"Cannot start an event that is '{event.status}'"
            )

        await self.provider.start_live_stream(event.mux_stream_id)
        await self._transition(event, EVENT_LIVE)
        return event

    async def stop_event(self, event_id: str) -> Event:
        """Signal the Mux stream complete and mark the event ended."""
        event = await self._require(event_id)
        if not event.mux_stream_id:
            raise StreamNotConfiguredError("No Mux stream configured")
        if EVENT_ENDED not in VALID_TRANSITIONS.get(event.status, set()):
            raise InvalidTransitionError("Event has already ended")

        await self.provider.stop_live_stream(event.mux_stream_id)
        await self._transition(event, EVENT_ENDED)
        return event

    # ─── Delete ──────────────────────────────────────────

    async def delete_event(self, event_id: str, user_id: str) -> None:
        event = await self._require(event_id)
        if event.organizer_id != user_id:
            raise PermissionDeniedError("Only the organizer can delete this event")
        await self.db.delete(event)
        await self.db.commit()
        logger.info("event.deleted", event_id=event_id)
