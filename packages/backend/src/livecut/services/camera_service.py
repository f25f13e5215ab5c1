"""Camera service — operators joining an event as video sources.

Learn: Joining issues the camera's streaming credentials once: a stream
key derived from the event's Mux stream id plus random hex, and the
event's RTMP ingest URL. Neither changes afterwards, nor does event_id.

Liveness toggles and removal go through the switch coordinator because
they touch "who can be / is on air" for the event.
"""

import secrets
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.db.models import Camera, Event
from livecut.services.errors import EventNotFoundError

logger = structlog.get_logger()


class CameraLimitReachedError(Exception):
    """Raised when an event already has max_cameras cameras."""


class CameraService:
    """Business logic for camera registration and lookup."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_camera(
        self,
        event_id: str,
        label: str,
        quality: str = "720p",
        operator_name: Optional[str] = None,
        operator_id: Optional[str] = None,
    ) -> Camera:
        event = await self.db.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")

        existing = await self.db.execute(
            select(func.count()).select_from(Camera).where(Camera.event_id == event_id)
        )
        if existing.scalar_one() >= event.max_cameras:
            raise CameraLimitReachedError(
                f"Event already has the maximum of {event.max_cameras} cameras"
            )

        camera = Camera(
            event_id=event_id,
            label=label,
            quality=quality,
            operator_name=operator_name,
            operator_id=operator_id,
            stream_key=f"{event.mux_stream_id}_{secrets.token_hex(8)}",
            rtmp_url=event.ingest_url or "",
        )
        self.db.add(camera)
        await self.db.commit()

        logger.info(
            "camera.registered",
            event_id=event_id,
            camera_id=camera.id,
            label=label,
        )
        return camera

    async def get_camera(self, camera_id: str) -> Optional[Camera]:
        return await self.db.get(Camera, camera_id)

    async def list_cameras(self, event_id: str) -> list[Camera]:
        result = await self.db.execute(
            select(Camera).where(Camera.event_id == event_id).order_by(Camera.joined_at)
        )
        return list(result.scalars().all())
