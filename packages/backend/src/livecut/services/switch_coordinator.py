"""Switch coordinator — the single authority for "which camera is on air".

Learn: A director's switch goes through four steps, in this order:
1. Validate: the event exists, the camera exists AND belongs to the event
2. Persist: append a SwitchLog row + set Event.active_camera_id (one transaction)
3. Commit — if this fails nothing else happens (no broadcast)
4. Announce: PROGRAM_UPDATE to every client on the event's channel

Ordering: switches of the same event run one at a time under a
per-event asyncio.Lock that covers persist AND broadcast. So if X is
committed before Y, X's PROGRAM_UPDATE is also sent before Y's, and the
last message every viewer sees matches the stored active camera.
Different events have different locks and run in parallel.

Camera liveness toggles use the same per-event lock, so CAMERA_UPDATE
and PROGRAM_UPDATE for one event also leave in commit order.

One coordinator exists per process (built by create_app(), stored on
app.state.coordinator). It holds no DB session; each call gets the
request's session.
"""

import asyncio
import weakref

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.db.models import Camera, Event, SwitchLog
from livecut.integrations.mux import MuxService
from livecut.realtime.registry import FanoutRegistry
from livecut.services.errors import (
    CameraNotFoundError,
    EventNotFoundError,
    InvalidCameraError,
    StoreFailureError,
)
from livecut.services.switch_log import SwitchLogStore

logger = structlog.get_logger()


class SwitchCoordinator:
    """Validates, records and announces camera switches."""

    def __init__(self, registry: FanoutRegistry, provider: MuxService):
        self.registry = registry
        self.provider = provider
        # Unused locks are dropped automatically; a held lock stays referenced.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, event_id: str) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    # ─── Switch ─────────────────────────────────────────

    async def switch_camera(
        self, db: AsyncSession, event_id: str, camera_id: str
    ) -> str:
        """Put camera_id on air for event_id. Returns the new active camera id.

        Raises EventNotFoundError, InvalidCameraError or StoreFailureError.
        """
        log = logger.bind(event_id=event_id, camera_id=camera_id)

        lock = self._lock_for(event_id)
        async with lock:
            try:
                event = await db.get(Event, event_id)
                if event is None:
                    raise EventNotFoundError(f"Event {event_id} not found")

                camera = await db.get(Camera, camera_id)
                if camera is None or camera.event_id != event_id:
                    log.info("switch.rejected", reason="invalid_camera")
                    raise InvalidCameraError(
                        f"Camera {camera_id} does not belong to event {event_id}"
                    )

                playback_id = event.playback_id
                await SwitchLogStore(db).append(event_id, camera_id)
                event.active_camera_id = camera_id
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                log.error("switch.store_failed", error=str(e))
                raise StoreFailureError("Failed to record camera switch") from e

            playback_url = self.provider.playback_url(playback_id) if playback_id else ""
            recipients = await self.registry.broadcast_program_update(
                event_id, camera_id, playback_url
            )

        log.info("switch.accepted", recipients=recipients)
        return camera_id

    # ─── Liveness ───────────────────────────────────────

    async def set_camera_liveness(
        self, db: AsyncSession, camera_id: str, is_live: bool
    ) -> Camera:
        """Toggle a camera's is_live flag and announce CAMERA_UPDATE.

        Raises CameraNotFoundError or StoreFailureError.
        """
        try:
            camera = await db.get(Camera, camera_id)
        except SQLAlchemyError as e:
            raise StoreFailureError("Failed to load camera") from e
        if camera is None:
            raise CameraNotFoundError(f"Camera {camera_id} not found")

        event_id = camera.event_id
        log = logger.bind(event_id=event_id, camera_id=camera_id, is_live=is_live)

        lock = self._lock_for(event_id)
        async with lock:
            try:
                # Re-read under the lock: a concurrent removal may have won.
                camera = await db.get(Camera, camera_id, populate_existing=True)
                if camera is None:
                    raise CameraNotFoundError(f"Camera {camera_id} not found")
                camera.is_live = is_live
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                log.error("camera.liveness_store_failed", error=str(e))
                raise StoreFailureError("Failed to update camera status") from e

            recipients = await self.registry.broadcast_camera_update(
                event_id, camera_id, is_live
            )

        log.info("camera.liveness_changed", recipients=recipients)
        return camera

    # ─── Removal ────────────────────────────────────────

    async def remove_camera(self, db: AsyncSession, camera_id: str) -> None:
        """Delete a camera. If it was on air, the event goes back to no active camera."""
        camera = await db.get(Camera, camera_id)
        if camera is None:
            raise CameraNotFoundError(f"Camera {camera_id} not found")

        event_id = camera.event_id
        async with self._lock_for(event_id):
            try:
                camera = await db.get(Camera, camera_id, populate_existing=True)
                if camera is None:
                    raise CameraNotFoundError(f"Camera {camera_id} not found")
                event = await db.get(Event, event_id)
                if event is not None and event.active_camera_id == camera_id:
                    event.active_camera_id = None
                await db.delete(camera)
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                raise StoreFailureError("Failed to remove camera") from e

        logger.info("camera.removed", event_id=event_id, camera_id=camera_id)

    # ─── History ────────────────────────────────────────

    async def switch_history(
        self, db: AsyncSession, event_id: str, limit: int = 100
    ) -> list[SwitchLog]:
        """The event's switch log, newest first."""
        event = await db.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        return await SwitchLogStore(db).read_stream(event_id, limit=limit)
