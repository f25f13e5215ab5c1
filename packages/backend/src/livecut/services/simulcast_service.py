"""Simulcast service — restream an event's program to YouTube / Twitch.

Learn: Mux only accepts new simulcast targets while the live stream is
idle, so this is an organizer action taken before going live. Stream
keys are configured once per platform (LIVECUT_YOUTUBE_STREAM_KEY,
LIVECUT_TWITCH_STREAM_KEY); a platform without a key is skipped.

Each platform is attempted independently: one failing does not stop
the other, and the result list reports both outcomes.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.config import settings
from livecut.db.models import Event, SimulcastTarget
from livecut.integrations.mux import MuxService, StreamingProviderError
from livecut.services.errors import EventNotFoundError, SimulcastTargetNotFoundError
from livecut.services.event_service import StreamNotConfiguredError

logger = structlog.get_logger()


class SimulcastUnavailableError(Exception):
    """Raised when simulcast targets cannot be added right now."""


def configured_platforms() -> list[tuple[str, str, str]]:
    """(platform, rtmp url, stream key) for every platform with a key set."""
    platforms = []
    if settings.youtube_stream_key:
        platforms.append(("youtube", settings.youtube_rtmp_url, settings.youtube_stream_key))
    if settings.twitch_stream_key:
        platforms.append(("twitch", settings.twitch_rtmp_url, settings.twitch_stream_key))
    return platforms


class SimulcastService:
    """Business logic for simulcast targets."""

    def __init__(self, db: AsyncSession, provider: MuxService):
        self.db = db
        self.provider = provider

    async def enable(
        self, event_id: str, platforms: Optional[list[tuple[str, str, str]]] = None
    ) -> list[dict]:
        """Attach every configured platform to the event's Mux stream."""
        event = await self.db.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        if not event.mux_stream_id:
            raise StreamNotConfiguredError("No Mux stream configured")

        status = await self.provider.get_live_stream_status(event.mux_stream_id)
        if status != "idle":
            raise SimulcastUnavailableError(
                "Can only add simulcast targets when stream is idle"
            )

        targets = configured_platforms() if platforms is None else platforms
        if not targets:
            raise SimulcastUnavailableError(
                "No streaming keys configured. Please contact admin."
            )

        results: list[dict] = []
        for platform, url, stream_key in targets:
            try:
                remote = await self.provider.add_simulcast_target(
                    event.mux_stream_id, url, stream_key
                )
            except StreamingProviderError as e:
                logger.warning(
                    "simulcast.add_failed", event_id=event_id, platform=platform, error=str(e)
                )
                results.append({"platform": platform, "status": "failed", "error": str(e)})
                continue

            self.db.add(
                SimulcastTarget(
                    event_id=event_id,
                    platform=platform,
                    target_url=url,
                    stream_key=stream_key,
                    mux_target_id=remote.id,
                )
            )
            await self.db.commit()
            logger.info("simulcast.added", event_id=event_id, platform=platform)
            results.append({"platform": platform, "status": "added"})

        return results

    async def list_targets(self, event_id: str) -> list[SimulcastTarget]:
        result = await self.db.execute(
            select(SimulcastTarget)
            .where(SimulcastTarget.event_id == event_id)
            .order_by(SimulcastTarget.created_at)
        )
        return list(result.scalars().all())

    async def remove(self, target_id: str) -> None:
        target = await self.db.get(SimulcastTarget, target_id)
        if target is None:
            raise SimulcastTargetNotFoundError(f"Simulcast target {target_id} not found")

        event = await self.db.get(Event, target.event_id)
        if event is not None and event.mux_stream_id and target.mux_target_id:
            await self.provider.remove_simulcast_target(
                event.mux_stream_id, target.mux_target_id
            )

        await self.db.delete(target)
        await self.db.commit()
        logger.info("simulcast.removed", event_id=target.event_id, target_id=target_id)
