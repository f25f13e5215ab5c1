"""Viewer count reporter — periodic VIEWER_COUNT_UPDATE per live channel.

Learn: Runs as a background task in the FastAPI lifespan. Every
`interval` seconds it asks the registry which channels have members
and broadcasts each one its own subscriber count. A channel with no
members does not exist, so nobody is told "0".

Usage:
    reporter = ViewerCountReporter(registry)
    task = asyncio.create_task(reporter.run_loop())
    ...
    reporter.stop()
"""

import asyncio
from typing import Optional

import structlog

from livecut.config import settings
from livecut.realtime.registry import FanoutRegistry

logger = structlog.get_logger()


class ViewerCountReporter:
    """Background loop that publishes viewer counts."""

    def __init__(self, registry: FanoutRegistry, interval: Optional[float] = None):
        self.registry = registry
        self.interval = interval if interval is not None else settings.viewer_count_interval
        self._running = False

    async def run_loop(self) -> None:
        """Report, sleep, repeat until stop() is called."""
        self._running = True
        logger.info("viewer_count.started", interval=self.interval)

        while self._running:
            try:
                await self.report_once()
            except Exception:
                logger.exception("viewer_count.error")
            await asyncio.sleep(self.interval)

    async def report_once(self) -> dict[str, int]:
        """Broadcast the current count to every live channel. Returns what was sent."""
        sent: dict[str, int] = {}
        for event_id in self.registry.live_channels():
            count = self.registry.subscriber_count(event_id)
            if count == 0:
                continue
            await self.registry.broadcast_viewer_count(event_id, count)
            sent[event_id] = count
        return sent

    def stop(self) -> None:
        """Signal the loop to stop."""
        self._running = False
        logger.info("viewer_count.stopping")
