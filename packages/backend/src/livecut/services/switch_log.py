"""Switch log store — append-only audit trail of on-air decisions.

Learn: Every accepted switch INSERTs one row; rows are never updated or
deleted by the app. Event.active_camera_id is the "projection" of the
newest row for that event, kept in step by the switch coordinator.

The store only adds to the caller's transaction (flush, no commit) so
the coordinator can write the log row and the event update atomically.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livecut.db.models import SwitchLog


class SwitchLogStore:
    """Append-only switch log backed by the relational store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, event_id: str, camera_id: str) -> SwitchLog:
        """Append a switch to an event's log. Returns the created row."""
        entry = SwitchLog(event_id=event_id, camera_id=camera_id)
        self.db.add(entry)
        await self.db.flush()  # get the auto-generated id
        return entry

    async def read_stream(
        self,
        event_id: str,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[SwitchLog]:
        """Read an event's switches, newest first by default."""
        order = SwitchLog.id.desc() if newest_first else SwitchLog.id
        result = await self.db.execute(
            select(SwitchLog)
            .where(SwitchLog.event_id == event_id)
            .order_by(order)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self, event_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(SwitchLog).where(SwitchLog.event_id == event_id)
        )
        return result.scalar_one()
