"""Fan-out registry — per-event channels of connected WebSocket clients.

Learn: Fan-out is in-process and best-effort. A client that is not
connected when a message is broadcast simply misses it; the frontend
can always re-read the event over REST to catch up.

State owned here and nowhere else:
- _channels:      event_id → set of client handles (the "channel")
- _subscriptions: client handle → Subscription (which event it joined)
- _connected:     every open handle, subscribed or not

A client is in at most one channel. Joining a new event first removes
it from the old one. A channel that loses its last member is deleted.

All reads and writes of that state happen under one asyncio.Lock.
Delivery happens outside the lock on a snapshot of the channel, so a
slow client never blocks joins/leaves. Each handle serializes its own
sends, so two broadcasts to the same client never interleave.

Lifecycle: create_app() builds one registry and stores it on
app.state.registry; the lifespan shutdown calls close().
"""

import asyncio
import json
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import structlog

from livecut.config import settings
from livecut.realtime.messages import (
    camera_update,
    program_update,
    viewer_count_update,
)

logger = structlog.get_logger()


class ClientConnection(Protocol):
    """The transport side of a client (Starlette's WebSocket satisfies this)."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class ClientHandle:
    """One connected client as seen by the registry."""

    def __init__(self, connection: ClientConnection, send_timeout: float):
        self.id = uuid.uuid4().hex[:12]
        self.connection = connection
        self._send_timeout = send_timeout
        self._send_lock = asyncio.Lock()

    async def send(self, text: str) -> None:
        async with self._send_lock:
            await asyncio.wait_for(
                self.connection.send_text(text), timeout=self._send_timeout
            )

    def __repr__(self) -> str:
        return f"<ClientHandle {self.id}>"


@dataclass(frozen=True)
class Subscription:
    event_id: str
    user_id: Optional[str] = None


class FanoutRegistry:
    """Tracks channel membership and delivers broadcasts."""

    def __init__(self, send_timeout: Optional[float] = None):
        self._send_timeout = (
            send_timeout if send_timeout is not None else settings.broadcast_send_timeout
        )
        self._channels: dict[str, set[ClientHandle]] = {}
        self._subscriptions: dict[ClientHandle, Subscription] = {}
        self._connected: set[ClientHandle] = set()
        self._lock = asyncio.Lock()

    # ─── Connection lifecycle ───────────────────────────

    async def connect(self, connection: ClientConnection) -> ClientHandle:
        """Register a freshly accepted connection (connected, unsubscribed)."""
        handle = ClientHandle(connection, self._send_timeout)
        async with self._lock:
            self._connected.add(handle)
        logger.info("fanout.client_connected", client_id=handle.id)
        return handle

    async def join(
        self, handle: ClientHandle, event_id: str, user_id: Optional[str] = None
    ) -> None:
        """Subscribe handle to event_id, replacing any previous subscription."""
        async with self._lock:
            self._remove_locked(handle)
            self._channels.setdefault(event_id, set()).add(handle)
            self._subscriptions[handle] = Subscription(event_id=event_id, user_id=user_id)
        logger.info(
            "fanout.client_joined",
            client_id=handle.id,
            event_id=event_id,
            user_id=user_id,
        )

    async def leave(self, handle: ClientHandle, event_id: Optional[str] = None) -> None:
        """Unsubscribe handle. A mismatched event_id is ignored."""
        async with self._lock:
            current = self._subscriptions.get(handle)
            if current is None:
                return
            if event_id is not None and event_id != current.event_id:
                logger.info(
                    "fanout.leave_mismatch",
                    client_id=handle.id,
                    requested=event_id,
                    subscribed=current.event_id,
                )
                return
            self._remove_locked(handle)
        logger.info("fanout.client_left", client_id=handle.id, event_id=current.event_id)

    async def disconnect(self, handle: ClientHandle) -> None:
        """Forget handle entirely. Safe to call more than once."""
        async with self._lock:
            self._remove_locked(handle)
            was_connected = handle in self._connected
            self._connected.discard(handle)
        if was_connected:
            logger.info("fanout.client_disconnected", client_id=handle.id)

    def _remove_locked(self, handle: ClientHandle) -> None:
        subscription = self._subscriptions.pop(handle, None)
        if subscription is None:
            return
        members = self._channels.get(subscription.event_id)
        if members is None:
            return
        members.discard(handle)
        if not members:
            del self._channels[subscription.event_id]

    # ─── Broadcast ──────────────────────────────────────

    async def broadcast(self, event_id: str, message: dict[str, Any]) -> int:
        """Send message to every client in event_id's channel.

        Returns how many clients accepted it. Per-client failures are
        logged and skipped; this never raises for a delivery problem.
        """
        async with self._lock:
            members = list(self._channels.get(event_id, ()))
        if not members:
            return 0

        text = json.dumps(message)
        results = await asyncio.gather(*(self._deliver(h, text) for h in members))
        delivered = sum(results)
        logger.debug(
            "fanout.broadcast",
            event_id=event_id,
            message_type=message.get("type"),
            recipients=len(members),
            delivered=delivered,
        )
        return delivered

    async def _deliver(self, handle: ClientHandle, text: str) -> bool:
        try:
            await handle.send(text)
            return True
        except Exception as e:
            logger.info(
                "fanout.delivery_skipped",
                client_id=handle.id,
                error=repr(e),
            )
            return False

    async def broadcast_camera_update(
        self, event_id: str, camera_id: str, is_live: bool
    ) -> int:
        return await self.broadcast(event_id, camera_update(camera_id, is_live))

    async def broadcast_program_update(
        self, event_id: str, active_camera_id: str, playback_url: str
    ) -> int:
        return await self.broadcast(
            event_id, program_update(active_camera_id, playback_url)
        )

    async def broadcast_viewer_count(self, event_id: str, count: int) -> int:
        return await self.broadcast(event_id, viewer_count_update(count))

    # ─── Introspection ──────────────────────────────────

    def subscriber_count(self, event_id: str) -> int:
        return len(self._channels.get(event_id, ()))

    def live_channels(self) -> list[str]:
        return list(self._channels)

    def subscription_of(self, handle: ClientHandle) -> Optional[Subscription]:
        return self._subscriptions.get(handle)

    @property
    def connection_count(self) -> int:
        return len(self._connected)

    # ─── Shutdown ───────────────────────────────────────

    async def close(self) -> None:
        """Close every connection and drop all channels (app shutdown)."""
        async with self._lock:
            handles = list(self._connected)
            self._connected.clear()
            self._channels.clear()
            self._subscriptions.clear()

        for handle in handles:
            try:
                await handle.connection.close(code=1001)
            except Exception as e:
                logger.debug("fanout.close_failed", client_id=handle.id, error=repr(e))
        logger.info("fanout.closed", connections=len(handles))
