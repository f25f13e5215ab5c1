"""Mux streaming provider — thin async wrapper around the `mux-python` SDK.

Learn: Everything video-related (ingest, transcode, CDN) happens at Mux.
LiveCut only stores the opaque ids and URLs returned here:

- create_live_stream()     → stream id, stream key, playback ids
- stop_live_stream()       → signals "no more input" to Mux
- add/remove_simulcast_target() → restream to YouTube / Twitch
- get_live_stream_status() → idle | active | disabled
- playback_url()           → pure string formatting, never fails

The SDK is synchronous, so each call runs in a worker thread via
asyncio.to_thread() to keep the event loop free.

DEMO mode (LIVECUT_MUX_DEMO_MODE=true, the default) returns stubbed
streams without touching the network, so the rest of the app can be
exercised without Mux credentials.
"""

import asyncio
import uuid
from typing import Optional

import mux_python
import structlog
from mux_python.exceptions import ApiException, NotFoundException
from pydantic import BaseModel, Field

from livecut.config import settings

logger = structlog.get_logger()


class StreamingProviderError(Exception):
    """Raised when a call to the streaming provider fails."""


# ─── Models ─────────────────────────────────────────────


class MuxPlaybackId(BaseModel):
    id: str
    policy: str = "public"


class MuxLiveStream(BaseModel):
    id: str
    stream_key: str
    status: str
    rtmp_url: str
    playback_ids: list[MuxPlaybackId] = Field(default_factory=list)

    @property
    def playback_id(self) -> Optional[str]:
        return self.playback_ids[0].id if self.playback_ids else None


class MuxSimulcastTarget(BaseModel):
    id: str
    url: str
    stream_key: str
    status: str


# ─── Service ────────────────────────────────────────────


class MuxService:
    """Service wrapper for the Mux live streams API."""

    def __init__(
        self,
        token_id: Optional[str] = None,
        token_secret: Optional[str] = None,
        demo_mode: Optional[bool] = None,
    ):
        self._token_id = token_id if token_id is not None else settings.mux_token_id
        self._token_secret = (
            token_secret if token_secret is not None else settings.mux_token_secret
        )
        self.demo_mode = settings.mux_demo_mode if demo_mode is None else demo_mode
        self._live_api: Optional[mux_python.LiveStreamsApi] = None

    def _get_live_api(self) -> mux_python.LiveStreamsApi:
        if self._live_api is None:
            if not self._token_id or not self._token_secret:
                raise StreamingProviderError(
                    "LIVECUT_MUX_TOKEN_ID and LIVECUT_MUX_TOKEN_SECRET must be set "
                    "(or enable LIVECUT_MUX_DEMO_MODE)"
                )
            configuration = mux_python.Configuration()
            configuration.username = self._token_id
            configuration.password = self._token_secret
            self._live_api = mux_python.LiveStreamsApi(mux_python.ApiClient(configuration))
            logger.info("mux.client_created")
        return self._live_api

    # ─── Live streams ───────────────────────────────────

    async def create_live_stream(self) -> MuxLiveStream:
        """Create a public, low-latency live stream that records to an asset."""
        if self.demo_mode:
            suffix = uuid.uuid4().hex[:12]
            stream = MuxLiveStream(
                id=f"ls_demo_{suffix}",
                stream_key=f"sk_demo_{suffix}",
                status="idle",
                rtmp_url=settings.mux_rtmp_url,
                playback_ids=[MuxPlaybackId(id=f"pb_demo_{suffix}")],
            )
            logger.info("mux.demo_stream_created", stream_id=stream.id)
            return stream

        live_api = self._get_live_api()
        request = mux_python.CreateLiveStreamRequest(
            playback_policy=["public"],
            new_asset_settings=mux_python.CreateAssetRequest(
                playback_policy=["public"]
            ),
            reconnect_window=settings.mux_reconnect_window,
            latency_mode="low",
        )
        try:
            response = await asyncio.to_thread(live_api.create_live_stream, request)
        except ApiException as e:
            logger.error("mux.create_stream_failed", status=e.status, reason=e.reason)
            raise StreamingProviderError("Failed to create live stream") from e

        data = response.data
        stream = MuxLiveStream(
            id=data.id,
            stream_key=data.stream_key,
            status=data.status,
            rtmp_url=settings.mux_rtmp_url,
            playback_ids=[
                MuxPlaybackId(id=pb.id, policy=str(pb.policy))
                for pb in (data.playback_ids or [])
            ],
        )
        logger.info("mux.stream_created", stream_id=stream.id)
        return stream

    async def start_live_stream(self, stream_id: str) -> None:
        """Mux streams go live on their own once input arrives — nothing to call."""
        logger.info("mux.stream_ready", stream_id=stream_id)

    async def stop_live_stream(self, stream_id: str) -> None:
        """Signal that no more input will be sent. A missing stream counts as stopped."""
        if self.demo_mode:
            logger.info("mux.demo_stream_stopped", stream_id=stream_id)
            return

        live_api = self._get_live_api()
        try:
            await asyncio.to_thread(live_api.signal_live_stream_complete, stream_id)
        except NotFoundException:
            logger.info("mux.stream_already_gone", stream_id=stream_id)
        except ApiException as e:
            logger.error("mux.stop_stream_failed", stream_id=stream_id, status=e.status)
            raise StreamingProviderError("Failed to stop live stream") from e
        logger.info("mux.stream_stopped", stream_id=stream_id)

    async def get_live_stream_status(self, stream_id: str) -> str:
        if self.demo_mode:
            return "idle"

        live_api = self._get_live_api()
        try:
            response = await asyncio.to_thread(live_api.get_live_stream, stream_id)
        except ApiException as e:
            logger.error("mux.get_stream_failed", stream_id=stream_id, status=e.status)
            raise StreamingProviderError("Failed to get live stream status") from e
        return str(response.data.status)

    # ─── Simulcast ──────────────────────────────────────

    async def add_simulcast_target(
        self, stream_id: str, url: str, stream_key: str
    ) -> MuxSimulcastTarget:
        if self.demo_mode:
            return MuxSimulcastTarget(
                id=f"st_demo_{uuid.uuid4().hex[:12]}",
                url=url,
                stream_key=stream_key,
                status="idle",
            )

        live_api = self._get_live_api()
        request = mux_python.CreateSimulcastTargetRequest(url=url, stream_key=stream_key)
        try:
            response = await asyncio.to_thread(
                live_api.create_live_stream_simulcast_target, stream_id, request
            )
        except ApiException as e:
            logger.error("mux.add_simulcast_failed", stream_id=stream_id, status=e.status)
            raise StreamingProviderError("Failed to add simulcast target") from e

        data = response.data
        return MuxSimulcastTarget(
            id=data.id,
            url=data.url,
            stream_key=data.stream_key or stream_key,
            status=data.status,
        )

    async def remove_simulcast_target(self, stream_id: str, target_id: str) -> None:
        if self.demo_mode:
            return

        live_api = self._get_live_api()
        try:
            await asyncio.to_thread(
                live_api.delete_live_stream_simulcast_target, stream_id, target_id
            )
        except NotFoundException:
            logger.info("mux.simulcast_already_gone", stream_id=stream_id, target_id=target_id)
        except ApiException as e:
            logger.error("mux.remove_simulcast_failed", stream_id=stream_id, status=e.status)
            raise StreamingProviderError("Failed to remove simulcast target") from e

    # ─── URLs (pure) ────────────────────────────────────

    def playback_url(self, playback_id: str) -> str:
        return f"{settings.mux_playback_base_url}/{playback_id}.m3u8"

    def thumbnail_url(
        self,
        playback_id: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        time: Optional[float] = None,
    ) -> str:
        base_url = f"{settings.mux_image_base_url}/{playback_id}/thumbnail.jpg"
        params = []
        if width:
            params.append(f"width={width}")
        if height:
            params.append(f"height={height}")
        if time:
            params.append(f"time={time}")
        return f"{base_url}?{'&'.join(params)}" if params else base_url


_mux_service: Optional[MuxService] = None


def get_mux_service() -> MuxService:
    """FastAPI dependency — one MuxService per process, created on first use."""
    global _mux_service
    if _mux_service is None:
        _mux_service = MuxService()
    return _mux_service
