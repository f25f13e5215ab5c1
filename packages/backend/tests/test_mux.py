"""Mux wrapper tests — demo mode and URL building (no network)."""

import pytest

from livecut.integrations.mux import MuxService, StreamingProviderError


@pytest.fixture()
def demo():
    return MuxService(demo_mode=True)


@pytest.mark.asyncio
async def test_demo_stream_has_playback_id(demo):
    stream = await demo.create_live_stream()
    assert stream.id.startswith("ls_demo_")
    assert stream.playback_id.startswith("pb_demo_")
    assert stream.status == "idle"
    assert await demo.get_live_stream_status(stream.id) == "idle"


@pytest.mark.asyncio
async def test_demo_streams_are_distinct(demo):
    a = await demo.create_live_stream()
    b = await demo.create_live_stream()
    assert a.id != b.id


@pytest.mark.asyncio
async def test_demo_stop_and_simulcast_are_noops(demo):
    await demo.stop_live_stream("ls_demo_x")
    target = await demo.add_simulcast_target("ls_demo_x", "rtmp://live.twitch.tv/app", "k")
    assert target.id.startswith("st_demo_")
    await demo.remove_simulcast_target("ls_demo_x", target.id)


@pytest.mark.asyncio
async def test_missing_credentials_outside_demo_mode():
    mux = MuxService(token_id="", token_secret="", demo_mode=False)
    with pytest.raises(StreamingProviderError):
        await mux.create_live_stream()


def test_playback_and_thumbnail_urls(demo):
    assert demo.playback_url("abc") == "https://stream.mux.com/abc.m3u8"
    assert demo.thumbnail_url("abc") == "https://image.mux.com/abc/thumbnail.jpg"
    assert (
        demo.thumbnail_url("abc", width=320, time=5)
        == "https://image.mux.com/abc/thumbnail.jpg?width=320&time=5"
    )
