"""Viewer count reporter tests."""

import asyncio
import json

import pytest

from livecut.realtime.messages import VIEWER_COUNT_UPDATE
from livecut.realtime.registry import FanoutRegistry
from livecut.services.viewer_count import ViewerCountReporter


class Recorder:
    def __init__(self):
        self.sent = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000) -> None:
        pass


@pytest.mark.asyncio
async def test_each_channel_gets_its_own_count():
    registry = FanoutRegistry(send_timeout=1.0)
    e1 = [Recorder() for _ in range(3)]
    e2 = [Recorder()]
    for conn in e1:
        await registry.join(await registry.connect(conn), "E1")
    for conn in e2:
        await registry.join(await registry.connect(conn), "E2")
    # Connected but not subscribed: counted nowhere
    await registry.connect(Recorder())

    sent = await ViewerCountReporter(registry, interval=60).report_once()

    assert sent == {"E1": 3, "E2": 1}
    assert all(c.sent[0]["type"] == VIEWER_COUNT_UPDATE for c in e1 + e2)
    assert [c.sent[0]["count"] for c in e1] == [3, 3, 3]
    assert e2[0].sent[0]["count"] == 1


@pytest.mark.asyncio
async def test_nothing_sent_without_channels():
    registry = FanoutRegistry(send_timeout=1.0)
    assert await ViewerCountReporter(registry, interval=60).report_once() == {}


@pytest.mark.asyncio
async def test_loop_reports_until_stopped():
    registry = FanoutRegistry(send_timeout=1.0)
    conn = Recorder()
    await registry.join(await registry.connect(conn), "E1")

    reporter = ViewerCountReporter(registry, interval=0.01)
    task = asyncio.create_task(reporter.run_loop())
    await asyncio.sleep(0.05)
    reporter.stop()
    await asyncio.wait_for(task, timeout=1.0)

    assert len(conn.sent) >= 1
    assert all(m["count"] == 1 for m in conn.sent)
