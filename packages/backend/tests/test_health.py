"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_without_redis_is_not_degraded(client):
    """Redis only backs rate limiting; its absence is reported, not fatal."""
    data = (await client.get("/api/v1/health")).json()
    assert data["redis"].startswith("unavailable")
    assert data["postgres"] == "ok"
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_health_reports_fanout_state(client):
    data = (await client.get("/api/v1/health")).json()
    assert data["connections"] == 0
    assert data["live_channels"] == 0
