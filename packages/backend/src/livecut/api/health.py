"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and
dependencies are reachable. Postgres is required; Redis is optional
(only the rate limiter uses it), so a Redis outage is reported but
does not make the service "degraded". Live fan-out is in-process, so
the number of open WebSocket connections is reported too.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text

from livecut import __version__
from livecut.api.deps import get_registry
from livecut.db.cache import get_redis
from livecut.db.engine import engine
from livecut.realtime.registry import FanoutRegistry

router = APIRouter()


@router.get("/health")
async def health_check(registry: FanoutRegistry = Depends(get_registry)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Postgres
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as e:
        checks["postgres"] = f"error: {e}"

    # Check Redis
    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["postgres"] == "ok" else "degraded"

    return {
        "status": status,
        **checks,
        "connections": registry.connection_count,
        "live_channels": len(registry.live_channels()),
    }
