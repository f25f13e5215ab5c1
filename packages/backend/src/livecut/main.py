"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, the viewer count
reporter, open WebSocket connections, the database engine).
Middleware, CORS, and routers are all registered here.

The fan-out registry and switch coordinator are per-app objects built
here and stored on app.state, so every request and every WebSocket of
this process shares them.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from livecut import __version__
from livecut.api import api_router
from livecut.config import settings
from livecut.db.cache import close_redis, init_redis
from livecut.db.engine import engine
from livecut.integrations.mux import get_mux_service
from livecut.middleware.rate_limit import RateLimitMiddleware
from livecut.middleware.request_id import RequestIdMiddleware
from livecut.middleware.security import SecurityHeadersMiddleware
from livecut.realtime.registry import FanoutRegistry
from livecut.realtime.websocket import router as ws_router
from livecut.services.switch_coordinator import SwitchCoordinator
from livecut.services.viewer_count import ViewerCountReporter

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` at shutdown.
    """
    logger.info(
        "livecut.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        mux_demo_mode=settings.mux_demo_mode,
    )

    # Redis is optional — only the rate limiter uses it
    try:
        await init_redis()
        logger.info("livecut.redis_connected", url=settings.redis_url)
    except (RedisError, OSError) as e:
        logger.warning("livecut.redis_unavailable", error=str(e))

    reporter = ViewerCountReporter(app.state.registry)
    reporter_task = asyncio.create_task(reporter.run_loop())

    yield

    logger.info("livecut.shutdown")

    reporter.stop()
    reporter_task.cancel()
    try:
        await reporter_task
    except asyncio.CancelledError:
        pass

    await app.state.registry.close()
    await close_redis()
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="LiveCut",
        description="Multi-camera live event broadcasting — director switching and real-time fan-out",
        version=__version__,
        lifespan=lifespan,
    )

    registry = FanoutRegistry(send_timeout=settings.broadcast_send_timeout)
    app.state.registry = registry
    app.state.coordinator = SwitchCoordinator(registry, get_mux_service())

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: livecut.main:app)
app = create_app()
