"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: Auth is applied per route rather than per router here, because
each router mixes open viewer routes (join by code, list cameras, chat)
with session-only organizer/director routes. The WebSocket endpoint is
mounted separately at /ws.
"""

from fastapi import APIRouter

from livecut.api.auth import router as auth_router
from livecut.api.cameras import router as cameras_router
from livecut.api.chat import router as chat_router
from livecut.api.events import router as events_router
from livecut.api.health import router as health_router
from livecut.api.simulcast import router as simulcast_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(events_router, tags=["events", "switching"])
api_router.include_router(cameras_router, tags=["cameras"])
api_router.include_router(simulcast_router, tags=["simulcast"])
api_router.include_router(chat_router, tags=["chat"])
