"""Shared route dependencies for process-wide objects.

Learn: The fan-out registry and switch coordinator are built once by
create_app() and hung on app.state. Routes reach them through these
dependencies rather than importing globals, so tests can build a fresh
app (and fresh registry) per test.
"""

from fastapi import Request

from livecut.realtime.registry import FanoutRegistry
from livecut.services.switch_coordinator import SwitchCoordinator


def get_registry(request: Request) -> FanoutRegistry:
    return request.app.state.registry


def get_coordinator(request: Request) -> SwitchCoordinator:
    return request.app.state.coordinator
