"""LiveCut CLI — run a broadcast from the terminal.

Usage:
    livecut serve                                   # Run the API server
    livecut login director@example.com              # Prints the session to export
    livecut event create "Cup Final" --sport soccer --start 2026-06-01T18:00 --duration 2
    livecut event show CUPFINAL-LZ3K8Q2AX7F         # By join code or id
    livecut camera join <event-id> "Goal cam"       # Prints stream key + RTMP URL
    livecut camera live <camera-id> [--off]
    livecut start <event-id>
    livecut switch <event-id> <camera-id>           # Put a camera on air
    livecut history <event-id>                      # Switch log, newest first
    livecut stop <event-id>
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from livecut import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_COOKIE_NAME = "livecut_session"


def _api_url() -> str:
    return os.environ.get("LIVECUT_API_URL", DEFAULT_API_URL).rstrip("/")


def _cookie_name() -> str:
    return os.environ.get("LIVECUT_SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME)


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the LiveCut backend.

    LIVECUT_SESSION (printed by `livecut login`) is sent as the session cookie.
    """
    cookies = {}
    session = os.environ.get("LIVECUT_SESSION")
    if session:
        cookies[_cookie_name()] = session
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, cookies=cookies)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API's error detail and exit 1."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json().get("detail", r.text)
    except ValueError:
        detail = r.text
    click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k) if row.get(k) is not None else "-")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    return {"idle": "white", "live": "red", "ended": "blue"}.get(status, "white")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="livecut")
def main():
    """LiveCut — multi-camera live event broadcasting."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: LIVECUT_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: LIVECUT_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API + WebSocket server."""
    import uvicorn

    from livecut.config import settings

    uvicorn.run(
        "livecut.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# livecut login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Log in and print the session value to export as LIVECUT_SESSION."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/login", json={"email": email, "password": password})
        user = _check(r)
        session = r.cookies.get(_cookie_name())
        click.secho(f"Logged in as {user['email']} ({user['role']})", fg="green")
        click.echo(f"export LIVECUT_SESSION={session}")


# ---------------------------------------------------------------------------
# livecut event ...
# ---------------------------------------------------------------------------


@main.group()
def event():
    """Create and inspect events."""


@event.command("create")
@click.argument("name")
@click.option("--sport", "sport_type", required=True, help="e.g. soccer, cricket")
@click.option("--start", "start", required=True, help="ISO start time, e.g. 2026-06-01T18:00:00Z")
@click.option("--duration", default=2, type=int, help="Hours (default: 2)")
@click.option("--description", default=None)
@click.option("--max-cameras", default=9, type=int)
def event_create(name: str, sport_type: str, start: str, duration: int,
                 description: Optional[str], max_cameras: int):
    """Create an event (and its Mux live stream)."""
    _run(_event_create_impl(name, sport_type, start, duration, description, max_cameras))


async def _event_create_impl(name, sport_type, start, duration, description, max_cameras):
    async with _client() as c:
        r = await c.post("/api/v1/events", json={
            "name": name,
            "sport_type": sport_type,
            "start_date_time": start,
            "duration": duration,
            "description": description,
            "max_cameras": max_cameras,
        })
        ev = _check(r)
        click.secho(f"Event created: {ev['name']}", fg="green")
        click.echo(f"  ID:        {ev['id']}")
        click.echo(f"  Join code: {click.style(ev['event_code'], bold=True)}")
        if ev.get("playback_url"):
            click.echo(f"  Playback:  {ev['playback_url']}")


@event.command("show")
@click.argument("ref")
@click.option("--json", "as_json", is_flag=True, help="Raw JSON output")
def event_show(ref: str, as_json: bool):
    """Show an event by join code or id, with its cameras."""
    _run(_event_show_impl(ref, as_json))


async def _event_show_impl(ref: str, as_json: bool):
    async with _client() as c:
        r = await c.get(f"/api/v1/events/code/{ref}")
        if r.status_code == 404:
            r = await c.get(f"/api/v1/events/{ref}")
        ev = _check(r)

        if as_json:
            click.echo(_pretty_json(ev))
            return

        status_str = click.style(ev["status"], fg=_status_color(ev["status"]))
        click.secho(f"{ev['name']}  [{ev['event_code']}]", bold=True)
        click.echo(f"  Status:    {status_str}")
        click.echo(f"  Sport:     {ev['sport_type']}")
        click.echo(f"  Starts:    {ev['start_date_time']}  ({ev['duration']}h)")
        click.echo(f"  On air:    {ev.get('active_camera_id') or '(none)'}")
        if ev.get("playback_url"):
            click.echo(f"  Playback:  {ev['playback_url']}")
        click.echo()

        cameras = ev.get("cameras", [])
        if not cameras:
            click.echo("No cameras yet.")
            return
        for cam in cameras:
            cam["on_air"] = "*" if cam["id"] == ev.get("active_camera_id") else ""
        _print_table(cameras, [
            ("", "on_air", 1),
            ("ID", "id", 36),
            ("Label", "label", 20),
            ("Live", "is_live", 5),
            ("Operator", "operator_name", 20),
        ])


# ---------------------------------------------------------------------------
# livecut camera ...
# ---------------------------------------------------------------------------


@main.group()
def camera():
    """Join cameras and report their liveness."""


@camera.command("join")
@click.argument("event_id")
@click.argument("label")
@click.option("--quality", default="720p", type=click.Choice(["480p", "720p", "1080p"]))
@click.option("--operator", "operator_name", default=None, help="Operator display name")
def camera_join(event_id: str, label: str, quality: str, operator_name: Optional[str]):
    """Register a camera and print where to push video."""
    _run(_camera_join_impl(event_id, label, quality, operator_name))


async def _camera_join_impl(event_id, label, quality, operator_name):
    async with _client() as c:
        r = await c.post(f"/api/v1/events/{event_id}/cameras", json={
            "label": label,
            "quality": quality,
            "operator_name": operator_name,
        })
        cam = _check(r)
        click.secho(f"Camera joined: {cam['label']} ({cam['id']})", fg="green")
        click.echo(f"  RTMP URL:   {cam['rtmp_url']}")
        click.echo(f"  Stream key: {cam['stream_key']}")


@camera.command("live")
@click.argument("camera_id")
@click.option("--off", is_flag=True, help="Mark the camera offline instead")
def camera_live(camera_id: str, off: bool):
    """Mark a camera live (or offline with --off)."""
    _run(_camera_live_impl(camera_id, not off))


async def _camera_live_impl(camera_id: str, is_live: bool):
    async with _client() as c:
        r = await c.patch(f"/api/v1/cameras/{camera_id}/status", json={"is_live": is_live})
        cam = _check(r)
        state = click.style("LIVE", fg="red") if cam["is_live"] else "offline"
        click.echo(f"{cam['label']}: {state}")


# ---------------------------------------------------------------------------
# livecut start / stop / switch / history
# ---------------------------------------------------------------------------


@main.command()
@click.argument("event_id")
def start(event_id: str):
    """Take an event live."""
    _run(_lifecycle_impl(event_id, "start"))


@main.command()
@click.argument("event_id")
def stop(event_id: str):
    """End an event. Ended events cannot be restarted."""
    _run(_lifecycle_impl(event_id, "stop"))


async def _lifecycle_impl(event_id: str, action: str):
    async with _client() as c:
        ev = _check(await c.post(f"/api/v1/events/{event_id}/{action}"))
        status_str = click.style(ev["status"], fg=_status_color(ev["status"]))
        click.echo(f"{ev['name']}: {status_str}")


@main.command()
@click.argument("event_id")
@click.argument("camera_id")
def switch(event_id: str, camera_id: str):
    """Put CAMERA_ID on air for EVENT_ID."""
    _run(_switch_impl(event_id, camera_id))


async def _switch_impl(event_id: str, camera_id: str):
    async with _client() as c:
        r = await c.patch(f"/api/v1/events/{event_id}/switch", json={"camera_id": camera_id})
        result = _check(r)
        click.secho(f"On air: {result['active_camera_id']}", fg="green")


@main.command()
@click.argument("event_id")
@click.option("--limit", "-l", default=20, help="Max entries")
def history(event_id: str, limit: int):
    """Show the event's switch log, newest first."""
    _run(_history_impl(event_id, limit))


async def _history_impl(event_id: str, limit: int):
    async with _client() as c:
        r = await c.get(f"/api/v1/events/{event_id}/switch-log", params={"limit": limit})
        entries = _check(r)

        if not entries:
            click.echo("No switches yet.")
            return

        click.secho(f"Switches ({len(entries)}):", bold=True)
        click.echo()
        _print_table(entries, [
            ("#", "id", 6),
            ("Camera", "camera_id", 36),
            ("At", "switched_at", 32),
        ])


if __name__ == "__main__":
    main()
