#!/usr/bin/env python3
"""
LiveCut Quickstart — one match, start to finish, in one script.

Registers an organizer → creates an event → two cameras join →
cameras go live → start → director switches → switch log → stop.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000 (LIVECUT_MUX_DEMO_MODE=true
is fine; no video is needed to drive the switcher.)

Watch the fan-out while this runs by connecting a WebSocket client to
ws://localhost:8000/ws and sending {"type": "join_event", "eventId": "<id>"}.
"""

import sys
import uuid
from datetime import datetime, timedelta, timezone

import httpx

BASE = "http://localhost:8000/api/v1"


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  livecut serve --reload")
        sys.exit(1)
    health = resp.json()
    print(f"  Postgres: {'✓' if health['postgres'] == 'ok' else '✗'}")
    print(f"  Redis:    {'✓' if health['redis'] == 'ok' else '✗ (rate limiting off)'}")

    # ── Organizer account (session cookie stays on the client) ────
    print("\n1. Registering organizer...")
    email = f"organizer-{run_id}@example.com"
    password = "demo-password-123"
    resp = client.post("/auth/register", json={
        "email": email, "password": password, "first_name": "Demo",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Logged in as {email}")

    # ── Create event ──────────────────────────────────────────────
    print("\n2. Creating event...")
    resp = client.post("/events", json={
        "name": f"Demo Derby {run_id}",
        "sport_type": "soccer",
        "start_date_time": (datetime.now(timezone.utc) + timedelta(minutes=5)).isoformat(),
        "duration": 2,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    event = resp.json()
    print(f"   Event: {event['name']} ({event['id'][:8]}...)")
    print(f"   Join code: {event['event_code']}")
    print(f"   Playback:  {event['playback_url']}")

    # ── Cameras join (operators need no account) ──────────────────
    print("\n3. Cameras joining...")
    operator = httpx.Client(base_url=BASE, timeout=10)
    cameras = []
    for label in ("Wide", "Goal line"):
        resp = operator.post(f"/events/{event['id']}/cameras", json={
            "label": label, "quality": "1080p", "operator_name": f"{label} op",
        })
        assert resp.status_code == 201, f"Failed: {resp.text}"
        cam = resp.json()
        cameras.append(cam)
        print(f"   {cam['label']}: push to {cam['rtmp_url']} with key {cam['stream_key']}")

    for cam in cameras:
        resp = operator.patch(f"/cameras/{cam['id']}/status", json={"is_live": True})
        assert resp.status_code == 200, f"Failed: {resp.text}"
    print("   Both cameras live")

    # ── Go live and direct ────────────────────────────────────────
    print("\n4. Starting broadcast...")
    resp = client.post(f"/events/{event['id']}/start")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Status: {resp.json()['status']}")

    print("\n5. Switching cameras...")
    for cam in (cameras[0], cameras[1], cameras[0]):
        resp = client.patch(f"/events/{event['id']}/switch", json={"camera_id": cam["id"]})
        assert resp.status_code == 200, f"Failed: {resp.text}"
        print(f"   → on air: {cam['label']}")

    # ── Switch log ────────────────────────────────────────────────
    print("\n6. Switch log (newest first):")
    log = client.get(f"/events/{event['id']}/switch-log").json()
    labels = {c["id"]: c["label"] for c in cameras}
    for entry in log:
        print(f"   #{entry['id']} {labels[entry['camera_id']]} at {entry['switched_at']}")

    # ── Wrap up ───────────────────────────────────────────────────
    print("\n7. Ending broadcast...")
    resp = client.post(f"/events/{event['id']}/stop")
    assert resp.status_code == 200, f"Failed: {resp.text}"

    print(f"\n✓ Broadcast finished. {len(log)} switches recorded for {event['event_code']}.")


if __name__ == "__main__":
    main()
