"""Real-time infrastructure — in-process fan-out over WebSockets.

Learn: Events flow one way:
1. Command handlers (switch camera, toggle liveness, chat) → registry.broadcast()
2. Registry → every WebSocket subscribed to that event's channel

Clients only send control messages (join/leave/ping) upstream.
"""
