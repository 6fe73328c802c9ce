"""
Real-time layer - live connections, room subscriptions and event fan-out.

All state here is process-local and rebuilt from nothing on restart:
- registry.py   → Presence, Room and Typing registries (in-memory maps)
- events.py     → Outbound event models and the ws envelope
- protocol.py   → Inbound ws command models
- connection.py → LiveConnection (one per WebSocket)
- hub.py        → Hub: attach/join/leave/typing/publish/detach
"""

from webchat.realtime.connection import LiveConnection
from webchat.realtime.hub import Hub

__all__ = ["Hub", "LiveConnection"]
