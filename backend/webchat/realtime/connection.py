"""
LiveConnection - an opaque handle for one WebSocket.

The hub only needs an identity and a way to send JSON. Keeping the socket
behind this wrapper lets the hub be driven by fake connections in tests.
"""

import asyncio
import uuid
from typing import Any, Awaitable, Callable, Optional

from webchat.domain.value_objects.user_id import UserId

SendJson = Callable[[Any], Awaitable[None]]


class LiveConnection:
    def __init__(self, send_json: SendJson, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self._send_json = send_json
        # Fan-out and command replies come from different tasks
        self._send_lock = asyncio.Lock()
        # Set by Hub.attach(); None while Connecting
        self.user_id: Optional[UserId] = None
        self.username: Optional[str] = None

    @classmethod
    def for_websocket(cls, websocket) -> "LiveConnection":
        return cls(websocket.send_json)

    @property
    def is_attached(self) -> bool:
        return self.user_id is not None

    async def send(self, payload: dict) -> None:
        async with self._send_lock:
            await self._send_json(payload)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other) -> bool:
        return isinstance(other, LiveConnection) and other.id == self.id

    def __repr__(self) -> str:
        return f"LiveConnection({self.id}, user={self.user_id})"
