"""
Presence & Group Registry - in-memory maps owned by the Hub.

    PresenceRegistry: user_id         → {connection}
    RoomRegistry:     conversation_id → {connection}
    TypingRegistry:   conversation_id → {user_id: (username, connection_id)}

Locking:
    No lock spans the whole registry. Presence is locked per user id, rooms
    and typing per conversation id, so unrelated rooms never contend.
    Registries never touch the store or the cache.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

from webchat.realtime.connection import LiveConnection

logger = logging.getLogger(__name__)


class KeyedLocks:
    """One asyncio.Lock per key, created on first use and dropped when idle."""

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: defaultdict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)


class PresenceRegistry:
    def __init__(self):
        self._connections: dict[int, set[LiveConnection]] = {}
        self._locks = KeyedLocks()

    async def add(self, user_id: int, connection: LiveConnection) -> bool:
        """Register a connection. True if it is the user's first one."""
        async with self._locks.hold(user_id):
            connections = self._connections.setdefault(user_id, set())
            first = not connections
            connections.add(connection)
            return first

    async def remove(self, user_id: int, connection: LiveConnection) -> bool:
        """Unregister a connection. True if it was the user's last one."""
        async with self._locks.hold(user_id):
            connections = self._connections.get(user_id)
            if not connections or connection not in connections:
                return False
            connections.discard(connection)
            if connections:
                return False
            del self._connections[user_id]
            return True

    def connections_for(self, user_id: int) -> list[LiveConnection]:
        return list(self._connections.get(user_id, ()))

    def all_connections(self) -> list[LiveConnection]:
        return [c for conns in self._connections.values() for c in conns]

    def is_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def online_user_ids(self) -> list[int]:
        return list(self._connections)


class RoomRegistry:
    def __init__(self):
        self._members: dict[int, set[LiveConnection]] = {}
        self._locks = KeyedLocks()

    def lock(self, conversation_id: int):
        return self._locks.hold(conversation_id)

    def join(self, conversation_id: int, connection: LiveConnection) -> bool:
        """Caller holds lock(conversation_id). False if already joined."""
        members = self._members.setdefault(conversation_id, set())
        if connection in members:
            return False
        members.add(connection)
        return True

    def leave(self, conversation_id: int, connection: LiveConnection) -> bool:
        """Caller holds lock(conversation_id). False if not a member."""
        members = self._members.get(conversation_id)
        if not members or connection not in members:
            return False
        members.discard(connection)
        if not members:
            del self._members[conversation_id]
        return True

    def members(self, conversation_id: int) -> list[LiveConnection]:
        # Snapshot, so fan-out never iterates a set that is being mutated
        return list(self._members.get(conversation_id, ()))

    def is_member(self, conversation_id: int, connection: LiveConnection) -> bool:
        return connection in self._members.get(conversation_id, ())

    def rooms_of(self, connection: LiveConnection) -> list[int]:
        return [cid for cid, members in self._members.items() if connection in members]


class TypingRegistry:
    """
    Typing flags per conversation, keyed by user.

    Each flag remembers the connection that raised it, so detaching one
    device only clears the flags that device set. Flags never expire.
    """

    def __init__(self):
        self._typing: dict[int, dict[int, tuple[str, str]]] = {}

    def set(
        self,
        conversation_id: int,
        user_id: int,
        username: str,
        connection: LiveConnection,
        is_typing: bool,
    ) -> bool:
        """Caller holds the room lock. Returns True if the flag changed."""
        flags = self._typing.setdefault(conversation_id, {})
        changed = (user_id in flags) != is_typing
        if is_typing:
            flags[user_id] = (username, connection.id)
        else:
            flags.pop(user_id, None)
        if not flags:
            del self._typing[conversation_id]
        return changed

    def typing_users(self, conversation_id: int) -> dict[int, str]:
        return {uid: name for uid, (name, _) in self._typing.get(conversation_id, {}).items()}

    def flags_set_by(self, connection: LiveConnection) -> list[tuple[int, int, str]]:
        """(conversation_id, user_id, username) for every flag this connection raised."""
        return [
            (cid, uid, name)
            for cid, flags in self._typing.items()
            for uid, (name, origin) in flags.items()
            if origin == connection.id
        ]
