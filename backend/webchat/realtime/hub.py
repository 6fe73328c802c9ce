"""
Real-Time Hub - live connection lifecycle and event fan-out.

Per-connection state machine:
    Connecting → Attached → (JoinedRoom)* → Detached

DATA FLOW (message send):
    store write ──► cache invalidation ──► Hub.publish_message() ──► room members

Fan-out rules:
- Events for a conversation go only to connections currently joined to its room.
- Sends run concurrently (asyncio.gather); one failing recipient never stops
  delivery to the others.
- A failed send marks the connection stale and detaches it. Nothing raised by
  a send ever reaches the caller of a publish method.
- No queueing: an event for an empty room is dropped.

Room membership here is a live-event subscription only. It neither requires
nor grants a durable conversation membership.
"""

import asyncio
import logging
from typing import Optional

from webchat.domain.entities.message import MessageStatus
from webchat.domain.exceptions import DomainValidationError, StaleConnectionError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.observability.metrics import (
    connection_attached,
    connection_detached,
    increment_event_deliveries,
    increment_stale_connections,
)
from webchat.realtime.connection import LiveConnection
from webchat.realtime.events import (
    EventType,
    MessageEvent,
    MessageStatusChanged,
    PresenceChanged,
    TypingChanged,
    envelope,
    normalize_message_event,
)
from webchat.realtime.registry import PresenceRegistry, RoomRegistry, TypingRegistry

logger = logging.getLogger(__name__)


class Hub:
    def __init__(self):
        self._presence = PresenceRegistry()
        self._rooms = RoomRegistry()
        self._typing = TypingRegistry()

    # ==================== CONNECTION LIFECYCLE ====================

    async def attach(
        self, connection: LiveConnection, user_id: UserId, username: str
    ) -> bool:
        """
        Register a connection under a user. Idempotent per connection.

        Returns:
            False if the connection was already attached as this user

        Raises:
            DomainValidationError: connection is already attached as another user
        """
        if connection.is_attached:
            if connection.user_id == user_id:
                return False
            raise DomainValidationError(
                f"Connection is already attached as user {connection.user_id}"
            )

        connection.user_id = user_id
        connection.username = username
        first = await self._presence.add(user_id.value, connection)
        connection_attached()
        logger.info(f"[Hub] Attached {connection.id} as user {user_id} ({username})")

        if first:
            others = [c for c in self._presence.all_connections() if c != connection]
            await self._fan_out(
                others,
                EventType.PRESENCE_CHANGED,
                PresenceChanged(user_id=user_id.value, username=username, is_online=True),
            )
        return True

    async def detach(self, connection: LiveConnection) -> bool:
        """
        Remove a connection from presence, from every room and from every
        typing flag it raised. Typing-cleared events go to the rooms it
        leaves; presence goes offline when the user's last connection leaves.

        Returns:
            False if the connection was not attached (already detached)
        """
        if not connection.is_attached:
            return False

        user_id, username = connection.user_id, connection.username
        # Marks the connection detached before any await, so a failed send
        # during the cleanup broadcasts cannot detach it a second time
        connection.user_id = None

        flags = self._typing.flags_set_by(connection)
        for conversation_id in self._rooms.rooms_of(connection):
            async with self._rooms.lock(conversation_id):
                self._rooms.leave(conversation_id, connection)

        for conversation_id, flag_user_id, flag_username in flags:
            async with self._rooms.lock(conversation_id):
                changed = self._typing.set(
                    conversation_id, flag_user_id, flag_username, connection, False
                )
                recipients = self._rooms.members(conversation_id)
            if changed:
                await self._fan_out(
                    recipients,
                    EventType.TYPING_CHANGED,
                    TypingChanged(
                        conversation_id=conversation_id,
                        user_id=flag_user_id,
                        username=flag_username,
                        is_typing=False,
                    ),
                )

        last = await self._presence.remove(user_id.value, connection)
        connection_detached()
        logger.info(f"[Hub] Detached {connection.id} (user {user_id})")

        if last:
            await self._fan_out(
                self._presence.all_connections(),
                EventType.PRESENCE_CHANGED,
                PresenceChanged(user_id=user_id.value, username=username, is_online=False),
            )
        return True

    # ==================== ROOMS ====================

    async def join_room(
        self, connection: LiveConnection, conversation_id: ConversationId
    ) -> bool:
        """Subscribe to a conversation's live events. False if already joined."""
        self._require_attached(connection)
        async with self._rooms.lock(conversation_id.value):
            joined = self._rooms.join(conversation_id.value, connection)
        if joined:
            logger.debug(f"[Hub] {connection.id} joined room {conversation_id}")
        return joined

    async def leave_room(
        self, connection: LiveConnection, conversation_id: ConversationId
    ) -> bool:
        """Unsubscribe. False (no-op) if the connection was not in the room."""
        cid = conversation_id.value
        cleared: Optional[TypingChanged] = None
        async with self._rooms.lock(cid):
            left = self._rooms.leave(cid, connection)
            for flag_cid, flag_user_id, flag_username in self._typing.flags_set_by(connection):
                if flag_cid == cid and self._typing.set(
                    cid, flag_user_id, flag_username, connection, False
                ):
                    cleared = TypingChanged(
                        conversation_id=cid,
                        user_id=flag_user_id,
                        username=flag_username,
                        is_typing=False,
                    )
            recipients = self._rooms.members(cid)

        if cleared is not None:
            await self._fan_out(recipients, EventType.TYPING_CHANGED, cleared)
        if left:
            logger.debug(f"[Hub] {connection.id} left room {conversation_id}")
        return left

    # ==================== TYPING ====================

    async def set_typing(
        self,
        connection: LiveConnection,
        conversation_id: ConversationId,
        is_typing: bool,
    ) -> bool:
        """
        Raise or clear the connection's user typing flag and tell the rest of
        the room. Returns False (nothing broadcast) if the flag did not change.
        """
        self._require_attached(connection)
        cid = conversation_id.value
        async with self._rooms.lock(cid):
            changed = self._typing.set(
                cid, connection.user_id.value, connection.username, connection, is_typing
            )
            recipients = [c for c in self._rooms.members(cid) if c != connection]

        if changed:
            await self._fan_out(
                recipients,
                EventType.TYPING_CHANGED,
                TypingChanged(
                    conversation_id=cid,
                    user_id=connection.user_id.value,
                    username=connection.username,
                    is_typing=is_typing,
                ),
            )
        return changed

    # ==================== PUBLISH ====================

    async def publish_message(self, event: MessageEvent) -> int:
        """
        Fan a new message out to the conversation's room.
        Must only be called once the message is durable and the cache invalidated.

        Returns:
            Number of connections the event was delivered to
        """
        payload = normalize_message_event(event)
        return await self._fan_out(
            self._rooms.members(payload.conversation_id),
            EventType.MESSAGE_RECEIVED,
            payload,
        )

    async def publish_status_changed(
        self,
        conversation_id: ConversationId,
        message_ids: list[MessageId],
        status: MessageStatus,
    ) -> int:
        if not message_ids:
            return 0
        return await self._fan_out(
            self._rooms.members(conversation_id.value),
            EventType.MESSAGE_STATUS_CHANGED,
            MessageStatusChanged(
                conversation_id=conversation_id.value,
                message_ids=[m.value for m in message_ids],
                status=status,
            ),
        )

    # ==================== INTROSPECTION ====================

    def room_members(self, conversation_id: ConversationId) -> list[LiveConnection]:
        return self._rooms.members(conversation_id.value)

    def rooms_of(self, connection: LiveConnection) -> list[ConversationId]:
        return [ConversationId(cid) for cid in self._rooms.rooms_of(connection)]

    def typing_users(self, conversation_id: ConversationId) -> dict[int, str]:
        return self._typing.typing_users(conversation_id.value)

    def is_online(self, user_id: UserId) -> bool:
        return self._presence.is_online(user_id.value)

    def online_user_ids(self) -> list[UserId]:
        return [UserId(uid) for uid in self._presence.online_user_ids()]

    # ==================== FAN-OUT ====================

    @staticmethod
    def _require_attached(connection: LiveConnection) -> None:
        if not connection.is_attached:
            raise DomainValidationError("Connection must attach before this command")

    async def _send(self, connection: LiveConnection, payload: dict) -> None:
        try:
            await connection.send(payload)
        except Exception as e:
            raise StaleConnectionError(connection.id) from e

    async def _fan_out(
        self, connections: list[LiveConnection], event_type: EventType, event
    ) -> int:
        if not connections:
            return 0

        payload = envelope(event_type, event)
        results = await asyncio.gather(
            *[self._send(conn, payload) for conn in connections],
            return_exceptions=True,
        )

        stale = [
            conn for conn, result in zip(connections, results)
            if isinstance(result, BaseException)
        ]
        delivered = len(connections) - len(stale)
        increment_event_deliveries(event_type.value, delivered)

        for conn in stale:
            logger.info(f"[Hub] Stale connection {conn.id} during {event_type.value}, detaching")
            increment_stale_connections()
            await self.detach(conn)
        return delivered
