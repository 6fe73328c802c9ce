import asyncio
from datetime import datetime, timezone

import pytest

from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.entities.user import User
from webchat.domain.exceptions import DomainValidationError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.realtime.events import LiveMessageEvent, PersistedMessageEvent
from webchat.realtime.hub import Hub

ROOM = ConversationId(1)
OTHER_ROOM = ConversationId(2)


def _message(content: str = "hi") -> Message:
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    return Message(
        id=MessageId(10),
        conversation_id=ROOM,
        sender_id=UserId(1),
        content=content,
        created_at=now,
        status=MessageStatus.SENT,
        sender=User(UserId(1), "alice", now),
    )


@pytest.fixture()
def hub():
    return Hub()


@pytest.fixture()
def attached(hub, make_connection):
    async def _attached(user_id: int, username: str, fail: bool = False):
        connection, socket = make_connection(fail=fail)
        await hub.attach(connection, UserId(user_id), username)
        socket.sent.clear()
        return connection, socket

    return _attached


class TestAttach:
    async def test_attach_is_idempotent_per_connection(self, hub, make_connection):
        connection, _ = make_connection()

        assert await hub.attach(connection, UserId(1), "alice") is True
        assert await hub.attach(connection, UserId(1), "alice") is False
        assert hub.is_online(UserId(1))

    async def test_attach_as_another_user_is_rejected(self, hub, make_connection):
        connection, _ = make_connection()
        await hub.attach(connection, UserId(1), "alice")

        with pytest.raises(DomainValidationError):
            await hub.attach(connection, UserId(2), "bob")

    async def test_join_before_attach_is_rejected(self, hub, make_connection):
        connection, _ = make_connection()
        with pytest.raises(DomainValidationError):
            await hub.join_room(connection, ROOM)

    async def test_presence_changes_on_first_and_last_connection(self, hub, attached, make_connection):
        _, watcher = await attached(2, "bob")
        phone, _ = make_connection()
        laptop, _ = make_connection()

        await hub.attach(phone, UserId(1), "alice")
        await hub.attach(laptop, UserId(1), "alice")
        await hub.detach(phone)
        await hub.detach(laptop)

        assert watcher.of_type("presence_changed") == [
            {"userId": 1, "username": "alice", "isOnline": True},
            {"userId": 1, "username": "alice", "isOnline": False},
        ]
        assert not hub.is_online(UserId(1))


class TestRooms:
    async def test_join_twice_leaves_one_entry(self, hub, attached):
        connection, _ = await attached(1, "alice")

        assert await hub.join_room(connection, ROOM) is True
        assert await hub.join_room(connection, ROOM) is False
        assert hub.room_members(ROOM) == [connection]

    async def test_leave_non_member_is_noop(self, hub, attached):
        connection, _ = await attached(1, "alice")
        assert await hub.leave_room(connection, ROOM) is False

    async def test_events_only_reach_joined_connections(self, hub, attached):
        member, member_socket = await attached(1, "alice")
        outsider, outsider_socket = await attached(2, "bob")
        await hub.join_room(member, ROOM)
        await hub.join_room(outsider, OTHER_ROOM)

        delivered = await hub.publish_message(PersistedMessageEvent.from_message(_message()))

        assert delivered == 1
        assert len(member_socket.of_type("message_received")) == 1
        assert outsider_socket.of_type("message_received") == []

    async def test_left_connection_stops_receiving(self, hub, attached):
        connection, socket = await attached(1, "alice")
        await hub.join_room(connection, ROOM)
        await hub.leave_room(connection, ROOM)

        assert await hub.publish_message(PersistedMessageEvent.from_message(_message())) == 0
        assert socket.of_type("message_received") == []

    async def test_concurrent_joins_keep_every_connection(self, hub, attached):
        connections = [(await attached(i, f"user{i}"))[0] for i in range(1, 21)]

        await asyncio.gather(*[hub.join_room(c, ROOM) for c in connections])

        assert set(hub.room_members(ROOM)) == set(connections)


class TestMessageEvents:
    async def test_persisted_and_live_events_share_one_shape(self, hub, attached):
        connection, socket = await attached(2, "bob")
        await hub.join_room(connection, ROOM)

        await hub.publish_message(PersistedMessageEvent.from_message(_message("hi")))
        await hub.publish_message(
            LiveMessageEvent(conversation_id=ROOM.value, sender_username="alice", content="yo")
        )

        persisted, live = socket.of_type("message_received")
        assert set(persisted) == set(live)
        assert persisted["senderUsername"] == "alice"
        assert persisted["content"] == "hi"
        assert persisted["messageId"] == 10
        assert persisted["status"] == "sent"
        assert persisted["timestamp"].startswith("2024-05-01")
        assert live["timestamp"] is None
        assert live["content"] == "yo"
        assert live["messageId"] is None

    async def test_empty_room_drops_event(self, hub):
        assert await hub.publish_message(PersistedMessageEvent.from_message(_message())) == 0

    async def test_status_changes_are_broadcast(self, hub, attached):
        connection, socket = await attached(1, "alice")
        await hub.join_room(connection, ROOM)

        await hub.publish_status_changed(ROOM, [MessageId(10)], MessageStatus.READ)

        assert socket.of_type("message_status_changed") == [
            {"conversationId": 1, "messageIds": [10], "status": "read"}
        ]


class TestTyping:
    async def test_typing_is_broadcast_to_everyone_but_the_typist(self, hub, attached):
        typist, typist_socket = await attached(1, "alice")
        reader, reader_socket = await attached(2, "bob")
        for c in (typist, reader):
            await hub.join_room(c, ROOM)

        assert await hub.set_typing(typist, ROOM, True) is True
        assert await hub.set_typing(typist, ROOM, True) is False

        assert reader_socket.of_type("typing_changed") == [
            {"conversationId": 1, "userId": 1, "username": "alice", "isTyping": True}
        ]
        assert typist_socket.of_type("typing_changed") == []
        assert hub.typing_users(ROOM) == {1: "alice"}

    async def test_detach_clears_typing_and_tells_the_room(self, hub, attached):
        typist, _ = await attached(1, "alice")
        reader, reader_socket = await attached(2, "bob")
        for c in (typist, reader):
            await hub.join_room(c, ROOM)
        await hub.set_typing(typist, ROOM, True)

        assert await hub.detach(typist) is True
        assert await hub.detach(typist) is False

        assert reader_socket.of_type("typing_changed")[-1]["isTyping"] is False
        assert hub.typing_users(ROOM) == {}
        assert hub.room_members(ROOM) == [reader]

    async def test_leaving_a_room_clears_typing_there(self, hub, attached):
        typist, _ = await attached(1, "alice")
        reader, reader_socket = await attached(2, "bob")
        for c in (typist, reader):
            await hub.join_room(c, ROOM)
        await hub.set_typing(typist, ROOM, True)

        await hub.leave_room(typist, ROOM)

        assert reader_socket.of_type("typing_changed")[-1]["isTyping"] is False
        assert hub.typing_users(ROOM) == {}


class TestStaleConnections:
    async def test_failed_send_detaches_without_affecting_others(self, hub, attached):
        healthy, healthy_socket = await attached(1, "alice")
        dead, _ = await attached(2, "bob", fail=True)
        for c in (healthy, dead):
            await hub.join_room(c, ROOM)

        delivered = await hub.publish_message(PersistedMessageEvent.from_message(_message()))

        assert delivered == 1
        assert len(healthy_socket.of_type("message_received")) == 1
        assert hub.room_members(ROOM) == [healthy]
        assert not hub.is_online(UserId(2))
        assert healthy_socket.of_type("presence_changed")[-1] == {
            "userId": 2,
            "username": "bob",
            "isOnline": False,
        }
