import pytest

from webchat.application.commands.chat.message_status import (
    AcknowledgeMessageCommand,
    AcknowledgeMessageHandler,
    MarkReadCommand,
    MarkReadHandler,
    UpdateMessageStatusCommand,
    UpdateMessageStatusHandler,
)
from webchat.application.commands.chat.send_message import (
    SendMessageCommand,
    SendMessageHandler,
)
from webchat.application.commands.conversations.create_conversation import (
    CreateConversationCommand,
    CreateConversationHandler,
)
from webchat.application.queries.chat.get_chat_history import (
    GetChatHistoryHandler,
    GetChatHistoryQuery,
)
from webchat.domain.entities.conversation import ConversationKind
from webchat.domain.entities.message import MessageStatus
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.realtime.hub import Hub


@pytest.fixture()
def hub():
    return Hub()


@pytest.fixture()
async def chat(conversations, alice, bob):
    return await conversations.create("chat", [alice.id, bob.id])


class TestCreateConversation:
    @pytest.fixture()
    def handler(self, conversations, users):
        return CreateConversationHandler(conversations, users)

    async def test_duplicate_ids_collapse_to_a_direct_chat(self, handler, alice, bob):
        conversation = await handler.execute(
            CreateConversationCommand("pair", (alice.id, bob.id, alice.id))
        )
        assert conversation.kind == ConversationKind.DIRECT
        assert sorted(conversation.member_ids, key=lambda u: u.value) == [alice.id, bob.id]

    async def test_three_participants_make_a_group(self, handler, alice, bob, carol):
        conversation = await handler.execute(
            CreateConversationCommand("trio", (alice.id, bob.id, carol.id))
        )
        assert conversation.kind == ConversationKind.GROUP

    async def test_single_distinct_participant_is_rejected(self, handler, alice):
        with pytest.raises(DomainValidationError):
            await handler.execute(CreateConversationCommand("solo", (alice.id, alice.id)))

    async def test_unknown_participant_is_rejected(self, handler, alice, bob):
        with pytest.raises(DomainValidationError, match="999"):
            await handler.execute(
                CreateConversationCommand("x", (alice.id, bob.id, UserId(999)))
            )

    async def test_blank_name_is_rejected(self, handler, alice, bob):
        with pytest.raises(DomainValidationError):
            await handler.execute(CreateConversationCommand("   ", (alice.id, bob.id)))


class TestSendMessage:
    @pytest.fixture()
    def handler(self, conversations, messages, users, hub):
        return SendMessageHandler(conversations, messages, users, hub)

    async def test_message_is_stored_then_broadcast(
        self, handler, hub, chat, alice, messages, make_connection
    ):
        connection, socket = make_connection()
        await hub.attach(connection, alice.id, "alice")
        await hub.join_room(connection, chat.id)

        message = await handler.execute(SendMessageCommand(chat.id, alice.id, "hi"))

        assert (await messages.get_by_id(message.id)).content == "hi"
        (event,) = socket.of_type("message_received")
        assert event["messageId"] == message.id.value
        assert event["senderUsername"] == "alice"

    @pytest.mark.parametrize("content", ["", "   ", "x" * 5001])
    async def test_invalid_content_is_rejected(self, handler, chat, alice, content):
        with pytest.raises(DomainValidationError):
            await handler.execute(SendMessageCommand(chat.id, alice.id, content))

    async def test_missing_conversation(self, handler, alice):
        with pytest.raises(EntityNotFoundError):
            await handler.execute(SendMessageCommand(ConversationId(404), alice.id, "hi"))

    async def test_unknown_sender(self, handler, chat):
        with pytest.raises(DomainValidationError):
            await handler.execute(SendMessageCommand(chat.id, UserId(404), "hi"))


class TestMessageStatus:
    async def test_status_never_moves_backwards(self, messages, hub, chat, alice):
        message = await messages.add(chat.id, alice.id, "hi")
        handler = UpdateMessageStatusHandler(messages, hub)

        read = await handler.execute(UpdateMessageStatusCommand(message.id, MessageStatus.READ))
        again = await handler.execute(
            UpdateMessageStatusCommand(message.id, MessageStatus.DELIVERED)
        )

        assert read.status == MessageStatus.READ
        assert again.status == MessageStatus.READ
        assert (await messages.get_by_id(message.id)).status == MessageStatus.READ

    async def test_unknown_message(self, messages, hub):
        with pytest.raises(EntityNotFoundError):
            await UpdateMessageStatusHandler(messages, hub).execute(
                UpdateMessageStatusCommand(MessageId(404), MessageStatus.READ)
            )

    async def test_sender_cannot_acknowledge_own_message(self, messages, hub, chat, alice, bob):
        message = await messages.add(chat.id, alice.id, "hi")
        handler = AcknowledgeMessageHandler(messages, hub)

        assert await handler.execute(AcknowledgeMessageCommand(message.id, alice.id)) == []
        assert await handler.execute(AcknowledgeMessageCommand(message.id, bob.id)) == [message.id]
        assert (await messages.get_by_id(message.id)).status == MessageStatus.DELIVERED

    async def test_mark_read_publishes_to_the_room(
        self, messages, hub, chat, alice, bob, make_connection
    ):
        first = await messages.add(chat.id, alice.id, "one")
        own = await messages.add(chat.id, bob.id, "two")
        last = await messages.add(chat.id, alice.id, "three")
        connection, socket = make_connection()
        await hub.attach(connection, alice.id, "alice")
        await hub.join_room(connection, chat.id)

        changed = await MarkReadHandler(messages, hub).execute(
            MarkReadCommand(chat.id, bob.id, last.id)
        )

        assert changed == [first.id, last.id]
        assert (await messages.get_by_id(own.id)).status == MessageStatus.SENT
        assert socket.of_type("message_status_changed") == [
            {
                "conversationId": chat.id.value,
                "messageIds": [first.id.value, last.id.value],
                "status": "read",
            }
        ]


class TestChatHistory:
    @pytest.fixture()
    def handler(self, conversations, messages):
        return GetChatHistoryHandler(conversations, messages)

    async def test_latest_page_oldest_first(self, handler, messages, chat, alice):
        for i in range(5):
            await messages.add(chat.id, alice.id, f"m{i}")

        page = await handler.execute(GetChatHistoryQuery(chat.id, take=2))

        assert [m.content for m in page] == ["m3", "m4"]

    @pytest.mark.parametrize("take,skip", [(0, 0), (1, -1)])
    async def test_bad_paging(self, handler, chat, take, skip):
        with pytest.raises(DomainValidationError):
            await handler.execute(GetChatHistoryQuery(chat.id, take=take, skip=skip))

    async def test_missing_conversation(self, handler):
        with pytest.raises(EntityNotFoundError):
            await handler.execute(GetChatHistoryQuery(ConversationId(404)))
