import pytest

from webchat.domain.entities.conversation import ConversationKind
from webchat.domain.entities.message import MessageStatus
from webchat.domain.exceptions import (
    ConflictError,
    DomainValidationError,
    EntityNotFoundError,
)
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username


class TestUserStore:
    async def test_create_assigns_identity(self, users):
        user = await users.create(Username("  dana  "))
        assert user.id.value > 0
        assert user.username == "dana"
        assert user.created_at.tzinfo is not None

    async def test_names_differing_only_by_case_conflict(self, users, alice):
        with pytest.raises(ConflictError):
            await users.create(Username("ALICE"))

    async def test_lookups_return_none_when_absent(self, users):
        assert await users.get_by_id(UserId(999)) is None
        assert await users.get_by_name("nobody") is None

    async def test_get_by_name_is_case_insensitive(self, users, alice):
        found = await users.get_by_name("Alice")
        assert found is not None
        assert found.id == alice.id

    async def test_rename_keeps_identity(self, users, alice):
        renamed = await users.rename(alice.id, Username("alicia"))
        assert renamed.id == alice.id
        assert (await users.get_by_id(alice.id)).username == "alicia"

    async def test_rename_to_taken_name_conflicts(self, users, alice, bob):
        with pytest.raises(ConflictError):
            await users.rename(alice.id, Username("Bob"))

    async def test_rename_missing_user_returns_none(self, users):
        assert await users.rename(UserId(42), Username("ghost")) is None

    async def test_delete_keeps_messages_without_sender(
        self, users, conversations, messages, alice, bob
    ):
        conv = await conversations.create("A,B", [alice.id, bob.id])
        sent = await messages.add(conv.id, alice.id, "bye")

        assert await users.delete(alice.id) is True
        assert await users.delete(alice.id) is False

        kept = await messages.get_by_id(sent.id)
        assert kept.sender_id is None
        assert kept.sender is None
        assert (await conversations.member_ids(conv.id)) == [bob.id]


class TestConversationStore:
    async def test_two_participants_make_a_direct_conversation(
        self, conversations, alice, bob
    ):
        conv = await conversations.create("A,B", [alice.id, bob.id])
        assert conv.kind is ConversationKind.DIRECT
        assert len(conv.memberships) == 2
        assert {m.user.username for m in conv.memberships} == {"alice", "bob"}

    async def test_three_participants_make_a_group(self, conversations, alice, bob, carol):
        conv = await conversations.create("team", [alice.id, bob.id, carol.id])
        assert conv.kind is ConversationKind.GROUP

    async def test_fewer_than_two_participants_is_rejected(self, conversations, alice):
        with pytest.raises(DomainValidationError):
            await conversations.create("solo", [alice.id])

    async def test_unknown_participant_ids_are_skipped(self, conversations, alice, bob):
        conv = await conversations.create("A,B,?", [alice.id, bob.id, UserId(999)])
        assert sorted(m.value for m in conv.member_ids) == sorted([alice.id.value, bob.id.value])

    async def test_list_for_user_is_newest_first(self, conversations, alice, bob, carol):
        first = await conversations.create("first", [alice.id, bob.id])
        second = await conversations.create("second", [alice.id, carol.id])
        await conversations.create("not mine", [bob.id, carol.id])

        listed = await conversations.list_for_user(alice.id)
        assert [c.id for c in listed] == [second.id, first.id]
        assert all(len(c.memberships) == 2 for c in listed)

    async def test_list_for_user_without_memberships_is_empty(self, conversations, alice):
        assert await conversations.list_for_user(alice.id) == []

    async def test_membership_changes_are_idempotent(
        self, conversations, alice, bob, carol
    ):
        conv = await conversations.create("A,B", [alice.id, bob.id])

        assert await conversations.add_membership(conv.id, carol.id) is True
        assert await conversations.add_membership(conv.id, carol.id) is False
        assert await conversations.remove_membership(conv.id, carol.id) is True
        assert await conversations.remove_membership(conv.id, carol.id) is False

    async def test_conversation_may_shrink_below_two(self, conversations, alice, bob):
        conv = await conversations.create("A,B", [alice.id, bob.id])
        await conversations.remove_membership(conv.id, bob.id)

        reloaded = await conversations.get_by_id(conv.id)
        assert reloaded is not None
        assert reloaded.member_ids == [alice.id]

    async def test_add_membership_to_missing_conversation(self, conversations, alice):
        with pytest.raises(EntityNotFoundError):
            await conversations.add_membership(ConversationId(404), alice.id)


class TestMessageStore:
    @pytest.fixture()
    async def conv(self, conversations, alice, bob):
        return await conversations.create("A,B", [alice.id, bob.id])

    async def test_add_starts_as_sent_with_sender(self, messages, conv, alice):
        message = await messages.add(conv.id, alice.id, "hi")
        assert message.status is MessageStatus.SENT
        assert message.sender_username == "alice"

    async def test_add_to_missing_conversation(self, messages, alice):
        with pytest.raises(EntityNotFoundError):
            await messages.add(ConversationId(404), alice.id, "hi")

    async def test_history_is_chronological(self, messages, conv, alice, bob):
        for i in range(5):
            await messages.add(conv.id, alice.id if i % 2 else bob.id, f"m{i}")

        history = await messages.list_by_conversation(conv.id, limit=100)
        assert [m.content for m in history] == ["m0", "m1", "m2", "m3", "m4"]
        keys = [(m.created_at, m.id.value) for m in history]
        assert keys == sorted(keys)

    async def test_paging_takes_latest_window_oldest_first(self, messages, conv, alice):
        for i in range(6):
            await messages.add(conv.id, alice.id, f"m{i}")

        latest = await messages.list_by_conversation(conv.id, limit=2)
        older = await messages.list_by_conversation(conv.id, limit=2, offset=2)

        assert [m.content for m in latest] == ["m4", "m5"]
        assert [m.content for m in older] == ["m2", "m3"]

    async def test_before_id_excludes_that_id_and_newer(self, messages, conv, alice):
        sent = [await messages.add(conv.id, alice.id, f"m{i}") for i in range(5)]
        cutoff = sent[3].id

        page = await messages.list_by_conversation(conv.id, limit=100, before_id=cutoff)
        assert all(m.id.value < cutoff.value for m in page)
        assert [m.content for m in page] == ["m0", "m1", "m2"]

    async def test_set_status_overwrites(self, messages, conv, alice):
        message = await messages.add(conv.id, alice.id, "hi")

        assert await messages.set_status(message.id, MessageStatus.READ) is True
        assert (await messages.get_by_id(message.id)).status is MessageStatus.READ
        assert await messages.set_status(MessageId(999), MessageStatus.READ) is False

    async def test_advance_status_never_regresses(self, messages, conv, alice):
        message = await messages.add(conv.id, alice.id, "hi")

        assert await messages.advance_status(
            conv.id, MessageStatus.READ, message_ids=[message.id]
        ) == [message.id]
        assert await messages.advance_status(
            conv.id, MessageStatus.DELIVERED, message_ids=[message.id]
        ) == []
        assert (await messages.get_by_id(message.id)).status is MessageStatus.READ

    async def test_advance_status_up_to_skips_own_messages(
        self, messages, conv, alice, bob
    ):
        from_alice = await messages.add(conv.id, alice.id, "one")
        from_bob = await messages.add(conv.id, bob.id, "two")
        later = await messages.add(conv.id, alice.id, "three")

        changed = await messages.advance_status(
            conv.id, MessageStatus.READ, up_to_id=from_bob.id, exclude_sender_id=bob.id
        )

        assert changed == [from_alice.id]
        assert (await messages.get_by_id(from_bob.id)).status is MessageStatus.SENT
        assert (await messages.get_by_id(later.id)).status is MessageStatus.SENT
