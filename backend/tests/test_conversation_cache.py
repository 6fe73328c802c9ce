from datetime import datetime, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from webchat.domain.entities.conversation import (
    Conversation,
    ConversationKind,
    Membership,
)
from webchat.domain.entities.user import User
from webchat.domain.exceptions import StorageError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username
from webchat.infrastructure.cache import (
    CachedConversationRepository,
    CachedMessageRepository,
    CachedUserRepository,
    ConversationCache,
)


def _conversation(conversation_id: int = 7, name: str = "A,B") -> Conversation:
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    cid = ConversationId(conversation_id)
    return Conversation(
        id=cid,
        name=name,
        kind=ConversationKind.DIRECT,
        created_at=now,
        memberships=[
            Membership(cid, User(UserId(1), "alice", now), now),
            Membership(cid, User(UserId(2), "bob", now), now),
        ],
    )


class UnreachableLookups:
    """Conversation repository whose member lookups fail; everything else is real."""

    def __init__(self, repo):
        self._repo = repo

    def __getattr__(self, name):
        return getattr(self._repo, name)

    async def member_ids(self, conversation_id):
        raise StorageError("database is locked")

    async def list_for_user(self, user_id):
        raise StorageError("database is locked")


class CountingLoader:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


class BrokenRedis:
    """Every command fails the way a dropped Redis connection does."""

    def __getattr__(self, name):
        async def fail(*args, **kwargs):
            raise RedisConnectionError("redis is down")

        return fail

    def pipeline(self, *args, **kwargs):
        raise RedisConnectionError("redis is down")


class TestReadThrough:
    async def test_miss_loads_then_hit_serves_from_cache(self, cache):
        loader = CountingLoader(_conversation())

        first = await cache.get_conversation(ConversationId(7), loader)
        second = await cache.get_conversation(ConversationId(7), loader)

        assert loader.calls == 1
        assert second == first
        assert second.memberships[1].user.username == "bob"

    async def test_entries_carry_their_family_ttl(self, cache, redis):
        await cache.get_conversation(ConversationId(7), CountingLoader(_conversation()))
        await cache.get_user_conversations(UserId(1), CountingLoader([_conversation()]))

        assert 0 < await redis.ttl("conversation:7") <= 900
        assert 0 < await redis.ttl("userConversations:1") <= 300

    async def test_not_found_is_never_cached(self, cache, redis):
        loader = CountingLoader(None)

        assert await cache.get_conversation(ConversationId(7), loader) is None
        assert await cache.get_conversation(ConversationId(7), loader) is None
        assert loader.calls == 2
        assert await redis.exists("conversation:7") == 0

    async def test_user_list_keeps_order(self, cache):
        listed = [_conversation(9, "newer"), _conversation(3, "older")]
        loader = CountingLoader(listed)

        await cache.get_user_conversations(UserId(1), loader)
        cached = await cache.get_user_conversations(UserId(1), loader)

        assert loader.calls == 1
        assert [c.name for c in cached] == ["newer", "older"]

    async def test_unreadable_entry_is_replaced(self, cache, redis):
        await redis.set("conversation:7", "{not json", ex=900)
        loader = CountingLoader(_conversation())

        assert (await cache.get_conversation(ConversationId(7), loader)).name == "A,B"
        assert (await cache.get_conversation(ConversationId(7), loader)).name == "A,B"
        assert loader.calls == 1


class TestInvalidation:
    async def test_invalidate_drops_conversation_and_member_lists(self, cache, redis):
        await cache.get_conversation(ConversationId(7), CountingLoader(_conversation()))
        for uid in (1, 2):
            await cache.get_user_conversations(UserId(uid), CountingLoader([_conversation()]))

        await cache.invalidate_conversation(ConversationId(7), [UserId(1), UserId(2)])

        assert await redis.exists("conversation:7", "userConversations:1", "userConversations:2") == 0

    async def test_load_racing_an_invalidation_is_not_written_back(self, cache, redis):
        stale = _conversation(name="before")

        async def slow_loader():
            # The write and its invalidation land while this read is in flight
            await cache.invalidate_conversation(ConversationId(7), [UserId(1)])
            return stale

        returned = await cache.get_conversation(ConversationId(7), slow_loader)

        assert returned is stale
        assert await redis.exists("conversation:7") == 0

        fresh = CountingLoader(_conversation(name="after"))
        assert (await cache.get_conversation(ConversationId(7), fresh)).name == "after"
        assert fresh.calls == 1


class TestDegradedRedis:
    async def test_reads_fall_back_to_the_store(self):
        cache = ConversationCache(BrokenRedis())
        loader = CountingLoader(_conversation())

        assert (await cache.get_conversation(ConversationId(7), loader)).name == "A,B"
        assert (await cache.get_conversation(ConversationId(7), loader)).name == "A,B"
        assert loader.calls == 2

    async def test_invalidation_failure_is_swallowed(self):
        cache = ConversationCache(BrokenRedis())
        await cache.invalidate_conversation(ConversationId(7), [UserId(1)])


class TestCachedRepositories:
    @pytest.fixture()
    def cached_conversations(self, conversations, cache):
        return CachedConversationRepository(conversations, cache)

    @pytest.fixture()
    def cached_messages(self, messages, conversations, cache):
        return CachedMessageRepository(messages, conversations, cache)

    @pytest.fixture()
    def cached_users(self, users, conversations, cache):
        return CachedUserRepository(users, conversations, cache)

    async def test_add_message_invalidates_every_member_list(
        self, cached_conversations, cached_messages, redis, alice, bob
    ):
        conv = await cached_conversations.create("A,B", [alice.id, bob.id])
        await cached_conversations.get_by_id(conv.id)
        await cached_conversations.list_for_user(alice.id)
        await cached_conversations.list_for_user(bob.id)
        assert await redis.exists(f"userConversations:{bob.id}") == 1

        await cached_messages.add(conv.id, alice.id, "hi")

        assert await redis.exists(
            f"conversation:{conv.id}",
            f"userConversations:{alice.id}",
            f"userConversations:{bob.id}",
        ) == 0

    async def test_new_member_sees_conversation_immediately(
        self, cached_conversations, alice, bob, carol
    ):
        conv = await cached_conversations.create("A,B", [alice.id, bob.id])
        assert await cached_conversations.list_for_user(carol.id) == []

        await cached_conversations.add_membership(conv.id, carol.id)

        assert [c.id for c in await cached_conversations.list_for_user(carol.id)] == [conv.id]
        assert carol.id in (await cached_conversations.get_by_id(conv.id)).member_ids

    async def test_removed_member_list_is_refreshed(
        self, cached_conversations, alice, bob, carol
    ):
        conv = await cached_conversations.create("team", [alice.id, bob.id, carol.id])
        assert len(await cached_conversations.list_for_user(carol.id)) == 1

        await cached_conversations.remove_membership(conv.id, carol.id)

        assert await cached_conversations.list_for_user(carol.id) == []
        assert carol.id not in (await cached_conversations.get_by_id(conv.id)).member_ids

    async def test_rename_refreshes_cached_snapshots(
        self, cached_conversations, cached_users, alice, bob
    ):
        conv = await cached_conversations.create("A,B", [alice.id, bob.id])
        await cached_conversations.get_by_id(conv.id)
        await cached_conversations.list_for_user(bob.id)

        await cached_users.rename(alice.id, Username("alicia"))

        names = {m.user.username for m in (await cached_conversations.get_by_id(conv.id)).memberships}
        assert names == {"alicia", "bob"}
        listed = (await cached_conversations.list_for_user(bob.id))[0]
        assert "alicia" in {m.user.username for m in listed.memberships}

    async def test_delete_user_refreshes_cached_snapshots(
        self, cached_conversations, cached_users, alice, bob, carol
    ):
        conv = await cached_conversations.create("team", [alice.id, bob.id, carol.id])
        await cached_conversations.get_by_id(conv.id)

        assert await cached_users.delete(carol.id) is True

        assert carol.id not in (await cached_conversations.get_by_id(conv.id)).member_ids


class TestLookupFailureAfterCommit:
    async def test_committed_message_is_returned_once(
        self, conversations, messages, cache, redis, alice, bob
    ):
        conv = await conversations.create("A,B", [alice.id, bob.id])
        cached_conversations = CachedConversationRepository(conversations, cache)
        await cached_conversations.get_by_id(conv.id)
        await cached_conversations.list_for_user(alice.id)
        cached_messages = CachedMessageRepository(
            messages, UnreachableLookups(conversations), cache
        )

        message = await cached_messages.add(conv.id, alice.id, "hi")

        assert message.content == "hi"
        history = await messages.list_by_conversation(conv.id, limit=10)
        assert [m.id for m in history] == [message.id]
        assert await redis.exists(
            f"conversation:{conv.id}", f"userConversations:{alice.id}"
        ) == 0

    async def test_membership_change_still_refreshes_the_changed_user(
        self, conversations, cache, alice, bob, carol
    ):
        conv = await conversations.create("A,B", [alice.id, bob.id])
        reader = CachedConversationRepository(conversations, cache)
        writer = CachedConversationRepository(UnreachableLookups(conversations), cache)
        assert await reader.list_for_user(carol.id) == []

        assert await writer.add_membership(conv.id, carol.id) is True
        assert [c.id for c in await reader.list_for_user(carol.id)] == [conv.id]

        assert await writer.remove_membership(conv.id, carol.id) is True
        assert await reader.list_for_user(carol.id) == []
        assert carol.id not in (await reader.get_by_id(conv.id)).member_ids

    async def test_rename_is_returned(self, users, conversations, cache, alice, bob):
        await conversations.create("A,B", [alice.id, bob.id])
        cached_users = CachedUserRepository(users, UnreachableLookups(conversations), cache)

        renamed = await cached_users.rename(alice.id, Username("alicia"))

        assert renamed.username == "alicia"
        assert (await users.get_by_id(alice.id)).username == "alicia"
