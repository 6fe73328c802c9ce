"""
Conversation Cache - short-TTL Redis cache of hydrated conversations.

Key families:
- "conversation:{id}"            → one hydrated conversation   (CONVERSATION_CACHE_TTL)
- "userConversations:{userId}"   → newest-first list of them   (USER_CONVERSATIONS_CACHE_TTL)

Cache Strategy:
- Read-Through: check cache, fall back to the store, populate cache
- Invalidate-after-commit: writers delete keys only after the durable write
- No negative caching: a store "not found" is returned, never cached
- TTL is enforced by Redis on read; nothing sweeps in the background

Stale-populate guard:
    Every data key has a generation counter "{key}:gen". Invalidation deletes
    the key and bumps the counter in one MULTI. A reader remembers the counter
    before it goes to the store and populates under WATCH; if the counter moved
    while it was loading, the populate is dropped. Once an invalidation has
    completed, no reader that started before it can put its old snapshot back.

Error Handling:
- Cache failures never fail the operation: log a warning and read the store
"""

import json
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from webchat.config.settings import Config
from webchat.domain.entities.conversation import (
    Conversation,
    ConversationKind,
    Membership,
)
from webchat.domain.entities.user import User
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId
from webchat.observability.metrics import (
    CacheResult,
    MetricsErrorType,
    increment_cache_lookup,
    increment_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONVERSATION_FAMILY = "conversation"
USER_CONVERSATIONS_FAMILY = "userConversations"


class ConversationCache:
    """Redis-backed read-through cache with explicit, generation-guarded invalidation."""

    def __init__(
        self,
        redis: Redis,
        conversation_ttl: int = Config.CONVERSATION_CACHE_TTL,
        user_conversations_ttl: int = Config.USER_CONVERSATIONS_CACHE_TTL,
    ):
        self._redis = redis
        self._conversation_ttl = conversation_ttl
        self._user_conversations_ttl = user_conversations_ttl
        # Counters must outlive any load that could still be in flight
        self._generation_ttl = 2 * max(conversation_ttl, user_conversations_ttl)

    # ==================== KEYS ====================

    @staticmethod
    def conversation_key(conversation_id: ConversationId) -> str:
        return f"{CONVERSATION_FAMILY}:{conversation_id.value}"

    @staticmethod
    def user_conversations_key(user_id: UserId) -> str:
        return f"{USER_CONVERSATIONS_FAMILY}:{user_id.value}"

    @staticmethod
    def _generation_key(key: str) -> str:
        return f"{key}:gen"

    # ==================== SERIALIZATION ====================

    def _conversation_to_dict(self, conversation: Conversation) -> dict:
        return {
            "id": conversation.id.value,
            "name": conversation.name,
            "kind": conversation.kind.value,
            "created_at": conversation.created_at.isoformat(),
            "memberships": [
                {
                    "user_id": m.user.id.value,
                    "username": m.user.username,
                    "user_created_at": m.user.created_at.isoformat(),
                    "joined_at": m.joined_at.isoformat(),
                }
                for m in conversation.memberships
            ],
        }

    def _conversation_from_dict(self, d: dict) -> Conversation:
        conversation_id = ConversationId(d["id"])
        return Conversation(
            id=conversation_id,
            name=d["name"],
            kind=ConversationKind(d["kind"]),
            created_at=datetime.fromisoformat(d["created_at"]),
            memberships=[
                Membership(
                    conversation_id=conversation_id,
                    user=User(
                        id=UserId(m["user_id"]),
                        username=m["username"],
                        created_at=datetime.fromisoformat(m["user_created_at"]),
                    ),
                    joined_at=datetime.fromisoformat(m["joined_at"]),
                )
                for m in d["memberships"]
            ],
        )

    # ==================== READS ====================

    async def get_conversation(
        self,
        conversation_id: ConversationId,
        loader: Callable[[], Awaitable[Optional[Conversation]]],
    ) -> Optional[Conversation]:
        return await self._read_through(
            family=CONVERSATION_FAMILY,
            key=self.conversation_key(conversation_id),
            ttl=self._conversation_ttl,
            loader=loader,
            serialize=lambda c: json.dumps(self._conversation_to_dict(c)),
            deserialize=lambda s: self._conversation_from_dict(json.loads(s)),
        )

    async def get_user_conversations(
        self,
        user_id: UserId,
        loader: Callable[[], Awaitable[list[Conversation]]],
    ) -> list[Conversation]:
        return await self._read_through(
            family=USER_CONVERSATIONS_FAMILY,
            key=self.user_conversations_key(user_id),
            ttl=self._user_conversations_ttl,
            loader=loader,
            serialize=lambda cs: json.dumps([self._conversation_to_dict(c) for c in cs]),
            deserialize=lambda s: [self._conversation_from_dict(d) for d in json.loads(s)],
        )

    async def _read_through(
        self,
        family: str,
        key: str,
        ttl: int,
        loader: Callable[[], Awaitable[T]],
        serialize: Callable[[T], str],
        deserialize: Callable[[str], T],
    ) -> T:
        # 1. Try cache first (fast path)
        try:
            cached, generation = await self._redis.mget(key, self._generation_key(key))
        except (RedisError, OSError) as e:
            logger.warning(f"Redis cache read error for {key}: {str(e)}")
            increment_cache_lookup(family, CacheResult.ERROR)
            increment_error(MetricsErrorType.CACHE_FAILED)
            return await loader()

        if cached is not None:
            try:
                value = deserialize(cached)
            except (ValueError, KeyError, TypeError) as e:
                # Unreadable entry: drop it and reload, as on a miss
                logger.warning(f"Discarding unreadable cache entry {key}: {str(e)}")
                increment_cache_lookup(family, CacheResult.ERROR)
                increment_error(MetricsErrorType.CACHE_FAILED)
                await self._discard(key)
            else:
                logger.debug(f"Cache HIT for {key}")
                increment_cache_lookup(family, CacheResult.HIT)
                return value

        # 2. Cache miss - load from the store
        logger.debug(f"Cache MISS for {key}")
        increment_cache_lookup(family, CacheResult.MISS)
        value = await loader()
        if value is None:
            return value

        # 3. Populate cache (best effort)
        await self._populate(key, ttl, serialize(value), generation)
        return value

    async def _populate(
        self, key: str, ttl: int, payload: str, generation: Optional[str]
    ) -> None:
        gen_key = self._generation_key(key)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(gen_key)
                if await pipe.get(gen_key) != generation:
                    logger.debug(f"Cache POPULATE skipped for {key}: invalidated while loading")
                    return
                pipe.multi()
                pipe.set(key, payload, ex=ttl)
                await pipe.execute()
                logger.debug(f"Cache POPULATED for {key}")
        except WatchError:
            logger.debug(f"Cache POPULATE skipped for {key}: invalidated during write")
        except (RedisError, OSError) as e:
            logger.warning(f"Redis cache write error for {key}: {str(e)}")
            increment_error(MetricsErrorType.CACHE_FAILED)

    async def _discard(self, key: str) -> None:
        # Generation is left alone so the reload that follows may repopulate
        try:
            await self._redis.delete(key)
        except (RedisError, OSError) as e:
            logger.warning(f"Redis cache delete error for {key}: {str(e)}")

    # ==================== INVALIDATION ====================

    async def invalidate_conversation(
        self, conversation_id: ConversationId, member_ids: list[UserId]
    ) -> None:
        """Drop a conversation snapshot and every listed member's conversation list."""
        keys = [self.conversation_key(conversation_id)]
        keys.extend(self.user_conversations_key(uid) for uid in member_ids)
        await self._invalidate(keys)

    async def invalidate_user_conversations(self, user_ids: list[UserId]) -> None:
        await self._invalidate([self.user_conversations_key(uid) for uid in user_ids])

    async def _invalidate(self, keys: list[str]) -> None:
        keys = list(dict.fromkeys(keys))
        if not keys:
            return
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for key in keys:
                    gen_key = self._generation_key(key)
                    pipe.delete(key)
                    pipe.incr(gen_key)
                    pipe.expire(gen_key, self._generation_ttl)
                await pipe.execute()
            logger.debug(f"Cache INVALIDATED {keys}")
        except (RedisError, OSError) as e:
            # Entries stay stale until their TTL runs out
            logger.error(f"Redis cache invalidation error for {keys}: {str(e)}")
            increment_error(MetricsErrorType.CACHE_FAILED)
