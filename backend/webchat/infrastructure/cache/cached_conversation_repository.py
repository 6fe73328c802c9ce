"""
Cached Conversation Repository - Decorator pattern for Redis caching.

Architecture:
    CachedConversationRepository (decorator)
        ↓ wraps
    SqlAlchemyConversationRepository (concrete implementation)
        ↓ implements
    ConversationRepository (abstract interface)

Reads of a single conversation and of a user's conversation list go through
the ConversationCache. Every membership write commits first and invalidates
afterwards, so a reader can never cache a snapshot older than the commit.
"""

import logging
from typing import Optional

from webchat.domain.entities.conversation import Conversation
from webchat.domain.exceptions import StorageError
from webchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId
from webchat.infrastructure.cache.conversation_cache import ConversationCache
from webchat.observability.metrics import MetricsErrorType, increment_error

logger = logging.getLogger(__name__)


async def member_ids_after_commit(
    conversations: ConversationRepository,
    conversation_id: ConversationId,
    known: list[UserId],
) -> list[UserId]:
    """
    Look up the members to invalidate once a write has committed.

    The write is already durable here, so a failed lookup must not fail the
    operation: it is logged and the ids the caller already knows are used
    instead. Lists of other members then stay stale until their TTL runs out.
    """
    try:
        return [*await conversations.member_ids(conversation_id), *known]
    except StorageError as e:
        logger.error(
            f"[Cache] Member lookup for conversation {conversation_id} failed after "
            f"commit, invalidating only {[str(uid) for uid in known]}: {e}"
        )
        increment_error(MetricsErrorType.CACHE_FAILED)
        return list(known)


class CachedConversationRepository(ConversationRepository):
    """
    Decorator: adds Redis caching to ConversationRepository.

    Implements the same interface, so callers don't know caching exists.
    """

    def __init__(self, repo: ConversationRepository, cache: ConversationCache):
        self._repo = repo
        self._cache = cache

    async def create(self, name: str, participant_ids: list[UserId]) -> Conversation:
        conversation = await self._repo.create(name, participant_ids)
        await self._cache.invalidate_conversation(
            conversation.id, conversation.member_ids
        )
        return conversation

    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]:
        return await self._cache.get_conversation(
            conversation_id, lambda: self._repo.get_by_id(conversation_id)
        )

    async def list_for_user(self, user_id: UserId) -> list[Conversation]:
        return await self._cache.get_user_conversations(
            user_id, lambda: self._repo.list_for_user(user_id)
        )

    async def list_all(self) -> list[Conversation]:
        # Not cached: no key family covers the full listing
        return await self._repo.list_all()

    async def member_ids(self, conversation_id: ConversationId) -> list[UserId]:
        return await self._repo.member_ids(conversation_id)

    async def add_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        added = await self._repo.add_membership(conversation_id, user_id)
        if added:
            members = await member_ids_after_commit(
                self._repo, conversation_id, [user_id]
            )
            await self._cache.invalidate_conversation(conversation_id, members)
        return added

    async def remove_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        removed = await self._repo.remove_membership(conversation_id, user_id)
        if removed:
            # The removed user's own list must be dropped too
            members = await member_ids_after_commit(
                self._repo, conversation_id, [user_id]
            )
            await self._cache.invalidate_conversation(conversation_id, members)
        return removed
