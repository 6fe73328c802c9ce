"""
Cached Message Repository - Decorator pattern for Redis caching.

Message history itself is never cached; it always comes from the store.
What this decorator adds is coherence for the conversation snapshots: once
a message is committed, the conversation and every member's conversation
list are invalidated before add() returns.

Architecture:
    CachedMessageRepository (decorator)
        ↓ wraps
    SqlAlchemyMessageRepository (concrete implementation)
        ↓ implements
    MessageRepository (abstract interface)
"""

import logging
from typing import Optional

from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from webchat.domain.ports.repositories.message_repository import MessageRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.infrastructure.cache.cached_conversation_repository import (
    member_ids_after_commit,
)
from webchat.infrastructure.cache.conversation_cache import ConversationCache

logger = logging.getLogger(__name__)


class CachedMessageRepository(MessageRepository):
    def __init__(
        self,
        repo: MessageRepository,
        conversations: ConversationRepository,
        cache: ConversationCache,
    ):
        """
        Args:
            repo: Underlying MessageRepository implementation
            conversations: Uncached ConversationRepository, used for member lookups
            cache: Conversation cache to invalidate
        """
        self._repo = repo
        self._conversations = conversations
        self._cache = cache

    async def add(
        self, conversation_id: ConversationId, sender_id: UserId, content: str
    ) -> Message:
        # 1. Write to DB first (source of truth)
        message = await self._repo.add(conversation_id, sender_id, content)

        # 2. Invalidate after the commit
        members = await member_ids_after_commit(
            self._conversations, conversation_id, [sender_id]
        )
        await self._cache.invalidate_conversation(conversation_id, members)
        return message

    async def get_by_id(self, message_id: MessageId) -> Optional[Message]:
        return await self._repo.get_by_id(message_id)

    async def list_by_conversation(
        self,
        conversation_id: ConversationId,
        limit: int,
        offset: int = 0,
        before_id: Optional[MessageId] = None,
    ) -> list[Message]:
        return await self._repo.list_by_conversation(
            conversation_id, limit, offset=offset, before_id=before_id
        )

    async def set_status(self, message_id: MessageId, status: MessageStatus) -> bool:
        return await self._repo.set_status(message_id, status)

    async def advance_status(
        self,
        conversation_id: ConversationId,
        status: MessageStatus,
        message_ids: Optional[list[MessageId]] = None,
        up_to_id: Optional[MessageId] = None,
        exclude_sender_id: Optional[UserId] = None,
    ) -> list[MessageId]:
        return await self._repo.advance_status(
            conversation_id,
            status,
            message_ids=message_ids,
            up_to_id=up_to_id,
            exclude_sender_id=exclude_sender_id,
        )
