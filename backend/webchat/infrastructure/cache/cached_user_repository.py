"""
Cached User Repository - keeps cached conversation snapshots in step with
user renames and deletions.

Cached conversations embed member usernames, so a rename or delete has to
drop every conversation the user belongs to and the lists of everyone who
shares one with them. For deletes the affected set is collected before the
write, since memberships are gone afterwards.
"""

import logging
from typing import Optional

from webchat.domain.entities.conversation import Conversation
from webchat.domain.entities.user import User
from webchat.domain.exceptions import StorageError
from webchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from webchat.domain.ports.repositories.user_repository import UserRepository
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username
from webchat.infrastructure.cache.conversation_cache import ConversationCache
from webchat.observability.metrics import MetricsErrorType, increment_error

logger = logging.getLogger(__name__)


class CachedUserRepository(UserRepository):
    def __init__(
        self,
        repo: UserRepository,
        conversations: ConversationRepository,
        cache: ConversationCache,
    ):
        self._repo = repo
        self._conversations = conversations
        self._cache = cache

    async def create(self, username: Username) -> User:
        return await self._repo.create(username)

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        return await self._repo.get_by_id(user_id)

    async def get_by_name(self, username: str) -> Optional[User]:
        return await self._repo.get_by_name(username)

    async def list_all(self) -> list[User]:
        return await self._repo.list_all()

    async def rename(self, user_id: UserId, username: Username) -> Optional[User]:
        user = await self._repo.rename(user_id, username)
        if user is not None:
            try:
                affected = await self._conversations.list_for_user(user_id)
            except StorageError as e:
                # The rename is committed; only the user's own list can be named
                logger.error(
                    f"[Cache] Conversation lookup for user {user_id} failed after rename: {e}"
                )
                increment_error(MetricsErrorType.CACHE_FAILED)
                affected = []
            await self._invalidate(user_id, affected)
        return user

    async def delete(self, user_id: UserId) -> bool:
        affected = await self._conversations.list_for_user(user_id)
        deleted = await self._repo.delete(user_id)
        if deleted:
            await self._invalidate(user_id, affected)
        return deleted

    async def _invalidate(
        self, user_id: UserId, conversations: list[Conversation]
    ) -> None:
        for conversation in conversations:
            await self._cache.invalidate_conversation(
                conversation.id, conversation.member_ids
            )
        await self._cache.invalidate_user_conversations([user_id])
        logger.debug(
            f"[Cache] User {user_id} change invalidated {len(conversations)} conversation(s)"
        )
