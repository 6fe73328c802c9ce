"""List Conversations Queries - for one user (cached) or all of them."""

from dataclasses import dataclass

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.domain.entities.conversation import Conversation
from webchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from webchat.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class ListUserConversationsQuery(Query[list[Conversation]]):
    user_id: UserId


class ListUserConversationsHandler(QueryHandler[list[Conversation]]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, query: ListUserConversationsQuery) -> list[Conversation]:
        """Newest-created first; empty for a user with no memberships."""
        return await self._conversation_repository.list_for_user(query.user_id)


@dataclass(frozen=True)
class ListAllConversationsQuery(Query[list[Conversation]]):
    pass


class ListAllConversationsHandler(QueryHandler[list[Conversation]]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, query: ListAllConversationsQuery) -> list[Conversation]:
        return await self._conversation_repository.list_all()
