"""GetConversation Query - one hydrated conversation, served from the cache when warm."""

from dataclasses import dataclass

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.domain.entities.conversation import Conversation
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories.conversation_repository import (
    ConversationRepository,
)
from webchat.domain.value_objects.conversation_id import ConversationId


@dataclass(frozen=True)
class GetConversationQuery(Query[Conversation]):
    conversation_id: ConversationId


class GetConversationHandler(QueryHandler[Conversation]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, query: GetConversationQuery) -> Conversation:
        conversation = await self._conversation_repository.get_by_id(query.conversation_id)
        if conversation is None:
            raise EntityNotFoundError.for_entity("Conversation", query.conversation_id)
        return conversation
