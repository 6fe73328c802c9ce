"""
GetChatHistory Query - one page of a conversation's messages.

Paging:
- `take` newest messages after skipping `skip` newest, returned oldest first
  ("latest page, oldest first within the page").
- `before_id` restricts the window to ids strictly below it, for scrolling back.
- `take` is clamped to Config.MESSAGE_PAGE_MAX.
"""

from dataclasses import dataclass
from typing import Optional

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.config.settings import Config
from webchat.domain.entities.message import Message
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.ports.repositories import ConversationRepository, MessageRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId


@dataclass(frozen=True)
class GetChatHistoryQuery(Query[list[Message]]):
    conversation_id: ConversationId
    take: int = Config.MESSAGE_PAGE_SIZE
    skip: int = 0
    before_id: Optional[MessageId] = None


class GetChatHistoryHandler(QueryHandler[list[Message]]):
    def __init__(
        self,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
    ):
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo

    async def execute(self, query: GetChatHistoryQuery) -> list[Message]:
        """
        Raises:
            EntityNotFoundError: conversation does not exist
            DomainValidationError: take < 1 or skip < 0
        """
        if query.take < 1:
            raise DomainValidationError("take must be at least 1")
        if query.skip < 0:
            raise DomainValidationError("skip must not be negative")

        if await self._conv_repo.get_by_id(query.conversation_id) is None:
            raise EntityNotFoundError.for_entity("Conversation", query.conversation_id)

        return await self._msg_repo.list_by_conversation(
            query.conversation_id,
            limit=min(query.take, Config.MESSAGE_PAGE_MAX),
            offset=query.skip,
            before_id=query.before_id,
        )
