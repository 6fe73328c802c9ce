"""GetMessage Query."""

from dataclasses import dataclass

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.domain.entities.message import Message
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import MessageRepository
from webchat.domain.value_objects.message_id import MessageId


@dataclass(frozen=True)
class GetMessageQuery(Query[Message]):
    message_id: MessageId


class GetMessageHandler(QueryHandler[Message]):
    def __init__(self, msg_repo: MessageRepository):
        self._msg_repo = msg_repo

    async def execute(self, query: GetMessageQuery) -> Message:
        message = await self._msg_repo.get_by_id(query.message_id)
        if message is None:
            raise EntityNotFoundError.for_entity("Message", query.message_id)
        return message
