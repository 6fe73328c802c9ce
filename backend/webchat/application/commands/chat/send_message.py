"""
SendMessage Command - persist a message and fan it out live.

Order is strict:
    1. durable write (store)
    2. cache invalidation (done by the cached message repository after commit)
    3. live broadcast to the conversation's room

The broadcast is awaited before the handler returns, so a client that
receives the event and immediately reads history will see the message. A
failed broadcast never fails the send; the hub handles stale connections
on its own.
"""

import logging
from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.config.settings import Config
from webchat.domain.entities.message import Message
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.ports.repositories import (
    ConversationRepository,
    MessageRepository,
    UserRepository,
)
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId
from webchat.realtime.events import PersistedMessageEvent
from webchat.realtime.hub import Hub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendMessageCommand(Command[Message]):
    conversation_id: ConversationId
    sender_id: UserId
    content: str


class SendMessageHandler(CommandHandler[Message]):
    def __init__(
        self,
        conv_repo: ConversationRepository,
        msg_repo: MessageRepository,
        user_repo: UserRepository,
        hub: Hub,
    ):
        self._conv_repo = conv_repo
        self._msg_repo = msg_repo
        self._user_repo = user_repo
        self._hub = hub

    async def execute(self, command: SendMessageCommand) -> Message:
        """
        Raises:
            DomainValidationError: blank or oversized content, unknown sender
            EntityNotFoundError: conversation does not exist
        """
        if not command.content or not command.content.strip():
            raise DomainValidationError("Message content is required")
        if len(command.content) > Config.MESSAGE_MAX_LENGTH:
            raise DomainValidationError(
                f"Message content exceeds {Config.MESSAGE_MAX_LENGTH} characters"
            )

        if await self._conv_repo.get_by_id(command.conversation_id) is None:
            raise EntityNotFoundError.for_entity("Conversation", command.conversation_id)
        if await self._user_repo.get_by_id(command.sender_id) is None:
            raise DomainValidationError(f"Unknown sender {command.sender_id}")

        # 1 + 2: store write, then cache invalidation
        message = await self._msg_repo.add(
            command.conversation_id, command.sender_id, command.content
        )

        # 3: live fan-out
        delivered = await self._hub.publish_message(PersistedMessageEvent.from_message(message))
        logger.info(
            f"[Chat] Message {message.id} in conversation {message.conversation_id} "
            f"delivered live to {delivered} connection(s)"
        )
        return message
