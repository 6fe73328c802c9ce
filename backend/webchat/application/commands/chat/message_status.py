"""
Message status commands.

Status only moves forward: sent -> delivered -> read. Requests that would
regress a message are accepted and ignored. Every write goes through the
store's conditional advance, so two racing updates cannot undo each other.

- UpdateMessageStatusCommand: explicit status update (HTTP).
- AcknowledgeMessageCommand:  a recipient connection received a message → delivered.
- MarkReadCommand:            a recipient has seen everything up to a message → read.

Changes are pushed to the conversation's room as message_status_changed.
"""

import logging
from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import MessageRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.realtime.hub import Hub

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateMessageStatusCommand(Command[Message]):
    message_id: MessageId
    status: MessageStatus


class UpdateMessageStatusHandler(CommandHandler[Message]):
    def __init__(self, msg_repo: MessageRepository, hub: Hub):
        self._msg_repo = msg_repo
        self._hub = hub

    async def execute(self, command: UpdateMessageStatusCommand) -> Message:
        """Returns the message as stored after the update (or the no-op)."""
        message = await self._msg_repo.get_by_id(command.message_id)
        if message is None:
            raise EntityNotFoundError.for_entity("Message", command.message_id)

        if not command.status.is_after(message.status):
            logger.debug(
                f"[Chat] Ignoring status {command.status.value} for message "
                f"{message.id}: already {message.status.value}"
            )
            return message

        changed = await self._msg_repo.advance_status(
            message.conversation_id, command.status, message_ids=[message.id]
        )
        if changed:
            message.advance_status(command.status)
            await self._hub.publish_status_changed(
                message.conversation_id, changed, command.status
            )
            return message
        # Lost a race with another advance; report what the store holds now
        return await self._msg_repo.get_by_id(command.message_id) or message


@dataclass(frozen=True)
class AcknowledgeMessageCommand(Command[list[MessageId]]):
    message_id: MessageId
    user_id: UserId


class AcknowledgeMessageHandler(CommandHandler[list[MessageId]]):
    def __init__(self, msg_repo: MessageRepository, hub: Hub):
        self._msg_repo = msg_repo
        self._hub = hub

    async def execute(self, command: AcknowledgeMessageCommand) -> list[MessageId]:
        """Senders acknowledging their own message change nothing."""
        message = await self._msg_repo.get_by_id(command.message_id)
        if message is None:
            raise EntityNotFoundError.for_entity("Message", command.message_id)

        changed = await self._msg_repo.advance_status(
            message.conversation_id,
            MessageStatus.DELIVERED,
            message_ids=[message.id],
            exclude_sender_id=command.user_id,
        )
        await self._hub.publish_status_changed(
            message.conversation_id, changed, MessageStatus.DELIVERED
        )
        return changed


@dataclass(frozen=True)
class MarkReadCommand(Command[list[MessageId]]):
    conversation_id: ConversationId
    user_id: UserId
    last_read_message_id: MessageId


class MarkReadHandler(CommandHandler[list[MessageId]]):
    def __init__(self, msg_repo: MessageRepository, hub: Hub):
        self._msg_repo = msg_repo
        self._hub = hub

    async def execute(self, command: MarkReadCommand) -> list[MessageId]:
        """Mark every message up to and including last_read_message_id read,
        except the reader's own."""
        changed = await self._msg_repo.advance_status(
            command.conversation_id,
            MessageStatus.READ,
            up_to_id=command.last_read_message_id,
            exclude_sender_id=command.user_id,
        )
        await self._hub.publish_status_changed(
            command.conversation_id, changed, MessageStatus.READ
        )
        if changed:
            logger.info(
                f"[Chat] User {command.user_id} read {len(changed)} message(s) "
                f"in conversation {command.conversation_id}"
            )
        return changed
