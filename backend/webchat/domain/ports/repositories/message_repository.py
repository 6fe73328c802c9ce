"""
Message Repository Port - Interface for message persistence.
Implementation: webchat/infrastructure/persistence/sqlalchemy_message_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional

from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId


class MessageRepository(ABC):
    @abstractmethod
    async def add(
        self, conversation_id: ConversationId, sender_id: UserId, content: str
    ) -> Message:
        """Insert with status `sent`; returns the message hydrated with its sender."""

    @abstractmethod
    async def get_by_id(self, message_id: MessageId) -> Optional[Message]: ...

    @abstractmethod
    async def list_by_conversation(
        self,
        conversation_id: ConversationId,
        limit: int,
        offset: int = 0,
        before_id: Optional[MessageId] = None,
    ) -> list[Message]:
        """Newest `limit` window after `offset`, returned oldest first."""

    @abstractmethod
    async def set_status(self, message_id: MessageId, status: MessageStatus) -> bool:
        """Overwrite status unconditionally. False if the message is absent."""

    @abstractmethod
    async def advance_status(
        self,
        conversation_id: ConversationId,
        status: MessageStatus,
        message_ids: Optional[list[MessageId]] = None,
        up_to_id: Optional[MessageId] = None,
        exclude_sender_id: Optional[UserId] = None,
    ) -> list[MessageId]:
        """
        Move matching messages to `status` only where they are currently in an
        earlier status. Returns the ids that actually changed.
        """
