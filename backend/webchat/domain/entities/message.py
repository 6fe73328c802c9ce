"""
Message Entity - A single message in a conversation.

Content is immutable. Status is the only mutable field and only moves
forward: sent -> delivered -> read.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from webchat.domain.entities.user import User
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)

    def is_after(self, other: MessageStatus) -> bool:
        return self.rank > other.rank

    def predecessors(self) -> list[MessageStatus]:
        """Statuses a message may be in to be advanced to this one."""
        return list(_STATUS_ORDER[: self.rank])


_STATUS_ORDER = (MessageStatus.SENT, MessageStatus.DELIVERED, MessageStatus.READ)


@dataclass
class Message:
    id: MessageId
    conversation_id: ConversationId
    sender_id: Optional[UserId]
    content: str
    created_at: datetime
    status: MessageStatus = MessageStatus.SENT
    sender: Optional[User] = None

    @property
    def sender_username(self) -> Optional[str]:
        return self.sender.username if self.sender else None

    def advance_status(self, new_status: MessageStatus) -> bool:
        """
        Move status forward. Returns False (and changes nothing) when
        new_status is equal to or earlier than the current one.
        """
        if not new_status.is_after(self.status):
            return False
        self.status = new_status
        return True
