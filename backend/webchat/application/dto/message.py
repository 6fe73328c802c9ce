"""Message DTOs for API request/response."""

from datetime import datetime
from typing import Optional

from webchat.application.dto.base import CamelDTO
from webchat.application.dto.user import UserDTO
from webchat.domain.entities.message import Message, MessageStatus


class MessageDTO(CamelDTO):
    """Message as returned to clients. `sender` is null once the sender is deleted.

    `timestamp` is the creation time; history is ordered by (timestamp, id).
    """

    id: int
    conversation_id: int
    sender_id: Optional[int] = None
    sender: Optional[UserDTO] = None
    sender_username: Optional[str] = None
    content: str
    timestamp: datetime
    status: MessageStatus

    @classmethod
    def from_entity(cls, message: Message) -> "MessageDTO":
        return cls(
            id=message.id.value,
            conversation_id=message.conversation_id.value,
            sender_id=message.sender_id.value if message.sender_id else None,
            sender=UserDTO.from_entity(message.sender) if message.sender else None,
            sender_username=message.sender_username,
            content=message.content,
            timestamp=message.created_at,
            status=message.status,
        )
