"""
ENTITIES - Business objects with identity

Each entity:
- Has a unique identifier
- Can change state over time
- Pure Python dataclasses (no ORM, no Pydantic)
"""

from webchat.domain.entities.conversation import (
    Conversation,
    ConversationKind,
    Membership,
)
from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.entities.user import User

__all__ = [
    "Conversation",
    "ConversationKind",
    "Membership",
    "Message",
    "MessageStatus",
    "User",
]
