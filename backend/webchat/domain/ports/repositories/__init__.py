"""
REPOSITORY PORTS - Data persistence interfaces

Each repository port:
- Is an abstract base class (ABC)
- Defines methods the domain needs
- Does NOT specify implementation (SQLAlchemy, Redis-cached, etc.)

Infrastructure layer provides implementations.
"""

from webchat.domain.ports.repositories.conversation_repository import ConversationRepository
from webchat.domain.ports.repositories.message_repository import MessageRepository
from webchat.domain.ports.repositories.user_repository import UserRepository

__all__ = [
    "ConversationRepository",
    "MessageRepository",
    "UserRepository",
]
