"""
Persistence Layer - Database implementations.

Contains the SQLAlchemy (async) repository implementations for domain ports
and the engine/session factory they share.
"""

from webchat.infrastructure.persistence.database import (
    create_engine,
    create_session_factory,
    dispose_engine,
    init_models,
)
from webchat.infrastructure.persistence.sqlalchemy_conversation_repository import (
    SqlAlchemyConversationRepository,
)
from webchat.infrastructure.persistence.sqlalchemy_message_repository import (
    SqlAlchemyMessageRepository,
)
from webchat.infrastructure.persistence.sqlalchemy_user_repository import (
    SqlAlchemyUserRepository,
)

__all__ = [
    "create_engine",
    "create_session_factory",
    "dispose_engine",
    "init_models",
    "SqlAlchemyConversationRepository",
    "SqlAlchemyMessageRepository",
    "SqlAlchemyUserRepository",
]
