"""
Shared plumbing for the SQLAlchemy repositories.

- `_transaction()` opens a session + transaction per Store operation and turns
  driver/IO failures into StorageError (domain exceptions pass through).
- `to_*` functions map ORM records to domain entities. They must run inside
  the session that loaded the record, with relationships eagerly loaded.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from webchat.domain.entities.conversation import (
    Conversation,
    ConversationKind,
    Membership,
)
from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.entities.user import User
from webchat.domain.exceptions import StorageError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.infrastructure.persistence.models import (
    ConversationRecord,
    MembershipRecord,
    MessageRecord,
    UserRecord,
)

logger = logging.getLogger(__name__)


class SqlAlchemyRepository:
    _session_factory: async_sessionmaker[AsyncSession]

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Store] {operation} failed: {type(e).__name__}: {e}")
            raise StorageError(f"{operation} failed") from e


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_user(record: UserRecord) -> User:
    return User(
        id=UserId(record.id),
        username=record.username,
        created_at=as_utc(record.created_at),
    )


def to_membership(record: MembershipRecord) -> Membership:
    return Membership(
        conversation_id=ConversationId(record.conversation_id),
        user=to_user(record.user),
        joined_at=as_utc(record.joined_at),
    )


def to_conversation(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=ConversationId(record.id),
        name=record.name,
        kind=ConversationKind(record.kind),
        created_at=as_utc(record.created_at),
        memberships=[to_membership(m) for m in record.memberships],
    )


def to_message(record: MessageRecord) -> Message:
    return Message(
        id=MessageId(record.id),
        conversation_id=ConversationId(record.conversation_id),
        sender_id=UserId(record.sender_id) if record.sender_id is not None else None,
        content=record.content,
        created_at=as_utc(record.created_at),
        status=MessageStatus(record.status),
        sender=to_user(record.sender) if record.sender is not None else None,
    )
