"""
SQLAlchemy Message Repository Implementation.

History ordering key is (created_at, id). Paging takes the newest window
first (descending, offset, limit) and flips it, so callers always get
"the latest page, oldest first within the page".

Two status writers exist:
- set_status(): unconditional overwrite, no forward-only rule at this layer.
- advance_status(): conditional bulk update that only touches rows whose
  current status is earlier than the target. Everything public goes through
  this one, which is what keeps statuses from ever regressing.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import selectinload

from webchat.domain.entities.message import Message, MessageStatus
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories.message_repository import MessageRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.infrastructure.persistence.base import SqlAlchemyRepository, to_message
from webchat.infrastructure.persistence.models import (
    ConversationRecord,
    MessageRecord,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


def _with_sender():
    return select(MessageRecord).options(selectinload(MessageRecord.sender))


class SqlAlchemyMessageRepository(SqlAlchemyRepository, MessageRepository):
    """Handles persistence of Message entities via SQLAlchemy."""

    async def add(
        self, conversation_id: ConversationId, sender_id: UserId, content: str
    ) -> Message:
        async with self._transaction("add_message") as session:
            if await session.get(ConversationRecord, conversation_id.value) is None:
                raise EntityNotFoundError.for_entity("Conversation", conversation_id)
            sender = await session.get(UserRecord, sender_id.value)
            if sender is None:
                raise EntityNotFoundError.for_entity("User", sender_id)

            record = MessageRecord(
                conversation_id=conversation_id.value,
                sender_id=sender_id.value,
                content=content,
                status=MessageStatus.SENT.value,
                created_at=utcnow(),
            )
            record.sender = sender
            session.add(record)
            await session.flush()

            logger.info(
                f"[Store] Added message {record.id} to conversation {conversation_id} "
                f"by user {sender_id}"
            )
            return to_message(record)

    async def get_by_id(self, message_id: MessageId) -> Optional[Message]:
        async with self._transaction("get_message") as session:
            record = (
                await session.execute(
                    _with_sender().where(MessageRecord.id == message_id.value)
                )
            ).scalar_one_or_none()
            return to_message(record) if record else None

    async def list_by_conversation(
        self,
        conversation_id: ConversationId,
        limit: int,
        offset: int = 0,
        before_id: Optional[MessageId] = None,
    ) -> list[Message]:
        """
        Get one page of history for a conversation.

        Args:
            conversation_id: Conversation to read
            limit: Page size (newest `limit` messages after `offset`)
            offset: Number of newest messages to skip
            before_id: Only messages with id < before_id

        Returns:
            Messages oldest first
        """
        async with self._transaction("list_messages") as session:
            stmt = _with_sender().where(
                MessageRecord.conversation_id == conversation_id.value
            )
            if before_id is not None:
                stmt = stmt.where(MessageRecord.id < before_id.value)
            stmt = (
                stmt.order_by(MessageRecord.created_at.desc(), MessageRecord.id.desc())
                .offset(offset)
                .limit(limit)
            )
            records = list((await session.execute(stmt)).scalars())
            records.reverse()
            return [to_message(r) for r in records]

    async def set_status(self, message_id: MessageId, status: MessageStatus) -> bool:
        async with self._transaction("set_message_status") as session:
            record = await session.get(MessageRecord, message_id.value)
            if record is None:
                return False
            record.status = status.value
            logger.info(f"[Store] Updated message {message_id} status to {status.value}")
            return True

    async def advance_status(
        self,
        conversation_id: ConversationId,
        status: MessageStatus,
        message_ids: Optional[list[MessageId]] = None,
        up_to_id: Optional[MessageId] = None,
        exclude_sender_id: Optional[UserId] = None,
    ) -> list[MessageId]:
        earlier = [s.value for s in status.predecessors()]
        if not earlier:
            return []

        conditions = [
            MessageRecord.conversation_id == conversation_id.value,
            MessageRecord.status.in_(earlier),
        ]
        if message_ids is not None:
            conditions.append(MessageRecord.id.in_([m.value for m in message_ids]))
        if up_to_id is not None:
            conditions.append(MessageRecord.id <= up_to_id.value)
        if exclude_sender_id is not None:
            conditions.append(
                or_(
                    MessageRecord.sender_id.is_(None),
                    MessageRecord.sender_id != exclude_sender_id.value,
                )
            )

        async with self._transaction("advance_message_status") as session:
            ids = list(
                (
                    await session.execute(
                        select(MessageRecord.id).where(*conditions).order_by(MessageRecord.id)
                    )
                ).scalars()
            )
            if not ids:
                return []

            # Status condition repeated so a concurrent advance is never undone
            await session.execute(
                update(MessageRecord)
                .where(MessageRecord.id.in_(ids), MessageRecord.status.in_(earlier))
                .values(status=status.value)
                .execution_options(synchronize_session=False)
            )
            logger.info(
                f"[Store] Advanced {len(ids)} message(s) in conversation "
                f"{conversation_id} to {status.value}"
            )
            return [MessageId(i) for i in ids]
