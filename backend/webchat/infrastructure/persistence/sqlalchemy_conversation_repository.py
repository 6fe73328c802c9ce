"""
SQLAlchemy Conversation Repository Implementation.

Conversations are always returned hydrated: memberships ordered by join time,
each with its user eagerly loaded (selectinload), so entities can be mapped
before the session closes and cached as complete snapshots.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from webchat.domain.entities.conversation import (
    MIN_PARTICIPANTS,
    Conversation,
    ConversationKind,
)
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.ports.repositories import ConversationRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId
from webchat.infrastructure.persistence.base import (
    SqlAlchemyRepository,
    to_conversation,
)
from webchat.infrastructure.persistence.models import (
    ConversationRecord,
    MembershipRecord,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


def _hydrated():
    return select(ConversationRecord).options(
        selectinload(ConversationRecord.memberships).selectinload(MembershipRecord.user)
    )


def _newest_first(stmt):
    return stmt.order_by(ConversationRecord.created_at.desc(), ConversationRecord.id.desc())


class SqlAlchemyConversationRepository(SqlAlchemyRepository, ConversationRepository):
    async def _load(self, session, conversation_id: int) -> Optional[ConversationRecord]:
        return (
            await session.execute(
                _hydrated()
                .where(ConversationRecord.id == conversation_id)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

    async def create(self, name: str, participant_ids: list[UserId]) -> Conversation:
        if len(participant_ids) < MIN_PARTICIPANTS:
            raise DomainValidationError(
                f"A conversation must have at least {MIN_PARTICIPANTS} participants"
            )

        async with self._transaction("create_conversation") as session:
            now = utcnow()
            record = ConversationRecord(
                name=name,
                kind=ConversationKind.for_participant_count(len(participant_ids)).value,
                created_at=now,
            )
            session.add(record)
            await session.flush()

            requested = list(dict.fromkeys(uid.value for uid in participant_ids))
            existing = set(
                (
                    await session.execute(
                        select(UserRecord.id).where(UserRecord.id.in_(requested))
                    )
                ).scalars()
            )
            skipped = [uid for uid in requested if uid not in existing]
            if skipped:
                logger.warning(
                    f"[Store] Conversation {record.id}: skipped unknown participant ids {skipped}"
                )

            session.add_all(
                MembershipRecord(conversation_id=record.id, user_id=uid, joined_at=now)
                for uid in requested
                if uid in existing
            )
            await session.flush()

            # Reload so the snapshot carries memberships and their users
            hydrated = await self._load(session, record.id)
            logger.info(
                f"[Store] Created conversation {record.id} '{name}' ({record.kind}) "
                f"with {len(hydrated.memberships)} members"
            )
            return to_conversation(hydrated)

    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]:
        async with self._transaction("get_conversation") as session:
            record = await self._load(session, conversation_id.value)
            return to_conversation(record) if record else None

    async def list_for_user(self, user_id: UserId) -> list[Conversation]:
        async with self._transaction("list_user_conversations") as session:
            stmt = _newest_first(
                _hydrated()
                .join(
                    MembershipRecord,
                    MembershipRecord.conversation_id == ConversationRecord.id,
                )
                .where(MembershipRecord.user_id == user_id.value)
            )
            records = (await session.execute(stmt)).scalars().unique()
            return [to_conversation(r) for r in records]

    async def list_all(self) -> list[Conversation]:
        async with self._transaction("list_conversations") as session:
            records = (await session.execute(_newest_first(_hydrated()))).scalars()
            return [to_conversation(r) for r in records]

    async def member_ids(self, conversation_id: ConversationId) -> list[UserId]:
        async with self._transaction("list_conversation_members") as session:
            ids = (
                await session.execute(
                    select(MembershipRecord.user_id).where(
                        MembershipRecord.conversation_id == conversation_id.value
                    )
                )
            ).scalars()
            return [UserId(uid) for uid in ids]

    async def add_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        async with self._transaction("add_membership") as session:
            if await session.get(ConversationRecord, conversation_id.value) is None:
                raise EntityNotFoundError.for_entity("Conversation", conversation_id)
            if await session.get(UserRecord, user_id.value) is None:
                raise EntityNotFoundError.for_entity("User", user_id)

            key = {"conversation_id": conversation_id.value, "user_id": user_id.value}
            if await session.get(MembershipRecord, key) is not None:
                return False

            session.add(MembershipRecord(**key, joined_at=utcnow()))
            await session.flush()
            logger.info(f"[Store] Added user {user_id} to conversation {conversation_id}")
            return True

    async def remove_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        async with self._transaction("remove_membership") as session:
            result = await session.execute(
                delete(MembershipRecord).where(
                    MembershipRecord.conversation_id == conversation_id.value,
                    MembershipRecord.user_id == user_id.value,
                )
            )
            removed = result.rowcount > 0
            if removed:
                logger.info(
                    f"[Store] Removed user {user_id} from conversation {conversation_id}"
                )
            return removed
