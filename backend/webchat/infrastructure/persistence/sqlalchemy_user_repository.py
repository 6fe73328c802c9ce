"""
SQLAlchemy User Repository Implementation.

Case-insensitive uniqueness is enforced twice: a lookup on
`username_normalized` gives a clean ConflictError in the common case, and the
unique index catches the race where two creates pass the lookup together.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from webchat.domain.entities.user import User
from webchat.domain.exceptions import ConflictError
from webchat.domain.ports.repositories import UserRepository
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username
from webchat.infrastructure.persistence.base import SqlAlchemyRepository, to_user
from webchat.infrastructure.persistence.models import (
    MembershipRecord,
    MessageRecord,
    UserRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):
    async def _name_taken(self, session, username: Username, exclude_id=None) -> bool:
        stmt = select(UserRecord.id).where(
            UserRecord.username_normalized == username.normalized
        )
        if exclude_id is not None:
            stmt = stmt.where(UserRecord.id != exclude_id)
        return (await session.execute(stmt)).first() is not None

    async def create(self, username: Username) -> User:
        async with self._transaction("create_user") as session:
            if await self._name_taken(session, username):
                raise ConflictError(f"Username '{username.value}' is already taken")

            record = UserRecord(
                username=username.value,
                username_normalized=username.normalized,
                created_at=utcnow(),
            )
            session.add(record)
            try:
                await session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    f"Username '{username.value}' is already taken"
                ) from e

            logger.info(f"[Store] Created user {record.id} ({username.value})")
            return to_user(record)

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        async with self._transaction("get_user") as session:
            record = await session.get(UserRecord, user_id.value)
            return to_user(record) if record else None

    async def get_by_name(self, username: str) -> Optional[User]:
        async with self._transaction("get_user_by_name") as session:
            record = (
                await session.execute(
                    select(UserRecord).where(
                        UserRecord.username_normalized == username.strip().lower()
                    )
                )
            ).scalar_one_or_none()
            return to_user(record) if record else None

    async def list_all(self) -> list[User]:
        async with self._transaction("list_users") as session:
            records = (
                await session.execute(select(UserRecord).order_by(UserRecord.id))
            ).scalars()
            return [to_user(r) for r in records]

    async def rename(self, user_id: UserId, username: Username) -> Optional[User]:
        async with self._transaction("rename_user") as session:
            record = await session.get(UserRecord, user_id.value)
            if record is None:
                return None
            if await self._name_taken(session, username, exclude_id=user_id.value):
                raise ConflictError(f"Username '{username.value}' is already taken")

            record.username = username.value
            record.username_normalized = username.normalized
            try:
                await session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    f"Username '{username.value}' is already taken"
                ) from e

            logger.info(f"[Store] Renamed user {user_id} to {username.value}")
            return to_user(record)

    async def delete(self, user_id: UserId) -> bool:
        """Delete a user and its memberships; its messages stay with no sender."""
        async with self._transaction("delete_user") as session:
            if await session.get(UserRecord, user_id.value) is None:
                return False

            await session.execute(
                update(MessageRecord)
                .where(MessageRecord.sender_id == user_id.value)
                .values(sender_id=None)
            )
            await session.execute(
                delete(MembershipRecord).where(MembershipRecord.user_id == user_id.value)
            )
            await session.execute(delete(UserRecord).where(UserRecord.id == user_id.value))

            logger.info(f"[Store] Deleted user {user_id}")
            return True
