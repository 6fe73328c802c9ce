"""
User Repository Port - Interface for user persistence.
Implementation: webchat/infrastructure/persistence/sqlalchemy_user_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional
from webchat.domain.entities.user import User
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username


class UserRepository(ABC):
    @abstractmethod
    async def create(self, username: Username) -> User:
        """Raises ConflictError if the name exists case-insensitively."""

    @abstractmethod
    async def get_by_id(self, user_id: UserId) -> Optional[User]: ...

    @abstractmethod
    async def get_by_name(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def list_all(self) -> list[User]: ...

    @abstractmethod
    async def rename(self, user_id: UserId, username: Username) -> Optional[User]:
        """Returns None if the user is absent; raises ConflictError on duplicate name."""

    @abstractmethod
    async def delete(self, user_id: UserId) -> bool: ...
