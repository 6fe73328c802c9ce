"""GetUser / GetUserByName Queries - look up a single user."""

from dataclasses import dataclass

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.domain.entities.user import User
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import UserRepository
from webchat.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class GetUserQuery(Query[User]):
    user_id: UserId


class GetUserHandler(QueryHandler[User]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, query: GetUserQuery) -> User:
        user = await self._user_repository.get_by_id(query.user_id)
        if user is None:
            raise EntityNotFoundError.for_entity("User", query.user_id)
        return user


@dataclass(frozen=True)
class GetUserByNameQuery(Query[User]):
    username: str


class GetUserByNameHandler(QueryHandler[User]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, query: GetUserByNameQuery) -> User:
        """Case-insensitive match on the display name."""
        user = await self._user_repository.get_by_name(query.username)
        if user is None:
            raise EntityNotFoundError(
                f"User '{query.username}' not found", entity="User", entity_id=query.username
            )
        return user
