"""ListUsers Query - every user, in id order."""

from dataclasses import dataclass

from webchat.application.common.interfaces import Query, QueryHandler
from webchat.domain.entities.user import User
from webchat.domain.ports.repositories import UserRepository


@dataclass(frozen=True)
class ListUsersQuery(Query[list[User]]):
    pass


class ListUsersHandler(QueryHandler[list[User]]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, query: ListUsersQuery) -> list[User]:
        return await self._user_repository.list_all()
