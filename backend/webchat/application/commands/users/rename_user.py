"""
Rename User Command.

Identity persists; only the display name changes. Cached conversation
snapshots embed usernames, so the cached user repository invalidates every
conversation the user belongs to once the rename commits.
"""

from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.entities.user import User
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import UserRepository
from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username


@dataclass(frozen=True)
class RenameUserCommand(Command[User]):
    user_id: UserId
    name: str


class RenameUserHandler(CommandHandler[User]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, command: RenameUserCommand) -> User:
        user = await self._user_repository.rename(command.user_id, Username(command.name))
        if user is None:
            raise EntityNotFoundError.for_entity("User", command.user_id)
        return user
