"""
Create User Command.

Display names are 3-50 characters and unique case-insensitively; the
Username value object checks the length, the store checks uniqueness.
"""

from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.entities.user import User
from webchat.domain.ports.repositories import UserRepository
from webchat.domain.value_objects.username import Username


@dataclass(frozen=True)
class CreateUserCommand(Command[User]):
    name: str


class CreateUserHandler(CommandHandler[User]):
    _user_repository: UserRepository

    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, command: CreateUserCommand) -> User:
        """
        Raises:
            DomainValidationError: name is blank or out of length bounds
            ConflictError: name already exists (case-insensitive)
        """
        return await self._user_repository.create(Username(command.name))
