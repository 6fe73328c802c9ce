"""
Delete User Command.

Removes the user and its memberships. Messages it sent are kept with no
sender, so conversation history stays intact.
"""

from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import UserRepository
from webchat.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class DeleteUserCommand(Command[None]):
    user_id: UserId


class DeleteUserHandler(CommandHandler[None]):
    def __init__(self, user_repository: UserRepository):
        self._user_repository = user_repository

    async def execute(self, command: DeleteUserCommand) -> None:
        if not await self._user_repository.delete(command.user_id):
            raise EntityNotFoundError.for_entity("User", command.user_id)
