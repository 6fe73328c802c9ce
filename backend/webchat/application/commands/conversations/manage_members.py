"""
Add / Remove Member Commands.

Both are idempotent: the result says whether the membership set actually
changed. The cached conversation repository invalidates the conversation and
every affected member's list after the commit.
"""

from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.exceptions import EntityNotFoundError
from webchat.domain.ports.repositories import ConversationRepository
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId


@dataclass(frozen=True)
class AddMemberCommand(Command[bool]):
    conversation_id: ConversationId
    user_id: UserId


class AddMemberHandler(CommandHandler[bool]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, command: AddMemberCommand) -> bool:
        """
        Raises:
            EntityNotFoundError: conversation or user does not exist
        """
        return await self._conversation_repository.add_membership(
            command.conversation_id, command.user_id
        )


@dataclass(frozen=True)
class RemoveMemberCommand(Command[bool]):
    conversation_id: ConversationId
    user_id: UserId


class RemoveMemberHandler(CommandHandler[bool]):
    def __init__(self, conversation_repository: ConversationRepository):
        self._conversation_repository = conversation_repository

    async def execute(self, command: RemoveMemberCommand) -> bool:
        # A conversation may shrink below two members; it is never auto-deleted
        if await self._conversation_repository.get_by_id(command.conversation_id) is None:
            raise EntityNotFoundError.for_entity("Conversation", command.conversation_id)
        return await self._conversation_repository.remove_membership(
            command.conversation_id, command.user_id
        )
