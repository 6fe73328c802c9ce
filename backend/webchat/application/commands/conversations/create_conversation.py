"""
Create Conversation Command.

Rules:
- Name is required (non-blank).
- Participant ids are de-duplicated first; at least two distinct ids remain.
- Every id must resolve to an existing user. The store on its own skips
  unknown ids; this command refuses them instead so callers never get a
  conversation that is silently missing a participant.
- Kind is derived from the participant count: exactly two is direct,
  anything more is a group.
"""

import logging
from dataclasses import dataclass

from webchat.application.common.interfaces import Command, CommandHandler
from webchat.domain.entities.conversation import MIN_PARTICIPANTS, Conversation
from webchat.domain.exceptions import DomainValidationError
from webchat.domain.ports.repositories import ConversationRepository, UserRepository
from webchat.domain.value_objects.user_id import UserId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateConversationCommand(Command[Conversation]):
    name: str
    participant_ids: tuple[UserId, ...]


class CreateConversationHandler(CommandHandler[Conversation]):
    _conversation_repository: ConversationRepository
    _user_repository: UserRepository

    def __init__(
        self,
        conversation_repository: ConversationRepository,
        user_repository: UserRepository,
    ):
        self._conversation_repository = conversation_repository
        self._user_repository = user_repository

    async def execute(self, command: CreateConversationCommand) -> Conversation:
        name = (command.name or "").strip()
        if not name:
            raise DomainValidationError("Conversation name is required")

        participant_ids = list(dict.fromkeys(command.participant_ids))
        if len(participant_ids) < MIN_PARTICIPANTS:
            raise DomainValidationError(
                f"A conversation needs at least {MIN_PARTICIPANTS} distinct participants"
            )

        unknown = [
            uid.value
            for uid in participant_ids
            if await self._user_repository.get_by_id(uid) is None
        ]
        if unknown:
            raise DomainValidationError(f"Unknown participant ids: {unknown}")

        conversation = await self._conversation_repository.create(name, participant_ids)
        logger.info(
            f"[Conversations] Created {conversation.kind.value} conversation {conversation.id}"
        )
        return conversation
