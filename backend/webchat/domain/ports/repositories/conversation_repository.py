"""
Conversation Repository Port - Interface for conversation and membership persistence.
Implementation: webchat/infrastructure/persistence/sqlalchemy_conversation_repository.py
"""

from abc import ABC, abstractmethod
from typing import Optional
from webchat.domain.entities.conversation import Conversation
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId


class ConversationRepository(ABC):
    @abstractmethod
    async def create(self, name: str, participant_ids: list[UserId]) -> Conversation:
        """
        Create a conversation hydrated with memberships and their users.

        Raises DomainValidationError with fewer than two participant ids.
        Ids that do not resolve to a user are skipped.
        """

    @abstractmethod
    async def get_by_id(
        self, conversation_id: ConversationId
    ) -> Optional[Conversation]: ...

    @abstractmethod
    async def list_for_user(self, user_id: UserId) -> list[Conversation]:
        """Conversations the user is a member of, newest-created first."""

    @abstractmethod
    async def list_all(self) -> list[Conversation]: ...

    @abstractmethod
    async def member_ids(self, conversation_id: ConversationId) -> list[UserId]: ...

    @abstractmethod
    async def add_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        """False if the membership already existed."""

    @abstractmethod
    async def remove_membership(
        self, conversation_id: ConversationId, user_id: UserId
    ) -> bool:
        """False if the membership was already absent."""
