"""Conversation DTOs for API request/response."""

from datetime import datetime

from webchat.application.dto.base import CamelDTO
from webchat.application.dto.user import UserDTO
from webchat.domain.entities.conversation import (
    Conversation,
    ConversationKind,
    Membership,
)


class MembershipDTO(CamelDTO):
    conversation_id: int
    user_id: int
    user: UserDTO
    joined_at: datetime

    @classmethod
    def from_entity(cls, membership: Membership) -> "MembershipDTO":
        return cls(
            conversation_id=membership.conversation_id.value,
            user_id=membership.user_id.value,
            user=UserDTO.from_entity(membership.user),
            joined_at=membership.joined_at,
        )


class ConversationDTO(CamelDTO):
    id: int
    name: str
    kind: ConversationKind
    created_at: datetime
    members: list[MembershipDTO]

    @classmethod
    def from_entity(cls, conversation: Conversation) -> "ConversationDTO":
        return cls(
            id=conversation.id.value,
            name=conversation.name,
            kind=conversation.kind,
            created_at=conversation.created_at,
            members=[MembershipDTO.from_entity(m) for m in conversation.memberships],
        )
