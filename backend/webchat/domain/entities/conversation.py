"""
Conversation Entity - A named channel between two or more users.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from webchat.domain.entities.user import User
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId

MIN_PARTICIPANTS = 2


class ConversationKind(str, Enum):
    DIRECT = "direct"
    GROUP = "group"

    @classmethod
    def for_participant_count(cls, count: int) -> ConversationKind:
        """Kind is fixed at creation: exactly two participants is a direct chat."""
        return cls.DIRECT if count == MIN_PARTICIPANTS else cls.GROUP


@dataclass
class Membership:
    conversation_id: ConversationId
    user: User
    joined_at: datetime

    @property
    def user_id(self) -> UserId:
        return self.user.id


@dataclass
class Conversation:
    id: ConversationId
    name: str
    kind: ConversationKind
    created_at: datetime
    memberships: list[Membership] = field(default_factory=list)

    @property
    def member_ids(self) -> list[UserId]:
        return [membership.user_id for membership in self.memberships]

    def has_member(self, user_id: UserId) -> bool:
        return any(m.user_id == user_id for m in self.memberships)
