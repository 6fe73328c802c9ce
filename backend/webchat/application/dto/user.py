"""User DTOs for API request/response."""

from datetime import datetime

from webchat.application.dto.base import CamelDTO
from webchat.domain.entities.user import User


class UserDTO(CamelDTO):
    id: int
    username: str
    created_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserDTO":
        return cls(id=user.id.value, username=user.username, created_at=user.created_at)
