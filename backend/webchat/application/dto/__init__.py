"""
DTOs - Data Transfer Objects

DTOs for transferring data between layers:
- user.py         → UserDTO
- conversation.py → ConversationDTO, MembershipDTO
- message.py      → MessageDTO

Note: These are different from domain entities.
DTOs are for API input/output, entities are for business logic.
"""

from webchat.application.dto.conversation import ConversationDTO, MembershipDTO
from webchat.application.dto.message import MessageDTO
from webchat.application.dto.user import UserDTO

__all__ = [
    "ConversationDTO",
    "MembershipDTO",
    "MessageDTO",
    "UserDTO",
]
