"""Conversation commands."""

from .create_conversation import CreateConversationCommand, CreateConversationHandler
from .manage_members import (
    AddMemberCommand,
    AddMemberHandler,
    RemoveMemberCommand,
    RemoveMemberHandler,
)

__all__ = [
    "AddMemberCommand",
    "AddMemberHandler",
    "CreateConversationCommand",
    "CreateConversationHandler",
    "RemoveMemberCommand",
    "RemoveMemberHandler",
]
