"""Conversation-related queries."""

from webchat.application.queries.conversations.get_conversation import (
    GetConversationHandler,
    GetConversationQuery,
)
from webchat.application.queries.conversations.list_conversations import (
    ListAllConversationsHandler,
    ListAllConversationsQuery,
    ListUserConversationsHandler,
    ListUserConversationsQuery,
)

__all__ = [
    "GetConversationHandler",
    "GetConversationQuery",
    "ListAllConversationsHandler",
    "ListAllConversationsQuery",
    "ListUserConversationsHandler",
    "ListUserConversationsQuery",
]
