"""Chat-related queries."""

from webchat.application.queries.chat.get_chat_history import (
    GetChatHistoryHandler,
    GetChatHistoryQuery,
)
from webchat.application.queries.chat.get_message import (
    GetMessageHandler,
    GetMessageQuery,
)

__all__ = [
    "GetChatHistoryHandler",
    "GetChatHistoryQuery",
    "GetMessageHandler",
    "GetMessageQuery",
]
