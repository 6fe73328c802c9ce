"""Chat commands."""

from .message_status import (
    AcknowledgeMessageCommand,
    AcknowledgeMessageHandler,
    MarkReadCommand,
    MarkReadHandler,
    UpdateMessageStatusCommand,
    UpdateMessageStatusHandler,
)
from .send_message import SendMessageCommand, SendMessageHandler

__all__ = [
    "AcknowledgeMessageCommand",
    "AcknowledgeMessageHandler",
    "MarkReadCommand",
    "MarkReadHandler",
    "SendMessageCommand",
    "SendMessageHandler",
    "UpdateMessageStatusCommand",
    "UpdateMessageStatusHandler",
]
