"""
Outbound live events.

Every event leaves the hub as a ws envelope: {"type": <EventType>, "data": {...}}
with camelCase keys in `data`.

New-message events come from two sources: the HTTP send path, which has a
persisted Message, and callers that only know (conversation, sender name,
content). Both are modelled explicitly and normalized into one
MessageReceived payload before anything is sent.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from webchat.domain.entities.message import Message, MessageStatus


class EventType(str, Enum):
    MESSAGE_RECEIVED = "message_received"
    TYPING_CHANGED = "typing_changed"
    PRESENCE_CHANGED = "presence_changed"
    MESSAGE_STATUS_CHANGED = "message_status_changed"
    ACK = "ack"
    ERROR = "error"
    PONG = "pong"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WsOutbound(BaseModel):
    """Server → Client."""

    type: EventType
    data: dict[str, Any] = {}


def envelope(event_type: EventType, payload: Optional[CamelModel] = None, **data) -> dict:
    if payload is not None:
        data = payload.model_dump(mode="json", by_alias=True)
    return WsOutbound(type=event_type, data=data).model_dump(mode="json")


# =============================================================================
# MESSAGE EVENTS
# =============================================================================
class MessageReceived(CamelModel):
    """Canonical payload of a message_received event."""

    conversation_id: int
    sender_username: Optional[str]
    content: str
    message_id: Optional[int] = None
    sender_id: Optional[int] = None
    timestamp: Optional[datetime] = None
    status: Optional[MessageStatus] = None


class PersistedMessageEvent(BaseModel):
    source: Literal["persisted"] = "persisted"
    message_id: int
    conversation_id: int
    sender_id: Optional[int]
    sender_username: Optional[str]
    content: str
    created_at: datetime
    status: MessageStatus

    @classmethod
    def from_message(cls, message: Message) -> "PersistedMessageEvent":
        return cls(
            message_id=message.id.value,
            conversation_id=message.conversation_id.value,
            sender_id=message.sender_id.value if message.sender_id else None,
            sender_username=message.sender_username,
            content=message.content,
            created_at=message.created_at,
            status=message.status,
        )


class LiveMessageEvent(BaseModel):
    source: Literal["live"] = "live"
    conversation_id: int
    sender_username: str
    content: str


MessageEvent = Union[PersistedMessageEvent, LiveMessageEvent]


def normalize_message_event(event: MessageEvent) -> MessageReceived:
    if isinstance(event, PersistedMessageEvent):
        return MessageReceived(
            conversation_id=event.conversation_id,
            sender_username=event.sender_username,
            content=event.content,
            message_id=event.message_id,
            sender_id=event.sender_id,
            timestamp=event.created_at,
            status=event.status,
        )
    return MessageReceived(
        conversation_id=event.conversation_id,
        sender_username=event.sender_username,
        content=event.content,
    )


# =============================================================================
# PRESENCE / TYPING / STATUS
# =============================================================================
class TypingChanged(CamelModel):
    conversation_id: int
    user_id: int
    username: str
    is_typing: bool


class PresenceChanged(CamelModel):
    user_id: int
    username: str
    is_online: bool


class MessageStatusChanged(CamelModel):
    conversation_id: int
    message_ids: list[int]
    status: MessageStatus
