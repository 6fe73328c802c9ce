"""WebSocket inbound command models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from webchat.realtime.events import CamelModel


class CommandType(str, Enum):
    ATTACH = "attach"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    TYPING = "typing"
    ACK = "ack"
    MARK_READ = "mark_read"
    PING = "ping"


class WsInbound(BaseModel):
    """Client → Server."""

    type: CommandType
    data: dict[str, Any] = {}


class AttachData(CamelModel):
    user_id: int = Field(gt=0)
    username: str = Field(min_length=1)


class RoomData(CamelModel):
    conversation_id: int = Field(gt=0)


class TypingData(CamelModel):
    conversation_id: int = Field(gt=0)
    is_typing: bool


class AckData(CamelModel):
    message_id: int = Field(gt=0)


class MarkReadData(CamelModel):
    conversation_id: int = Field(gt=0)
    last_read_message_id: int = Field(gt=0)
