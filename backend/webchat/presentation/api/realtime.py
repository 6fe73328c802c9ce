"""
Live channel - WebSocket endpoint in front of the Hub.

Wire format (both directions): {"type": "...", "data": {...}}

Inbound:
    attach      {userId, username}
    join_room   {conversationId}
    leave_room  {conversationId}
    typing      {conversationId, isTyping}
    ack         {messageId}                            → message delivered
    mark_read   {conversationId, lastReadMessageId}    → messages read
    ping

Every command is answered on the same socket with `ack` (its result) or
`error`; `ping` gets `pong`. Events fanned out by the hub arrive interleaved
with those replies.

DI: a WebSocket gets a SESSION-scoped container from Dishka. Commands that
need repositories open a REQUEST scope of their own.
"""

import logging
from typing import Optional

from dishka import AsyncContainer
from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from webchat.application.commands.chat import (
    AcknowledgeMessageCommand,
    AcknowledgeMessageHandler,
    MarkReadCommand,
    MarkReadHandler,
)
from webchat.config.logging_config import correlation_id_var
from webchat.domain.exceptions import (
    DomainValidationError,
    EntityNotFoundError,
    StorageError,
)
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId
from webchat.realtime.connection import LiveConnection
from webchat.realtime.events import EventType, envelope
from webchat.realtime.hub import Hub
from webchat.realtime.protocol import (
    AckData,
    AttachData,
    CommandType,
    MarkReadData,
    RoomData,
    TypingData,
    WsInbound,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
@inject
async def live_channel(
    websocket: WebSocket,
    hub: FromDishka[Hub],
    container: FromDishka[AsyncContainer],
):
    await websocket.accept()
    connection = LiveConnection.for_websocket(websocket)
    correlation_id_var.set(f"ws-{connection.id}")
    logger.info(f"[WS] Connection {connection.id} opened")

    try:
        while True:
            raw = await websocket.receive_text()
            reply = await _handle(raw, connection, hub, container)
            if reply is not None:
                await connection.send(reply)
    except WebSocketDisconnect:
        logger.info(f"[WS] Connection {connection.id} closed by client")
    finally:
        await hub.detach(connection)


async def _handle(
    raw: str, connection: LiveConnection, hub: Hub, container: AsyncContainer
) -> Optional[dict]:
    try:
        inbound = WsInbound.model_validate_json(raw)
    except ValidationError as e:
        return envelope(EventType.ERROR, error="Malformed command", details=e.errors(include_url=False))

    command = inbound.type.value
    try:
        return await _dispatch(inbound, connection, hub, container)
    except ValidationError as e:
        return envelope(
            EventType.ERROR,
            command=command,
            error="Invalid command data",
            details=e.errors(include_url=False),
        )
    except DomainValidationError as e:
        return envelope(EventType.ERROR, command=command, error=e.message)
    except EntityNotFoundError as e:
        return envelope(EventType.ERROR, command=command, error=str(e))
    except StorageError as e:
        logger.error(f"[WS] {command} failed on {connection.id}: {e}")
        return envelope(EventType.ERROR, command=command, error="Internal server error")


async def _dispatch(
    inbound: WsInbound, connection: LiveConnection, hub: Hub, container: AsyncContainer
) -> Optional[dict]:
    command = inbound.type

    if command is CommandType.PING:
        return envelope(EventType.PONG)

    if command is CommandType.ATTACH:
        data = AttachData.model_validate(inbound.data)
        attached = await hub.attach(connection, UserId(data.user_id), data.username)
        return envelope(
            EventType.ACK,
            command=command.value,
            connectionId=connection.id,
            changed=attached,
        )

    if command is CommandType.JOIN_ROOM:
        data = RoomData.model_validate(inbound.data)
        joined = await hub.join_room(connection, ConversationId(data.conversation_id))
        return envelope(
            EventType.ACK,
            command=command.value,
            conversationId=data.conversation_id,
            changed=joined,
        )

    if command is CommandType.LEAVE_ROOM:
        data = RoomData.model_validate(inbound.data)
        left = await hub.leave_room(connection, ConversationId(data.conversation_id))
        return envelope(
            EventType.ACK,
            command=command.value,
            conversationId=data.conversation_id,
            changed=left,
        )

    if command is CommandType.TYPING:
        data = TypingData.model_validate(inbound.data)
        changed = await hub.set_typing(
            connection, ConversationId(data.conversation_id), data.is_typing
        )
        return envelope(
            EventType.ACK,
            command=command.value,
            conversationId=data.conversation_id,
            changed=changed,
        )

    if not connection.is_attached:
        raise DomainValidationError("Connection must attach before this command")

    if command is CommandType.ACK:
        data = AckData.model_validate(inbound.data)
        async with container() as request_container:
            handler = await request_container.get(AcknowledgeMessageHandler)
            changed = await handler.execute(
                AcknowledgeMessageCommand(
                    message_id=MessageId(data.message_id), user_id=connection.user_id
                )
            )
        return envelope(
            EventType.ACK,
            command=command.value,
            messageIds=[m.value for m in changed],
        )

    if command is CommandType.MARK_READ:
        data = MarkReadData.model_validate(inbound.data)
        async with container() as request_container:
            handler = await request_container.get(MarkReadHandler)
            changed = await handler.execute(
                MarkReadCommand(
                    conversation_id=ConversationId(data.conversation_id),
                    user_id=connection.user_id,
                    last_read_message_id=MessageId(data.last_read_message_id),
                )
            )
        return envelope(
            EventType.ACK,
            command=command.value,
            conversationId=data.conversation_id,
            messageIds=[m.value for m in changed],
        )

    return envelope(EventType.ERROR, command=command.value, error="Unsupported command")
