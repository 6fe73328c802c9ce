"""
Messages API Router - send, page through and update messages.

POST /conversations/{id}/messages persists the message, invalidates the
cached conversation state, and broadcasts message_received to the room,
all before the 201 is returned.
"""

from logging import getLogger
from typing import Optional

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, HTTPException, Path, Query, status
from pydantic import PositiveInt

from webchat.application.commands.chat import (
    SendMessageCommand,
    SendMessageHandler,
    UpdateMessageStatusCommand,
    UpdateMessageStatusHandler,
)
from webchat.application.dto.base import CamelDTO
from webchat.application.dto.message import MessageDTO
from webchat.application.queries.chat import (
    GetChatHistoryHandler,
    GetChatHistoryQuery,
    GetMessageHandler,
    GetMessageQuery,
)
from webchat.config.settings import Config
from webchat.domain.entities.message import MessageStatus
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.message_id import MessageId
from webchat.domain.value_objects.user_id import UserId

logger = getLogger(__name__)


# ==================== REQUEST/RESPONSE MODELS ====================


class SendMessageRequest(CamelDTO):
    """Body: {"senderId": 1, "content": "hi"}"""

    sender_id: PositiveInt
    content: str


class UpdateStatusRequest(CamelDTO):
    status: MessageStatus


# ==================== ROUTER ====================

router = APIRouter(tags=["messages"])


# ==================== ENDPOINTS ====================


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageDTO,
    status_code=status.HTTP_201_CREATED,
)
@inject
async def send_message(
    request: SendMessageRequest,
    handler: FromDishka[SendMessageHandler],
    conversation_id: int = Path(gt=0),
):
    try:
        message = await handler.execute(
            SendMessageCommand(
                conversation_id=ConversationId(conversation_id),
                sender_id=UserId(request.sender_id),
                content=request.content,
            )
        )
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return MessageDTO.from_entity(message)


@router.get("/conversations/{conversation_id}/messages", response_model=list[MessageDTO])
@inject
async def get_messages(
    handler: FromDishka[GetChatHistoryHandler],
    conversation_id: int = Path(gt=0),
    take: int = Query(Config.MESSAGE_PAGE_SIZE, ge=1),
    skip: int = Query(0, ge=0),
    before_id: Optional[int] = Query(None, alias="beforeId", gt=0),
):
    """
    Latest `take` messages after skipping `skip`, oldest first.
    `beforeId` restricts to older messages for scroll-back.
    """
    try:
        messages = await handler.execute(
            GetChatHistoryQuery(
                conversation_id=ConversationId(conversation_id),
                take=take,
                skip=skip,
                before_id=MessageId(before_id) if before_id else None,
            )
        )
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return [MessageDTO.from_entity(m) for m in messages]


@router.get("/messages/{message_id}", response_model=MessageDTO)
@inject
async def get_message(handler: FromDishka[GetMessageHandler], message_id: int = Path(gt=0)):
    try:
        message = await handler.execute(GetMessageQuery(message_id=MessageId(message_id)))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return MessageDTO.from_entity(message)


@router.put("/messages/{message_id}/status", response_model=MessageDTO)
@inject
async def update_message_status(
    request: UpdateStatusRequest,
    handler: FromDishka[UpdateMessageStatusHandler],
    message_id: int = Path(gt=0),
):
    """Status only moves forward; an earlier status is ignored and the current message returned."""
    try:
        message = await handler.execute(
            UpdateMessageStatusCommand(message_id=MessageId(message_id), status=request.status)
        )
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return MessageDTO.from_entity(message)
