"""
Conversations API Router - FastAPI endpoints for conversations and membership.

Flow:
  HTTP Request → Router → Command/Query → Handler → Cached repository → Store
                                                        ↓ (miss)
  HTTP Response ← Router ← Result ← ─────────────── Redis cache
"""

from logging import getLogger

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, HTTPException, Path, Response, status
from pydantic import Field, PositiveInt

from webchat.application.commands.conversations import (
    AddMemberCommand,
    AddMemberHandler,
    CreateConversationCommand,
    CreateConversationHandler,
    RemoveMemberCommand,
    RemoveMemberHandler,
)
from webchat.application.dto.base import CamelDTO
from webchat.application.dto.conversation import ConversationDTO
from webchat.application.queries.conversations import (
    GetConversationHandler,
    GetConversationQuery,
    ListAllConversationsHandler,
    ListAllConversationsQuery,
    ListUserConversationsHandler,
    ListUserConversationsQuery,
)
from webchat.domain.exceptions import DomainValidationError, EntityNotFoundError
from webchat.domain.value_objects.conversation_id import ConversationId
from webchat.domain.value_objects.user_id import UserId

logger = getLogger(__name__)


# ==================== REQUEST/RESPONSE MODELS ====================


class CreateConversationRequest(CamelDTO):
    """Body: {"name": "...", "participantIds": [1, 2]}"""

    name: str
    participant_ids: list[PositiveInt] = Field(min_length=1)


class AddMemberRequest(CamelDTO):
    user_id: PositiveInt


class MembershipChangeResponse(CamelDTO):
    conversation_id: int
    user_id: int
    changed: bool


# ==================== ROUTER ====================

router = APIRouter(prefix="/conversations", tags=["conversations"])


# ==================== ENDPOINTS ====================


@router.post("", response_model=ConversationDTO, status_code=status.HTTP_201_CREATED)
@inject
async def create_conversation(
    request: CreateConversationRequest,
    handler: FromDishka[CreateConversationHandler],
):
    """Two participants make a direct conversation, three or more a group."""
    try:
        conversation = await handler.execute(
            CreateConversationCommand(
                name=request.name,
                participant_ids=tuple(UserId(uid) for uid in request.participant_ids),
            )
        )
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return ConversationDTO.from_entity(conversation)


@router.get("", response_model=list[ConversationDTO])
@inject
async def list_conversations(handler: FromDishka[ListAllConversationsHandler]):
    conversations = await handler.execute(ListAllConversationsQuery())
    return [ConversationDTO.from_entity(c) for c in conversations]


@router.get("/user/{user_id}", response_model=list[ConversationDTO])
@inject
async def list_user_conversations(
    handler: FromDishka[ListUserConversationsHandler],
    user_id: int = Path(gt=0),
):
    conversations = await handler.execute(ListUserConversationsQuery(user_id=UserId(user_id)))
    return [ConversationDTO.from_entity(c) for c in conversations]


@router.get("/{conversation_id}", response_model=ConversationDTO)
@inject
async def get_conversation(
    handler: FromDishka[GetConversationHandler],
    conversation_id: int = Path(gt=0),
):
    try:
        conversation = await handler.execute(
            GetConversationQuery(conversation_id=ConversationId(conversation_id))
        )
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return ConversationDTO.from_entity(conversation)


@router.post("/{conversation_id}/members", response_model=MembershipChangeResponse)
@inject
async def add_member(
    request: AddMemberRequest,
    response: Response,
    handler: FromDishka[AddMemberHandler],
    conversation_id: int = Path(gt=0),
):
    """201 when the user was added, 200 with changed=false when already a member."""
    try:
        changed = await handler.execute(
            AddMemberCommand(
                conversation_id=ConversationId(conversation_id),
                user_id=UserId(request.user_id),
            )
        )
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    response.status_code = status.HTTP_201_CREATED if changed else status.HTTP_200_OK
    return MembershipChangeResponse(
        conversation_id=conversation_id, user_id=request.user_id, changed=changed
    )


@router.delete(
    "/{conversation_id}/members/{user_id}", response_model=MembershipChangeResponse
)
@inject
async def remove_member(
    handler: FromDishka[RemoveMemberHandler],
    conversation_id: int = Path(gt=0),
    user_id: int = Path(gt=0),
):
    try:
        changed = await handler.execute(
            RemoveMemberCommand(
                conversation_id=ConversationId(conversation_id),
                user_id=UserId(user_id),
            )
        )
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return MembershipChangeResponse(
        conversation_id=conversation_id, user_id=user_id, changed=changed
    )
