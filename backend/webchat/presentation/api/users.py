"""
Users API Router - create/read/rename/delete users.

Status codes:
- 201 created, 204 deleted
- 400 invalid name (blank or not 3-50 characters)
- 404 unknown id / name
- 409 name already taken (case-insensitive)
"""

from logging import getLogger

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, HTTPException, Path, Response, status
from pydantic import AliasChoices, BaseModel, Field

from webchat.application.commands.users import (
    CreateUserCommand,
    CreateUserHandler,
    DeleteUserCommand,
    DeleteUserHandler,
    RenameUserCommand,
    RenameUserHandler,
)
from webchat.application.dto.user import UserDTO
from webchat.application.queries.users import (
    GetUserByNameHandler,
    GetUserByNameQuery,
    GetUserHandler,
    GetUserQuery,
    ListUsersHandler,
    ListUsersQuery,
)
from webchat.domain.exceptions import (
    ConflictError,
    DomainValidationError,
    EntityNotFoundError,
)
from webchat.domain.value_objects.user_id import UserId

logger = getLogger(__name__)


# ==================== REQUEST/RESPONSE MODELS ====================


class UserNameRequest(BaseModel):
    """Body for create and rename. Accepts `name` or `username`."""

    name: str = Field(validation_alias=AliasChoices("name", "username"))


# ==================== ROUTER ====================

router = APIRouter(prefix="/users", tags=["users"])


# ==================== ENDPOINTS ====================


@router.post("", response_model=UserDTO, status_code=status.HTTP_201_CREATED)
@inject
async def create_user(request: UserNameRequest, handler: FromDishka[CreateUserHandler]):
    try:
        user = await handler.execute(CreateUserCommand(name=request.name))
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return UserDTO.from_entity(user)


@router.get("", response_model=list[UserDTO])
@inject
async def list_users(handler: FromDishka[ListUsersHandler]):
    users = await handler.execute(ListUsersQuery())
    return [UserDTO.from_entity(u) for u in users]


@router.get("/username/{username}", response_model=UserDTO)
@inject
async def get_user_by_name(username: str, handler: FromDishka[GetUserByNameHandler]):
    try:
        user = await handler.execute(GetUserByNameQuery(username=username))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return UserDTO.from_entity(user)


@router.get("/{user_id}", response_model=UserDTO)
@inject
async def get_user(handler: FromDishka[GetUserHandler], user_id: int = Path(gt=0)):
    try:
        user = await handler.execute(GetUserQuery(user_id=UserId(user_id)))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return UserDTO.from_entity(user)


@router.put("/{user_id}", response_model=UserDTO)
@inject
async def rename_user(
    request: UserNameRequest,
    handler: FromDishka[RenameUserHandler],
    user_id: int = Path(gt=0),
):
    """Rename a user. Cached conversations showing the old name are invalidated."""
    try:
        user = await handler.execute(
            RenameUserCommand(user_id=UserId(user_id), name=request.name)
        )
    except DomainValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    return UserDTO.from_entity(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@inject
async def delete_user(handler: FromDishka[DeleteUserHandler], user_id: int = Path(gt=0)):
    try:
        await handler.execute(DeleteUserCommand(user_id=UserId(user_id)))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
