"""User queries."""

from .get_user import (
    GetUserByNameHandler,
    GetUserByNameQuery,
    GetUserHandler,
    GetUserQuery,
)
from .list_users import ListUsersHandler, ListUsersQuery

__all__ = [
    "GetUserByNameHandler",
    "GetUserByNameQuery",
    "GetUserHandler",
    "GetUserQuery",
    "ListUsersHandler",
    "ListUsersQuery",
]
