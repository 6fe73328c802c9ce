"""User commands."""

from .create_user import CreateUserCommand, CreateUserHandler
from .delete_user import DeleteUserCommand, DeleteUserHandler
from .rename_user import RenameUserCommand, RenameUserHandler

__all__ = [
    "CreateUserCommand",
    "CreateUserHandler",
    "DeleteUserCommand",
    "DeleteUserHandler",
    "RenameUserCommand",
    "RenameUserHandler",
]
