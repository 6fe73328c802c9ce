"""
Base interfaces for CQRS pattern.

Usage:
    @dataclass(frozen=True)
    class CreateUserCommand(Command[User]):
        name: str

    class CreateUserHandler(CommandHandler[User]):
        def __init__(self, user_repository: UserRepository):
            self._user_repository = user_repository

        async def execute(self, command: CreateUserCommand) -> User:
            return await self._user_repository.create(Username(command.name))
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

T = TypeVar("T")
class Command(ABC, Generic[T]):
    """Base class for write operations"""
    pass

class CommandHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, command: Command[T]) -> T:
        """Execute the command and return a result of type T"""
        ...

class Query(ABC, Generic[T]):
    """Base class for read operations"""
    pass

class QueryHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, query: Query[T]) -> T:
        """Execute the query and return a result of type T"""
        ...
