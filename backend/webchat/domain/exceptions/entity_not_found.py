"""
EntityNotFoundError - Raised when a requested entity does not exist.
Maps to: HTTP 404 Not Found
"""

from typing import Any, Optional


class EntityNotFoundError(Exception):
    """Exception raised when a requested entity is not found."""

    def __init__(
        self,
        message: str = "The requested entity was not found.",
        entity: Optional[str] = None,
        entity_id: Any = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id

    @classmethod
    def for_entity(cls, entity: str, entity_id: Any) -> "EntityNotFoundError":
        return cls(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
