"""
DOMAIN EXCEPTIONS - Business rule violations

These exceptions are raised by domain logic and caught by presentation layer.
Presentation layer maps them to HTTP status codes.
"""

from webchat.domain.exceptions.entity_not_found import EntityNotFoundError
from webchat.domain.exceptions.validation_error import DomainValidationError
from webchat.domain.exceptions.conflict import ConflictError
from webchat.domain.exceptions.storage_error import StorageError
from webchat.domain.exceptions.stale_connection import StaleConnectionError

__all__ = [
    "EntityNotFoundError",
    "DomainValidationError",
    "ConflictError",
    "StorageError",
    "StaleConnectionError",
]
