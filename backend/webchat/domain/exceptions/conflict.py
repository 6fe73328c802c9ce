"""
ConflictError - Raised when a write would duplicate a unique key.
Maps to: HTTP 409 Conflict
"""


class ConflictError(Exception):
    """Exception raised when a unique constraint would be violated."""

    def __init__(self, message: str = "The resource already exists."):
        super().__init__(message)
