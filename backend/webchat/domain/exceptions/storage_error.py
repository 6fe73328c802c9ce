"""
StorageError - Raised when the durable store fails (I/O, driver, integrity).
Maps to: HTTP 500 Internal Server Error

Writes are never partially applied when this is raised, so the whole request
is safe to retry.
"""


class StorageError(Exception):
    """Exception raised when a persistence operation fails."""

    def __init__(self, message: str = "Storage operation failed."):
        super().__init__(message)
