"""
StaleConnectionError - Raised when a live connection can no longer be written to.
Never surfaced to callers: the hub recovers by detaching the connection.
"""


class StaleConnectionError(Exception):
    """Exception raised when sending to a dead live connection."""

    def __init__(self, connection_id: str, message: str = "Connection is stale."):
        super().__init__(f"{message} ({connection_id})")
        self.connection_id = connection_id
