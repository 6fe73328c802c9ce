"""
MessageId Value Object - integer wrapper for message identity.

Message ids grow monotonically, so they double as the tie-breaker of the
(timestamp, id) history ordering and as the `before_id` paging cursor.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageId:
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Invalid message ID: {self.value!r}")
        if self.value <= 0:
            raise ValueError(f"Invalid message ID: {self.value}")

    def __str__(self) -> str:
        return str(self.value)
