"""
ConversationId Value Object - integer wrapper for conversation identity.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationId:
    value: int  # conversations.id, assigned by the store

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"Invalid conversation ID: {self.value!r}")
        if self.value <= 0:
            raise ValueError(f"Invalid conversation ID: {self.value}")

    def __str__(self) -> str:
        return str(self.value)
