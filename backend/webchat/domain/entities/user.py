"""
User Entity - A chat participant.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime

from webchat.domain.value_objects.user_id import UserId
from webchat.domain.value_objects.username import Username


@dataclass
class User:
    id: UserId
    username: str
    created_at: datetime

    def rename(self, new_name: Username) -> None:
        # Identity persists across renames; only the display name changes
        self.username = new_name.value
