"""
Username Value Object - display name with length rules.

Uniqueness is case-insensitive and enforced by the store; `normalized` is the
form it compares on.
"""

from dataclasses import dataclass

from webchat.domain.exceptions.validation_error import DomainValidationError

MIN_LENGTH = 3
MAX_LENGTH = 50


@dataclass(frozen=True)
class Username:
    value: str

    def __post_init__(self):
        value = (self.value or "").strip()
        if not value:
            raise DomainValidationError("Username is required")
        if not MIN_LENGTH <= len(value) <= MAX_LENGTH:
            raise DomainValidationError(
                f"Username must be between {MIN_LENGTH} and {MAX_LENGTH} characters"
            )
        object.__setattr__(self, "value", value)

    @property
    def normalized(self) -> str:
        return self.value.lower()

    def __str__(self) -> str:
        return self.value
