"""Credit amounts: a non-negative integer value type."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InsufficientCreditsError, ValidationError


@dataclass(frozen=True)
class CreditAmount:
    value: int

    @classmethod
    def of(cls, value) -> "CreditAmount":
        """Validated construction for values coming from callers."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("credits", "Credit amount must be an integer")
        if value < 0:
            raise ValidationError("credits", "Credit amount cannot be negative")
        return cls(value)

    @classmethod
    def from_trusted(cls, value: int) -> "CreditAmount":
        """Unchecked construction for values already verified, e.g. read from storage."""
        return cls(value)

    @classmethod
    def zero(cls) -> "CreditAmount":
        return cls(0)

    def add(self, other: "CreditAmount") -> "CreditAmount":
        return CreditAmount(self.value + other.value)

    def subtract(self, other: "CreditAmount") -> "CreditAmount":
        remaining = self.value - other.value
        if remaining < 0:
            raise InsufficientCreditsError(required=other.value, available=self.value)
        return CreditAmount(remaining)

    def gte(self, other: "CreditAmount") -> bool:
        return self.value >= other.value

    def is_zero(self) -> bool:
        return self.value == 0

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} credits"
