"""Typed failures shared by the reading and progression domain.

Every error carries enough context (code, HTTP status, details) to be rendered
directly at the boundary. Nothing in the domain logs or retries these.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class DomainError(Exception):
    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class ValidationError(DomainError):
    """Malformed input to a constructor or mutator. Caller-correctable."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message, {"field": field})
        self.field = field


class InvalidSpreadTypeError(DomainError):
    code = "INVALID_SPREAD_TYPE"
    status_code = 400

    def __init__(self, value: str, valid: Iterable[str] = ()):
        valid = list(valid)
        super().__init__(
            f"Invalid spread type: {value!r}. Valid types: {', '.join(valid)}",
            {"value": value, "valid": valid},
        )
        self.value = value
        self.valid = valid


class InsufficientCreditsError(DomainError):
    code = "INSUFFICIENT_CREDITS"
    status_code = 402

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits: need {required}, have {available}",
            {"required": required, "available": available, "shortfall": required - available},
        )
        self.required = required
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class SummarizationError(RuntimeError):
    """The summarization collaborator failed. Transient; not a domain error."""


class ReadingNotFoundError(DomainError):
    code = "READING_NOT_FOUND"
    status_code = 404

    def __init__(self, reading_id: str):
        super().__init__(f"Reading not found: {reading_id}", {"reading_id": reading_id})
        self.reading_id = reading_id
