from __future__ import annotations

from typing import Any


class DomainError(Exception):
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ValidationError(DomainError):
    """Malformed or out-of-range input. Recoverable by the caller."""

    code = "VALIDATION_FAILED"


class ConflictError(DomainError):
    code = "CONFLICT"


class PreconditionError(DomainError):
    code = "PRECONDITION_FAILED"


class NotFoundError(DomainError):
    code = "NOT_FOUND"
