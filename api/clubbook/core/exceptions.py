"""Domain errors raised by the availability engine and its repositories.

Each error carries the HTTP status it maps to; the FastAPI exception handler in
``clubbook.main`` renders them. None of them is retried inside the engine.
"""

from typing import Any

from fastapi import status


class DomainError(Exception):
    """Base class for errors local to a single query."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationError(DomainError):
    """Malformed or missing query parameter. ``details["field"]`` names the offender."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, message: str):
        super().__init__(message, details={"field": field})
        self.field = field


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class RepositoryUnavailable(DomainError):
    """The data store failed or timed out. Transient; retry policy belongs to the caller."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InvariantViolation(DomainError):
    """Inconsistent stored data the engine tolerates. Logged, never surfaced."""
