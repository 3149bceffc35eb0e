"""Application-level exception types.

This module defines domain errors used across services/guards, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes consistent without forcing every
    error to carry every key.
    """

    errors: list[str]
    hint: str
    field: str
    prediction_id: int
    max_bytes: int
    actual_bytes: int
    limit: int
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input fails validation."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""


class AbuseAppError(AppError):
    """Raised when a request is flagged as automated or blocked."""


class PayloadTooLargeAppError(AppError):
    """Raised when a request body exceeds the configured limit."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exceeds its request budget.

    Attributes:
        headers: Response headers (Retry-After, X-RateLimit-*) to send back.
    """

    headers: dict[str, str] | None = None


class DatabaseAppError(AppError):
    """Raised when a storage operation fails unexpectedly."""
