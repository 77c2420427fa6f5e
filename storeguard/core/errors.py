"""Application-level exception types.

This module defines the failures the request-defense layer surfaces to its
callers, enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str | None
    category: str
    action_kind: str
    reset_at: float
    blocked: bool
    retry_after: int
    max_depth: int
    request_id: str
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
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class UnknownActionKindError(AppError):
    """Raised when a caller uses an action kind with no registered policy.

    This is a programming error: it should never be triggered by end users.
    """


@dataclass
class MaliciousInputError(AppError):
    """Raised when a payload string looks like an injection attempt.

    Attributes:
        field: Path of the first offending field (None for a bare string).
        category: Which detector fired ("sql" or "xss").
    """

    field: str | None = None
    category: str = "none"


@dataclass
class RateLimitExceededError(AppError):
    """Raised when a client exceeded the attempts allowed for an action kind.

    Attributes:
        reset_at: UNIX epoch seconds when the client may try again.
        blocked: Whether the client is in a hard-block state.
        retry_after_seconds: Whole seconds until reset_at.
        limit: Max attempts per window for the action kind.
    """

    reset_at: float = 0.0
    blocked: bool = True
    retry_after_seconds: int = 0
    limit: int = 0
