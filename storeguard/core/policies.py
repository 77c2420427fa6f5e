"""Rate limiting policies per action kind.

Each protected operation (login, checkout, contact form, ...) has its own
attempt budget, counting window and block duration. The table is static and
read-only, so it is safe to share across threads without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from storeguard.core.errors import UnknownActionKindError

MINUTE = 60.0


class ActionKind(str, Enum):
    """Closed set of operations protected by the rate limiter."""

    LOGIN = "login"
    REGISTER = "register"
    EMAIL_VERIFICATION = "emailVerification"
    PASSWORD_RESET = "passwordReset"
    CONTACT = "contact"
    CHECKOUT = "checkout"
    IMAGE_UPLOAD = "imageUpload"
    GENERAL = "general"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limiting parameters for one action kind.

    Attributes:
        max_attempts: Attempts allowed within one window.
        window_seconds: Length of the counting window.
        block_seconds: How long a client stays blocked after exceeding the budget.
    """

    max_attempts: int
    window_seconds: float
    block_seconds: float


POLICIES: Mapping[ActionKind, RateLimitPolicy] = MappingProxyType(
    {
        ActionKind.LOGIN: RateLimitPolicy(5, 15 * MINUTE, 30 * MINUTE),
        ActionKind.REGISTER: RateLimitPolicy(3, 60 * MINUTE, 60 * MINUTE),
        ActionKind.EMAIL_VERIFICATION: RateLimitPolicy(5, 60 * MINUTE, 60 * MINUTE),
        ActionKind.PASSWORD_RESET: RateLimitPolicy(3, 60 * MINUTE, 60 * MINUTE),
        ActionKind.CONTACT: RateLimitPolicy(5, 60 * MINUTE, 60 * MINUTE),
        ActionKind.CHECKOUT: RateLimitPolicy(10, 5 * MINUTE, 15 * MINUTE),
        ActionKind.IMAGE_UPLOAD: RateLimitPolicy(20, 1 * MINUTE, 10 * MINUTE),
        ActionKind.GENERAL: RateLimitPolicy(100, 1 * MINUTE, 5 * MINUTE),
    }
)


def resolve_action_kind(action_kind: ActionKind | str) -> ActionKind:
    """Normalize a string or enum member into a registered ActionKind.

    Raises:
        UnknownActionKindError: If the value is not a registered action kind.
    """
    if isinstance(action_kind, ActionKind):
        return action_kind
    try:
        return ActionKind(action_kind)
    except ValueError:
        raise UnknownActionKindError(
            code="unknown_action_kind",
            message=f"No rate limit policy registered for action kind '{action_kind}'",
            details={"action_kind": str(action_kind)},
        ) from None


def lookup_policy(action_kind: ActionKind | str) -> RateLimitPolicy:
    """Return the policy for an action kind.

    Args:
        action_kind: ActionKind member or its string value (e.g. "login").

    Returns:
        The registered RateLimitPolicy.

    Raises:
        UnknownActionKindError: If the action kind is not registered.
    """
    return POLICIES[resolve_action_kind(action_kind)]
