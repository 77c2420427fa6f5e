"""Rate limit store interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from storeguard.core.policies import ActionKind


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        remaining: Attempts left in the current window (0 when denied).
        reset_at: UNIX epoch seconds when the window ends, or when the block
            lifts for a denied request.
        blocked: Whether the client is in a hard-block state.
        limit: Max attempts per window for the action kind.
    """

    allowed: bool
    remaining: int
    reset_at: float
    blocked: bool
    limit: int

    def retry_after_seconds(self, now: float) -> int:
        """Whole seconds until reset_at (never negative)."""
        return max(0, int(math.ceil(self.reset_at - now)))

    def retry_after_minutes(self, now: float) -> int:
        """Whole minutes until reset_at, rounded up."""
        return max(0, int(math.ceil((self.reset_at - now) / 60)))


class AbstractRateLimitStore(ABC):
    """Interface for rate limit stores keyed by (action kind, identifier)."""

    @abstractmethod
    def check_and_consume(
        self,
        identifier: str,
        action_kind: ActionKind | str,
        now: float | None = None,
    ) -> RateLimitDecision:
        """Record one attempt and decide whether it is admitted.

        Args:
            identifier: Client identifier (typically the client IP).
            action_kind: Protected operation.
            now: Current UNIX time in seconds (defaults to the store clock).

        Returns:
            RateLimitDecision describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, identifier: str, action_kind: ActionKind | str) -> bool:
        """Delete the state for a key. Returns whether an entry existed."""
        raise NotImplementedError

    @abstractmethod
    def is_blocked(
        self,
        identifier: str,
        action_kind: ActionKind | str,
        now: float | None = None,
    ) -> bool:
        """Read-only check whether a key is currently blocked."""
        raise NotImplementedError

    @abstractmethod
    def stats_by_action_kind(self) -> dict[str, int]:
        """Count of live entries per action kind."""
        raise NotImplementedError

    @abstractmethod
    def sweep_expired(self, now: float | None = None) -> int:
        """Evict expired entries. Returns how many were removed."""
        raise NotImplementedError
