"""In-memory windowed-counter rate limit store with escalating blocks.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: every read-modify-write of an entry happens under one lock,
  shared with the sweep so an eviction never races a fresh write.
"""

from __future__ import annotations

import threading
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable

from storeguard.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitDecision
from storeguard.core.policies import ActionKind, RateLimitPolicy, lookup_policy, resolve_action_kind

StoreKey = tuple[ActionKind, str]


@dataclass
class RateLimitEntry:
    """Limiting state for one (action kind, identifier) pair."""

    count: int
    window_reset_at: float
    blocked: bool = False
    block_expires_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        """Whether the sweep may evict this entry."""
        if self.blocked:
            return now > self.block_expires_at
        return now > self.window_reset_at


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Rate limit store keeping one counting window per key.

    Within a window every attempt increments the counter. The attempt that
    pushes the counter past the policy's ``max_attempts`` puts the key in a
    hard block lasting ``block_seconds``; attempts during the block are denied
    without touching the entry. Once the block lifts, the next attempt starts
    a fresh window.

    Important:
        This store is per-process only. If the API runs with multiple workers,
        each worker enforces its own independent limits.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source returning UNIX time in seconds, used whenever
                an operation is called without an explicit ``now``.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[StoreKey, RateLimitEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    @staticmethod
    def _build_key(identifier: str, action_kind: ActionKind) -> StoreKey:
        return (action_kind, identifier)

    @staticmethod
    def _blocked_decision(entry: RateLimitEntry, policy: RateLimitPolicy) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=False,
            remaining=0,
            reset_at=entry.block_expires_at,
            blocked=True,
            limit=policy.max_attempts,
        )

    def check_and_consume(
        self,
        identifier: str,
        action_kind: ActionKind | str,
        now: float | None = None,
    ) -> RateLimitDecision:
        """Record one attempt for the key and decide whether it is admitted.

        Args:
            identifier: Client identifier (typically the client IP).
            action_kind: Protected operation.
            now: Current UNIX time in seconds (defaults to the store clock).

        Returns:
            RateLimitDecision with the admission verdict and metadata.

        Raises:
            UnknownActionKindError: If the action kind is not registered.
        """
        kind = resolve_action_kind(action_kind)
        policy = lookup_policy(kind)
        key = self._build_key(identifier, kind)
        now = self._now(now)

        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                entry = RateLimitEntry(count=1, window_reset_at=now + policy.window_seconds)
                self._entries[key] = entry
                return RateLimitDecision(
                    allowed=True,
                    remaining=policy.max_attempts - 1,
                    reset_at=entry.window_reset_at,
                    blocked=False,
                    limit=policy.max_attempts,
                )

            if entry.blocked:
                if now < entry.block_expires_at:
                    return self._blocked_decision(entry, policy)
                entry.blocked = False
                entry.count = 0
                entry.window_reset_at = now + policy.window_seconds

            if now > entry.window_reset_at:
                entry.count = 1
                entry.window_reset_at = now + policy.window_seconds
            else:
                entry.count += 1

            if entry.count > policy.max_attempts:
                entry.blocked = True
                entry.block_expires_at = now + policy.block_seconds
                return self._blocked_decision(entry, policy)

            return RateLimitDecision(
                allowed=True,
                remaining=max(0, policy.max_attempts - entry.count),
                reset_at=entry.window_reset_at,
                blocked=False,
                limit=policy.max_attempts,
            )

    def reset(self, identifier: str, action_kind: ActionKind | str) -> bool:
        """Delete the entry for a key unconditionally (manual unblock).

        Returns:
            True if an entry existed and was removed.
        """
        key = self._build_key(identifier, resolve_action_kind(action_kind))
        with self._lock:
            return self._entries.pop(key, None) is not None

    def is_blocked(
        self,
        identifier: str,
        action_kind: ActionKind | str,
        now: float | None = None,
    ) -> bool:
        """Peek whether a key is blocked right now, without mutating it."""
        key = self._build_key(identifier, resolve_action_kind(action_kind))
        now = self._now(now)
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.blocked and now < entry.block_expires_at

    def get_entry(self, identifier: str, action_kind: ActionKind | str) -> RateLimitEntry | None:
        """Return a copy of the entry for a key, for inspection only."""
        key = self._build_key(identifier, resolve_action_kind(action_kind))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateLimitEntry(
                count=entry.count,
                window_reset_at=entry.window_reset_at,
                blocked=entry.blocked,
                block_expires_at=entry.block_expires_at,
            )

    def stats_by_action_kind(self) -> dict[str, int]:
        """Count live entries per action kind (string values as keys)."""
        with self._lock:
            counts = Counter(kind.value for kind, _ in self._entries)
        return dict(counts)

    def sweep_expired(self, now: float | None = None) -> int:
        """Evict unblocked entries past their window and blocks that have lifted.

        Returns:
            Number of entries removed.
        """
        now = self._now(now)
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)
