"""Background eviction of expired rate limit entries.

The sweep only bounds memory: admission decisions are correct without it,
so its cadence is not safety-critical.
"""

from __future__ import annotations

import logging
import threading

from storeguard.adapters.rate_limit.base import AbstractRateLimitStore

logger = logging.getLogger(__name__)


class RateLimitSweeper:
    """Periodically calls ``sweep_expired`` on a store from a daemon thread.

    Lifetime is owned by whoever composes the application: nothing runs until
    ``start()`` is called, and ``stop()`` wakes the thread and joins it.
    """

    def __init__(self, store: AbstractRateLimitStore, *, interval_seconds: float = 300.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._store = store
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="rate-limit-sweeper",
            daemon=True,
        )
        self._thread.start()
        logger.info("rate_limit.sweeper_started", extra={"interval_s": self._interval})

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the sweep thread to stop and wait for it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("rate_limit.sweeper_stopped")

    def run_once(self, now: float | None = None) -> int:
        """Run a single sweep synchronously.

        Returns:
            Number of entries evicted.
        """
        removed = self._store.sweep_expired(now)
        logger.debug(
            "rate_limit.sweep",
            extra={
                "removed": removed,
                "entries_by_action_kind": self._store.stats_by_action_kind(),
            },
        )
        return removed

    def _run_loop(self) -> None:
        # Event.wait returns True as soon as stop() is called
        while not self._stop_event.wait(self._interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("rate_limit.sweep_failed")
