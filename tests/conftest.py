"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any storeguard import so the global
settings object is built with test values.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("GUARD_ADMIN_API_KEY_REQUIRED", "true")
os.environ.setdefault("GUARD_ADMIN_API_KEYS", "test-admin-key-123,test-admin-key-456")
os.environ.setdefault("GUARD_SWEEPER_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest


class FakeClock:
    """Deterministic clock used to test window and block timing."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
