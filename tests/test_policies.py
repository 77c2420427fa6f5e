"""Unit tests for the rate limit policy table."""

import dataclasses

import pytest

from storeguard.core.errors import UnknownActionKindError
from storeguard.core.policies import (
    POLICIES,
    ActionKind,
    RateLimitPolicy,
    lookup_policy,
    resolve_action_kind,
)


def test_every_action_kind_has_a_policy() -> None:
    assert set(POLICIES) == set(ActionKind)


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        ("login", RateLimitPolicy(5, 15 * 60, 30 * 60)),
        ("register", RateLimitPolicy(3, 60 * 60, 60 * 60)),
        ("contact", RateLimitPolicy(5, 60 * 60, 60 * 60)),
        ("checkout", RateLimitPolicy(10, 5 * 60, 15 * 60)),
        ("imageUpload", RateLimitPolicy(20, 60, 10 * 60)),
        ("general", RateLimitPolicy(100, 60, 5 * 60)),
    ],
)
def test_lookup_by_string_value(kind: str, expected: RateLimitPolicy) -> None:
    assert lookup_policy(kind) == expected


def test_lookup_by_enum_member() -> None:
    assert lookup_policy(ActionKind.PASSWORD_RESET).max_attempts == 3
    assert lookup_policy(ActionKind.EMAIL_VERIFICATION).max_attempts == 5


def test_unknown_action_kind_raises() -> None:
    with pytest.raises(UnknownActionKindError) as exc_info:
        lookup_policy("newsletter")

    assert exc_info.value.code == "unknown_action_kind"
    assert "newsletter" in exc_info.value.message


def test_resolve_is_case_sensitive() -> None:
    with pytest.raises(UnknownActionKindError):
        resolve_action_kind("LOGIN")


def test_policy_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        POLICIES[ActionKind.LOGIN] = RateLimitPolicy(1, 1, 1)  # type: ignore[index]

    with pytest.raises(dataclasses.FrozenInstanceError):
        POLICIES[ActionKind.LOGIN].max_attempts = 1  # type: ignore[misc]
