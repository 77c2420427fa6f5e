"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limit store into the HTTP layer.

Design goals:
- Minimal coupling: routes declare ``Depends(require_rate_limit(kind))`` only.
- Explicit ownership: the store instance lives on ``app.state`` and is
  created by the application factory, not at import time.
- Visible failures: denials raise ``RateLimitExceededError``, which the
  exception handlers turn into HTTP 429 with retry information.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Request, Response

from storeguard.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitDecision
from storeguard.core.config import settings
from storeguard.core.errors import RateLimitExceededError
from storeguard.core.logging import hash_identifier
from storeguard.core.policies import ActionKind, resolve_action_kind

logger = logging.getLogger(__name__)

# Checked in order; the first header present wins.
CLIENT_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Request) -> str:
    """Derive the client identifier from forwarding headers.

    Fallback order: ``X-Forwarded-For`` (first hop), ``X-Real-IP``,
    ``CF-Connecting-IP``, then the configured default loopback address.

    Args:
        request: FastAPI request.

    Returns:
        Client IP string used as the rate limit identifier.
    """
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            candidate = value.split(",")[0].strip()
            if candidate:
                return candidate
    return settings.guard.default_client_ip


def get_user_agent(request: Request) -> str:
    """Return the request's User-Agent header or ``"unknown"``."""
    return request.headers.get("user-agent") or "unknown"


def get_rate_limit_store(request: Request) -> AbstractRateLimitStore:
    """Return the store owned by the running application."""
    return request.app.state.rate_limit_store


def build_retry_message(decision: RateLimitDecision, now: float) -> str:
    """Human-readable retry hint, rounded up to whole minutes."""
    minutes = decision.retry_after_minutes(now)
    unit = "minute" if minutes == 1 else "minutes"
    return f"Too many attempts. Try again in {minutes} {unit}."


def rate_limit_headers(decision: RateLimitDecision, now: float) -> dict[str, str]:
    """X-RateLimit-* headers (plus Retry-After on denials)."""
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(decision.reset_at)),
    }
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after_seconds(now))
    return headers


def enforce_rate_limit(
    store: AbstractRateLimitStore,
    identifier: str,
    action_kind: ActionKind | str,
    now: float,
    *,
    user_agent: str = "unknown",
) -> RateLimitDecision:
    """Consume one attempt and raise if it is not admitted.

    Usable outside FastAPI by any caller holding a store.

    Raises:
        RateLimitExceededError: When the store denies the attempt.
        UnknownActionKindError: If the action kind is not registered.
    """
    kind = resolve_action_kind(action_kind)
    decision = store.check_and_consume(identifier, kind, now)
    client_hash = hash_identifier(identifier)

    if decision.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "action_kind": kind.value,
                "client_hash": client_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
            },
        )
        return decision

    retry_after = decision.retry_after_seconds(now)
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "action_kind": kind.value,
            "client_hash": client_hash,
            "user_agent": user_agent,
            "limit": decision.limit,
            "blocked": decision.blocked,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message=build_retry_message(decision, now),
        details={
            "action_kind": kind.value,
            "reset_at": decision.reset_at,
            "blocked": decision.blocked,
            "retry_after": retry_after,
        },
        reset_at=decision.reset_at,
        blocked=decision.blocked,
        retry_after_seconds=retry_after,
        limit=decision.limit,
    )


def require_rate_limit(action_kind: ActionKind | str) -> Callable[..., Awaitable[None]]:
    """Build a FastAPI dependency enforcing the policy for an action kind.

    The action kind is resolved immediately, so a typo fails when the route is
    declared rather than on the first request.

    Usage:
        @router.post("/login", dependencies=[Depends(require_rate_limit(ActionKind.LOGIN))])

    Raises:
        UnknownActionKindError: If the action kind is not registered.
    """
    kind = resolve_action_kind(action_kind)

    async def dependency(request: Request, response: Response) -> None:
        if not settings.guard.rate_limit_enabled:
            return

        store = get_rate_limit_store(request)
        now = request.app.state.clock()
        decision = enforce_rate_limit(
            store,
            get_client_ip(request),
            kind,
            now,
            user_agent=get_user_agent(request),
        )
        if settings.guard.rate_limit_include_headers:
            for name, value in rate_limit_headers(decision, now).items():
                response.headers[name] = value

    dependency.__name__ = f"require_rate_limit_{kind.value}"
    return dependency
