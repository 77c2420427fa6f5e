"""Operator authentication for the rate limit administration routes.

Keys are validated against a comma-separated list from environment variables.
Operator routes additionally refuse well-known scanner user agents.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, Request

from storeguard.core.config import parse_csv, settings
from storeguard.core.errors import AuthenticationAppError
from storeguard.core.logging import hash_identifier
from storeguard.core.rate_limit import get_client_ip, get_user_agent

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    return set(parse_csv(keys_string))


def validate_api_key(provided_key: str) -> None:
    """Validate that provided API key matches configured operator keys.

    Raises:
        AuthenticationAppError: If the key is invalid, or authentication is
            required but no keys are configured.
    """
    if not settings.guard.admin_api_key_required:
        return

    valid_keys = parse_api_keys(settings.guard.admin_api_keys)

    if not valid_keys:
        logger.error(
            "auth.failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={
                "hint": "Set GUARD_ADMIN_API_KEYS or disable auth with GUARD_ADMIN_API_KEY_REQUIRED=false"
            },
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_identifier(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_admin_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency for operator API key authentication.

    Raises:
        AuthenticationAppError: 403 if the header is missing or invalid.
    """
    if not settings.guard.admin_api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    if not x_api_key:
        logger.warning("auth.failed", extra={"reason": "missing_api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    validate_api_key(x_api_key)
    logger.info("auth.success", extra={"api_key_hash": hash_identifier(x_api_key)})


async def reject_blocked_user_agents(request: Request) -> None:
    """FastAPI dependency refusing scanner user agents on operator routes.

    Raises:
        AuthenticationAppError: 403 if the User-Agent contains a blocked fragment.
    """
    user_agent = get_user_agent(request).lower()
    for fragment in parse_csv(settings.guard.blocked_user_agents):
        if fragment.lower() in user_agent:
            logger.warning(
                "auth.blocked_user_agent",
                extra={
                    "user_agent": user_agent,
                    "client_hash": hash_identifier(get_client_ip(request)),
                    "path": request.url.path,
                },
            )
            raise AuthenticationAppError(
                code="access_denied",
                message="Access denied",
            )
