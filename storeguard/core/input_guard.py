"""Input inspection dependencies for FastAPI routes.

Query parameters are only inspected; JSON bodies are inspected and returned
as a sanitized copy. Any rejection raises ``MaliciousInputError`` (HTTP 403)
after writing an ``input_guard.rejected`` audit log entry.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from storeguard.core.config import settings
from storeguard.core.errors import MaliciousInputError, ValidationAppError
from storeguard.core.logging import hash_identifier
from storeguard.core.rate_limit import get_client_ip, get_user_agent
from storeguard.utils.input_sanitizer import sanitize, scan_fields

logger = logging.getLogger(__name__)


def _log_rejection(request: Request, exc: MaliciousInputError, source: str) -> None:
    logger.warning(
        "input_guard.rejected",
        extra={
            "source": source,
            "field": exc.field,
            "category": exc.category,
            "client_hash": hash_identifier(get_client_ip(request)),
            "user_agent": get_user_agent(request),
            "method": request.method,
            "path": request.url.path,
        },
    )


async def reject_malicious_query_params(request: Request) -> None:
    """FastAPI dependency rejecting requests with suspicious query parameters.

    Raises:
        MaliciousInputError: 403 naming the first offending parameter.
    """
    try:
        scan_fields(request.query_params.multi_items())
    except MaliciousInputError as exc:
        _log_rejection(request, exc, "query")
        raise


async def sanitized_json_body(request: Request) -> Any:
    """FastAPI dependency returning the sanitized JSON body.

    Returns:
        Cleaned copy of the decoded body (None for an empty body).

    Raises:
        ValidationAppError: 400 if the body is not valid JSON or nests too deep.
        MaliciousInputError: 403 naming the first offending field.
    """
    raw = await request.body()
    if not raw:
        return None

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body is not valid JSON",
        ) from exc

    try:
        return sanitize(payload, max_depth=settings.guard.max_payload_depth)
    except MaliciousInputError as exc:
        _log_rejection(request, exc, "body")
        raise
