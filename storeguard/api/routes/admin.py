from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from storeguard.adapters.rate_limit.base import AbstractRateLimitStore
from storeguard.core.auth import reject_blocked_user_agents, verify_admin_api_key
from storeguard.core.input_guard import reject_malicious_query_params
from storeguard.core.logging import hash_identifier
from storeguard.core.policies import ActionKind
from storeguard.core.rate_limit import get_rate_limit_store, require_rate_limit
from storeguard.schemas.admin import (
    RateLimitResetResponse,
    RateLimitStatsResponse,
    RateLimitStatusResponse,
    SweepResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/rate-limits",
    tags=["Admin"],
    # Run in order; the limit comes first so rejected key guesses still count
    dependencies=[
        Depends(require_rate_limit(ActionKind.GENERAL)),
        Depends(reject_blocked_user_agents),
        Depends(verify_admin_api_key),
        Depends(reject_malicious_query_params),
    ],
)


@router.get("/stats", response_model=RateLimitStatsResponse)
def rate_limit_stats(
    store: AbstractRateLimitStore = Depends(get_rate_limit_store),
) -> RateLimitStatsResponse:
    """Count tracked clients per action kind."""

    counts = store.stats_by_action_kind()
    return RateLimitStatsResponse(
        entries_by_action_kind=counts,
        total_entries=sum(counts.values()),
    )


@router.get("/{action_kind}/{identifier}", response_model=RateLimitStatusResponse)
def rate_limit_status(
    action_kind: ActionKind,
    identifier: str,
    request: Request,
    store: AbstractRateLimitStore = Depends(get_rate_limit_store),
) -> RateLimitStatusResponse:
    """Report whether a client is currently blocked for an action kind."""

    blocked = store.is_blocked(identifier, action_kind, request.app.state.clock())
    return RateLimitStatusResponse(
        action_kind=action_kind.value,
        identifier=identifier,
        blocked=blocked,
    )


@router.delete("/{action_kind}/{identifier}", response_model=RateLimitResetResponse)
def reset_rate_limit(
    action_kind: ActionKind,
    identifier: str,
    store: AbstractRateLimitStore = Depends(get_rate_limit_store),
) -> RateLimitResetResponse:
    """Manually unblock a client by deleting its state for an action kind."""

    removed = store.reset(identifier, action_kind)
    logger.info(
        "rate_limit.reset",
        extra={
            "action_kind": action_kind.value,
            "client_hash": hash_identifier(identifier),
            "removed": removed,
        },
    )
    return RateLimitResetResponse(
        action_kind=action_kind.value,
        identifier=identifier,
        removed=removed,
    )


@router.post("/sweep", response_model=SweepResponse)
def sweep_rate_limits(request: Request) -> SweepResponse:
    """Evict expired entries now instead of waiting for the background sweep."""

    removed = request.app.state.rate_limit_sweeper.run_once(request.app.state.clock())
    store: AbstractRateLimitStore = request.app.state.rate_limit_store
    return SweepResponse(
        removed=removed,
        total_entries=sum(store.stats_by_action_kind().values()),
    )
