from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitStatsResponse(BaseModel):
    """Live rate limit entries grouped by action kind."""

    entries_by_action_kind: dict[str, int] = Field(
        default_factory=dict,
        description="Number of tracked clients per action kind",
    )
    total_entries: int = Field(..., ge=0)


class RateLimitStatusResponse(BaseModel):
    """Blocked status of one client for one action kind."""

    action_kind: str
    identifier: str
    blocked: bool


class RateLimitResetResponse(BaseModel):
    """Outcome of a manual unblock."""

    action_kind: str
    identifier: str
    removed: bool = Field(..., description="Whether an entry existed and was deleted")


class SweepResponse(BaseModel):
    """Outcome of an on-demand sweep."""

    removed: int = Field(..., ge=0)
    total_entries: int = Field(..., ge=0)
