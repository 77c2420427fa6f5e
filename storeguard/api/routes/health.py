from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check.

    Returns:
        dict: ``status`` plus whether the background sweep is running.
    """

    sweeper = getattr(request.app.state, "rate_limit_sweeper", None)
    return {
        "status": "ok",
        "sweeper_running": bool(sweeper and sweeper.running),
    }
