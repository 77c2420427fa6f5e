"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the lifetime of the rate limit store and its background sweeper.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from storeguard.adapters.rate_limit.base import AbstractRateLimitStore
from storeguard.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from storeguard.adapters.rate_limit.sweeper import RateLimitSweeper
from storeguard.api.routes import admin_router, health_router
from storeguard.core.config import settings
from storeguard.core.exception_handlers import setup_exception_handlers
from storeguard.core.logging import configure_logging
from storeguard.core.middleware import request_id_middleware, security_headers_middleware
from storeguard.core.openapi import apply_openapi_customizations


def create_app(
    *,
    store: AbstractRateLimitStore | None = None,
    clock: Callable[[], float] = time.time,
    start_sweeper: bool | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        store: Rate limit store to use (a fresh in-memory store by default).
        clock: Time source for admission decisions and sweeps.
        start_sweeper: Start the background sweep on startup; defaults to
            ``GUARD_SWEEPER_ENABLED``.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    rate_limit_store = store if store is not None else InMemoryRateLimitStore(clock=clock)
    sweeper = RateLimitSweeper(
        rate_limit_store,
        interval_seconds=settings.guard.sweep_interval_seconds,
    )
    run_sweeper = settings.guard.sweeper_enabled if start_sweeper is None else start_sweeper

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if run_sweeper:
            sweeper.start()
        try:
            yield
        finally:
            sweeper.stop()

    app = FastAPI(
        title="Storeguard",
        description=(
            "Request-defense layer for the storefront: per-client rate limiting "
            "with escalating blocks, SQL/script injection detection and payload "
            "sanitization, plus operator routes to inspect and reset limits."
        ),
        version="0.1.0",
        debug=settings.guard.debug,
        lifespan=lifespan,
    )

    app.state.clock = clock
    app.state.rate_limit_store = rate_limit_store
    app.state.rate_limit_sweeper = sweeper

    # Middleware (last registered runs first)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
