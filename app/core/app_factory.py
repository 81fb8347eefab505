"""Application factory for the FastAPI app.

Centralizes app construction (logging, edge guards, handlers, routers) so
tests can build apps with their own policy and limiter.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.api.routes import health_router, pages_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.locale import LocaleGuard
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.policy import EdgePolicy
from app.core.rate_limit import RateLimitGuard

logger = logging.getLogger(__name__)


def create_app(
    policy: EdgePolicy | None = None,
    limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        policy: Edge policy; built from settings when omitted.
        limiter: Rate limiter backend; a per-process in-memory limiter when omitted.

    Returns:
        Configured FastAPI app.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    if policy is None:
        policy = EdgePolicy.from_settings(settings.app)

    app = FastAPI(
        title="Task Manager Edge",
        description=(
            "Edge layer of the task manager: locale-prefixed page routing and "
            "per-client fixed-window rate limiting of API routes."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )
    app.state.edge_policy = policy

    # Middleware: the last registered runs first, so the request flows
    # request id -> locale guard -> rate limiter -> routes.
    app.middleware("http")(RateLimitGuard(policy, limiter))
    app.middleware("http")(LocaleGuard(policy))
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router, prefix=policy.api_prefix)
    for locale in policy.supported_locales:
        app.include_router(pages_router, prefix=f"/{locale}")

    logger.info(
        "app.created",
        extra={
            "locales": list(policy.supported_locales),
            "default_locale": policy.default_locale,
            "rate_limit_enabled": policy.rate_limit_enabled,
            "limit": policy.limit,
            "window_ms": policy.window_ms,
        },
    )
    return app
