"""Rate limiting middleware for API routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: the guard depends on ``AbstractRateLimiter`` only, so
  the counter store can be replaced (e.g., Redis) without touching it.
- Narrow scope: only API routes are counted; the authentication subtree
  and static asset prefixes are always allowed.
- Fail open: a limiter fault admits the request instead of turning into a
  500 for legitimate traffic.

Client identification, in priority order:
1. the connection address seen by the server;
2. the first entry of ``X-Forwarded-For``;
3. the shared ``"unknown"`` bucket.

``X-Forwarded-For`` is client-controlled unless a trusted proxy rewrites it,
so this is best-effort abuse mitigation, not a security boundary.
"""

from __future__ import annotations

import logging

from fastapi import Request, Response, status

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.logging import hash_identifier
from app.core.policy import EdgePolicy
from app.core.responses import json_error

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
FORWARDED_FOR_HEADER = "x-forwarded-for"


def resolve_client_identifier(request: Request) -> str:
    """Derive the rate limit key for the current request.

    Args:
        request: Incoming request.

    Returns:
        str: Client address, forwarded address, or ``"unknown"``.
    """

    if request.client and request.client.host:
        return request.client.host

    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return UNKNOWN_CLIENT


def build_rate_limiter(policy: EdgePolicy) -> AbstractRateLimiter:
    """Create the default per-process limiter for a policy."""
    return InMemoryFixedWindowRateLimiter(limit=policy.limit, window_ms=policy.window_ms)


def quota_headers(result: RateLimitResult) -> dict[str, str]:
    """Headers describing the client's quota after ``result``."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_seconds or 1)
    return headers


class RateLimitGuard:
    """HTTP middleware enforcing a fixed-window request quota per client.

    The guard owns its limiter; with the in-memory adapter the counters live
    for the lifetime of the process and are not shared between workers.

    Usage:
        app.middleware("http")(RateLimitGuard(policy))
    """

    def __init__(self, policy: EdgePolicy, limiter: AbstractRateLimiter | None = None) -> None:
        self._policy = policy
        self._limiter = limiter if limiter is not None else build_rate_limiter(policy)

    @property
    def limiter(self) -> AbstractRateLimiter:
        return self._limiter

    def _consume(self, identifier: str) -> RateLimitResult | None:
        """Count the request; None means the limiter failed and we fail open."""
        try:
            return self._limiter.consume(identifier)
        except Exception as exc:
            logger.error(
                "rate_limit.fail_open",
                extra={
                    "key_hash": hash_identifier(identifier),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
                exc_info=True,
            )
            return None

    async def __call__(self, request: Request, call_next) -> Response:
        path = request.url.path
        if not self._policy.is_rate_limited(path):
            return await call_next(request)

        identifier = resolve_client_identifier(request)
        # Decision is made synchronously, before any downstream await.
        result = self._consume(identifier)
        if result is None:
            return await call_next(request)

        if not result.allowed:
            logger.warning(
                "rate_limit.exceeded",
                extra={
                    "key_hash": hash_identifier(identifier),
                    "path": path,
                    "limit": result.limit,
                    "count": result.count,
                    "window_ms": self._policy.window_ms,
                    "retry_after_s": result.retry_after_seconds,
                },
            )
            return json_error(
                "Too many requests",
                status.HTTP_429_TOO_MANY_REQUESTS,
                headers=quota_headers(result),
            )

        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": hash_identifier(identifier),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )

        response = await call_next(request)
        response.headers.update(quota_headers(result))
        return response
