"""Locale routing guard.

Every page URL carries its locale as the first path segment (``/en/...``,
``/th/...``). The guard enforces that for non-API requests:

- no locale (``/``) redirects to the default locale;
- an unsupported first segment redirects to the default locale with the
  whole original path appended, so ``/xx/foo`` becomes ``/en/xx/foo``;
- a supported locale passes through, after applying any configured path
  alias (``/en/tasks`` is served by ``/en/app/tasks``).

API routes and static asset prefixes are never touched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from app.core.policy import EdgePolicy

logger = logging.getLogger(__name__)

_MULTI_SLASH = re.compile(r"/{2,}")


@dataclass(frozen=True)
class LocaleContext:
    """Locale-related view of a request path, recomputed per request."""

    path_segments: tuple[str, ...]
    requested_locale: str | None
    is_api_path: bool

    @classmethod
    def from_path(cls, path: str, policy: EdgePolicy) -> "LocaleContext":
        segments = tuple(segment for segment in path.split("/") if segment)
        return cls(
            path_segments=segments,
            requested_locale=segments[0] if segments else None,
            is_api_path=policy.is_api_path(path),
        )


def normalize_path(path: str, locales: Iterable[str]) -> str:
    """Strip a leading supported locale segment from ``path``.

    Examples:
        >>> normalize_path("/en/app/tasks", ["en", "th"])
        '/app/tasks'
        >>> normalize_path("/th", ["en", "th"])
        '/'
    """
    parts = [part for part in path.split("/") if part]
    if parts and parts[0] in set(locales):
        parts.pop(0)
    joined = "/" + "/".join(parts)
    return _MULTI_SLASH.sub("/", joined)


def locale_redirect_target(context: LocaleContext, path: str, policy: EdgePolicy) -> str | None:
    """Return where a page request must be redirected, or None to let it through."""
    if context.is_api_path:
        return None
    if context.requested_locale is None:
        return f"/{policy.default_locale}"
    if not policy.is_supported(context.requested_locale):
        # Prepend, don't replace: the unknown segment stays part of the path.
        return f"/{policy.default_locale}{path}"
    return None


def resolve_alias(context: LocaleContext, policy: EdgePolicy) -> str | None:
    """Return the rewritten path when ``/<locale>/<alias>`` matches exactly."""
    if len(context.path_segments) != 2:
        return None
    locale, resource = context.path_segments
    target = policy.locale_aliases.get(resource)
    if target is None:
        return None
    return f"/{locale}/{target}"


class LocaleGuard:
    """HTTP middleware enforcing a supported locale prefix on page routes.

    Usage:
        app.middleware("http")(LocaleGuard(policy))
    """

    def __init__(self, policy: EdgePolicy) -> None:
        self._policy = policy

    @property
    def policy(self) -> EdgePolicy:
        return self._policy

    async def __call__(self, request: Request, call_next) -> Response:
        path = request.url.path
        if self._policy.is_excluded(path):
            return await call_next(request)

        context = LocaleContext.from_path(path, self._policy)
        target = locale_redirect_target(context, path, self._policy)
        if target is not None:
            logger.info(
                "locale.redirect",
                extra={
                    "path": path,
                    "requested_locale": context.requested_locale,
                    "location": target,
                },
            )
            return RedirectResponse(url=target, status_code=307)

        if not context.is_api_path:
            rewritten = resolve_alias(context, self._policy)
            if rewritten is not None:
                logger.debug("locale.rewrite", extra={"path": path, "rewritten": rewritten})
                request.scope["path"] = rewritten

        return await call_next(request)
