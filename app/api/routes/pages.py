"""Locale-prefixed page routes.

The page tree itself is rendered elsewhere; these handlers report what the
edge resolved for the request (locale and locale-free path), which is what
the renderer consumes. The router is mounted once per supported locale, so
it never shadows API routes.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from app.core.locale import LocaleContext, normalize_path

router = APIRouter(tags=["Pages"])


def _page_payload(request: Request) -> dict:
    policy = request.app.state.edge_policy
    path = request.url.path
    return {
        "locale": LocaleContext.from_path(path, policy).requested_locale,
        "default_locale": policy.default_locale,
        "path": normalize_path(path, policy.supported_locales),
    }


@router.get("")
def locale_home(request: Request) -> dict:
    return _page_payload(request)


@router.get("/{page_path:path}")
def locale_page(page_path: str, request: Request) -> dict:
    return _page_payload(request)
