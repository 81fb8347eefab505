"""Small helpers for building JSON error responses at the edge."""

from __future__ import annotations

from typing import Mapping

from fastapi.responses import JSONResponse


def json_error(
    message: str,
    status_code: int = 500,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build a ``{"error": message}`` JSON response.

    Args:
        message: Human-readable error message.
        status_code: HTTP status code (default 500).
        headers: Optional extra response headers.

    Returns:
        JSONResponse ready to be returned from a middleware or route.
    """
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=dict(headers) if headers else None,
    )
