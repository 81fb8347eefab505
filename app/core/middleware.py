"""HTTP middleware for request ID propagation and correlation.

Every request/response pair carries a correlation id:
- an incoming ``X-Request-ID`` header is reused, otherwise a UUID is generated
- the id lives in a context variable for the duration of the request, so
  log records emitted by the edge guards and routes pick it up
- the id and the total handling time are echoed on the response

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Assign a correlation id to the request and echo it on the response.

    Registered outermost, so redirects issued by the locale guard and 429s
    issued by the rate limiter carry the id too.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
