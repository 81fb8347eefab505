from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.pages import router as pages_router

__all__ = ["health_router", "pages_router"]
