"""Translation API routers module."""

from .health import router as health_router
from .translate import router as translate_router

__all__ = [
    "health_router",
    "translate_router",
]
