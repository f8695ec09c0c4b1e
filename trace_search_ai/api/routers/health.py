"""Health endpoint."""

import logging

from fastapi import APIRouter

from trace_search_ai.version import VERSION

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for connectivity testing."""
    return {"status": "ok", "version": VERSION}
