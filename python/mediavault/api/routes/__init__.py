"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from mediavault.api.routes.health import router as health_router
from mediavault.api.routes.images import router as images_router
from mediavault.api.routes.limits import router as limits_router
from mediavault.api.routes.videos import router as videos_router
from mediavault.api.routes.webhook import router as webhook_router


def create_api_router() -> APIRouter:
    """Create and configure the API router with all routes registered."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(videos_router, prefix="/api", tags=["videos"])
    api_router.include_router(images_router, prefix="/api", tags=["images"])
    api_router.include_router(limits_router, prefix="/api", tags=["uploads"])
    api_router.include_router(webhook_router, prefix="/api", tags=["webhook"])
    return api_router


__all__ = ["create_api_router"]
