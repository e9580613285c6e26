"""
API Version 1 Package

Version 1 of the runtime config API endpoints.
"""

from fastapi import APIRouter

from .endpoints import health_router, runtime_settings_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(runtime_settings_router)

__all__ = ["router"]
