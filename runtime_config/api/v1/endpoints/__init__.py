"""
API Endpoints Package

FastAPI endpoint definitions for the runtime config service.
"""

from .health import router as health_router
from .runtime_settings import router as runtime_settings_router

__all__ = [
    "health_router",
    "runtime_settings_router",
]
