"""
API Health Check Endpoint

Health check for the runtime config API and its dependencies.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from runtime_config.api.schemas.error import ErrorResponse
from runtime_config.api.v1.schemas.responses import HealthResponse
from runtime_config.core.config import settings
from runtime_config.core.logger import get_logger
from runtime_config.services.runtime_config_engine import (
    RuntimeConfigEngine,
    get_runtime_config_engine,
)
from runtime_config.stores.database import test_connection
from runtime_config.stores.redis_client import get_redis_client

logger = get_logger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


async def check_database_health() -> Dict[str, Any]:
    """Check database connection health."""
    try:
        status = test_connection()
        return {"status": "healthy", "details": status}
    except Exception as e:
        logger.warning("Database health check failed: %s", str(e))
        return {"status": "unhealthy", "error": str(e)}


async def check_redis_health() -> Dict[str, Any]:
    """Check Redis connection health."""
    health = await get_redis_client().health_check()
    return {"status": health.get("status", "unknown"), "details": health}


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="API Health Check",
    description="Check the overall health of the API and its dependencies",
    tags=["health"],
    responses={
        200: {"model": HealthResponse, "description": "Health check results"},
        503: {"model": ErrorResponse, "description": "Service unavailable"},
    },
)
async def health_check(
    engine: RuntimeConfigEngine = Depends(get_runtime_config_engine),
) -> HealthResponse:
    """
    Health check endpoint for the API.

    Checks the status of:
    - API service itself
    - Runtime settings engine (cache and encryption configuration)
    - Database connection (if enabled in configuration)
    - Redis connection (if enabled in configuration)

    A Redis outage only degrades caching, so it does not mark the API unhealthy.
    """
    components: Dict[str, Any] = {}
    overall_healthy = True

    if settings.health__check_database:
        db_health = await check_database_health()
        components["database"] = db_health
        if db_health["status"] == "unhealthy":
            overall_healthy = False

    if settings.health__check_redis:
        components["redis"] = await check_redis_health()

    components["runtime_settings"] = engine.get_health_status()

    components["api"] = {
        "status": "healthy",
        "version": API_VERSION,
        "environment": settings.environment,
    }

    return HealthResponse(
        status="healthy" if overall_healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=API_VERSION,
        environment=settings.environment,
        components=components,
    )
