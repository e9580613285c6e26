"""
Stores Package

Data persistence and caching for runtime-config.
Provides clean interfaces for database and cache operations.

This package follows fast-failing import strategy - missing dependencies will
cause immediate import errors rather than graceful degradation.

Domain stores (``runtime_setting_store``, ``settings_cache``) are imported
from their modules directly; models depend on this package.
"""

# Database components
from .database import (
    Base,
    SessionLocal,
    database_session,
    dispose_engine,
    engine,
    get_pool_status,
    test_connection,
)

# Redis components
from .redis_client import RedisClient, close_redis_client, get_redis_client

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "database_session",
    "test_connection",
    "get_pool_status",
    "dispose_engine",
    # Redis
    "RedisClient",
    "get_redis_client",
    "close_redis_client",
]
