"""
Redis Client Manager

Redis connection management and the key/value operations used by the shared
cache tier.
"""

import asyncio
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import redis.asyncio as redis
from redis.asyncio import ConnectionPool

from runtime_config.core.config import settings
from runtime_config.core.error_codes import RedisErrorCode
from runtime_config.core.exceptions import RedisException
from runtime_config.core.logger import get_logger

logger = get_logger(__name__)


def _build_redis_url() -> str:
    scheme = "rediss" if settings.redis__ssl else "redis"
    auth = f":{quote(settings.redis__password)}@" if settings.redis__password else ""
    return (
        f"{scheme}://{auth}{settings.redis__host}:"
        f"{settings.redis__port}/{settings.redis__db}"
    )


class RedisClient:
    """
    Redis client wrapper with a lazily created connection pool.
    """

    def __init__(self) -> None:
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._lock = asyncio.Lock()

    async def _ensure_connection(self) -> redis.Redis:
        """
        Ensure the Redis connection is established.

        Raises:
            RedisException: If connection fails
        """
        if self._client is not None:
            return self._client

        async with self._lock:
            if self._client is not None:
                return self._client  # type: ignore[unreachable]

            try:
                pool_kwargs: Dict[str, Any] = {
                    "encoding": "utf-8",
                    "decode_responses": True,
                    "retry_on_timeout": True,
                    "socket_connect_timeout": settings.redis__connect_timeout,
                    "socket_timeout": settings.redis__socket_timeout,
                }
                if settings.redis__ssl:
                    pool_kwargs["ssl_check_hostname"] = False
                    pool_kwargs["ssl_cert_reqs"] = None

                self._pool = ConnectionPool.from_url(_build_redis_url(), **pool_kwargs)
                client = redis.Redis(connection_pool=self._pool)
                await client.ping()
                self._client = client
                logger.info("Redis connection established successfully")
                return client

            except Exception as e:
                logger.error("Failed to connect to Redis: %s", str(e))
                if self._pool is not None:
                    await self._pool.disconnect()
                    self._pool = None
                raise RedisException(
                    f"Redis connection failed: {str(e)}",
                    RedisErrorCode.CONNECTION_FAILED,
                ) from e

    async def close(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._pool:
            await self._pool.disconnect()
            self._pool = None
        logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[str]:
        client = await self._ensure_connection()
        result = await client.get(key)
        return str(result) if result is not None else None

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        """
        Set key-value pair.

        Args:
            key: Redis key
            value: Value to set
            ex: Expiration time in seconds
        """
        client = await self._ensure_connection()
        return bool(await client.set(key, value, ex=ex))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        client = await self._ensure_connection()
        return int(await client.delete(*keys))

    async def get_json(self, key: str) -> Optional[Any]:
        """Load JSON data; undecodable payloads are logged and treated as missing."""
        json_str = await self.get(key)
        if json_str is None:
            return None

        try:
            return json.loads(json_str)
        except (TypeError, ValueError) as e:
            logger.error("Failed to deserialize data for key %s: %s", key, str(e))
            return None

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Uses SCAN rather than KEYS so large keyspaces are walked incrementally
        without blocking the server.

        Returns:
            Number of keys deleted
        """
        client = await self._ensure_connection()
        deleted = 0
        batch: list[str] = []
        async for key in client.scan_iter(match=pattern, count=settings.redis__scan_count):
            batch.append(key)
            if len(batch) >= settings.redis__scan_count:
                deleted += int(await client.delete(*batch))
                batch = []
        if batch:
            deleted += int(await client.delete(*batch))
        logger.debug("Deleted %d Redis keys matching %s", deleted, pattern)
        return deleted

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform Redis health check.

        Returns:
            Health check result
        """
        try:
            client = await self._ensure_connection()

            start_time = time.time()
            await client.ping()
            ping_time = time.time() - start_time

            info = await client.info("server")

            return {
                "status": "healthy",
                "ping_time_ms": round(ping_time * 1000, 2),
                "redis_version": info.get("redis_version"),
                "uptime_in_seconds": info.get("uptime_in_seconds"),
                "config": {
                    "ssl_enabled": settings.redis__ssl,
                    "database": settings.redis__db,
                    "host": settings.redis__host,
                    "port": settings.redis__port,
                },
            }
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}


class _RedisClientManager:
    """Process-wide RedisClient holder."""

    def __init__(self) -> None:
        self._client: Optional[RedisClient] = None
        self._lock = asyncio.Lock()

    def get_client_sync(self) -> RedisClient:
        """Return the shared client; the connection opens lazily on first use."""
        if self._client is None:
            self._client = RedisClient()
        return self._client

    async def close_client(self) -> None:
        async with self._lock:
            if self._client:
                await self._client.close()
                self._client = None


_client_manager = _RedisClientManager()


def get_redis_client() -> RedisClient:
    """
    Get the shared Redis client.

    Note:
        The client may not be connected yet; the connection is established
        lazily when first used.
    """
    return _client_manager.get_client_sync()


async def close_redis_client() -> None:
    """Close the shared Redis client and cleanup resources."""
    await _client_manager.close_client()
