"""
Settings Cache

Read-through cache for active-setting lookups with two tiers:

- an in-process TTL map, always consulted first
- an optional shared Redis tier, so every API worker benefits from a warm entry

The cache is an optimisation only. Redis errors and timeouts are logged and
behave like a miss (reads) or a no-op (writes and invalidations).
"""

import asyncio
import fnmatch
import json
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from redis.exceptions import RedisError

from runtime_config.core.config import settings
from runtime_config.core.exceptions import RedisException
from runtime_config.core.logger import get_logger
from runtime_config.stores.redis_client import RedisClient, get_redis_client

logger = get_logger(__name__)

_CACHE_ERRORS = (RedisError, RedisException, asyncio.TimeoutError, OSError)


class SettingsCache:
    """Namespaced two-tier cache of JSON-serialisable values."""

    def __init__(
        self,
        redis_client: Optional[RedisClient] = None,
        *,
        namespace: str = "runtime_settings",
        key_prefix: str = "runtime-config:",
        default_ttl: int = 180,
        local_enabled: bool = True,
        max_local_entries: int = 1024,
        local_ttl: Optional[int] = None,
        timeout: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.redis_client = redis_client
        self.namespace = namespace
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self.local_enabled = local_enabled
        self.max_local_entries = max_local_entries
        self.local_ttl = local_ttl
        self.timeout = timeout
        self._clock = clock
        self._local: "OrderedDict[str, Tuple[float, str]]" = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.local_enabled or self.redis_client is not None

    @property
    def redis_enabled(self) -> bool:
        return self.redis_client is not None

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _redis_key(self, full_key: str) -> str:
        return f"{self.key_prefix}{full_key}"

    # Local tier

    def _local_get(self, full_key: str) -> Optional[Any]:
        entry = self._local.get(full_key)
        if entry is None:
            return None
        expires_at, payload = entry
        if expires_at <= self._clock():
            self._local.pop(full_key, None)
            return None
        self._local.move_to_end(full_key)
        return json.loads(payload)

    def _local_ttl(self, ttl: int) -> int:
        # other workers only invalidate Redis, so bound how long a local copy lives
        if self.redis_client is not None and self.local_ttl:
            return min(ttl, self.local_ttl)
        return ttl

    def _local_set(self, full_key: str, payload: str, ttl: int) -> None:
        self._local[full_key] = (self._clock() + ttl, payload)
        self._local.move_to_end(full_key)
        while len(self._local) > self.max_local_entries:
            self._local.popitem(last=False)

    def _local_delete_pattern(self, full_pattern: str) -> int:
        matched = [k for k in self._local if fnmatch.fnmatchcase(k, full_pattern)]
        for k in matched:
            del self._local[k]
        return len(matched)

    # Redis tier

    async def _redis_call(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except _CACHE_ERRORS as exc:
            logger.warning(
                "Redis cache %s failed, continuing without shared cache: %s",
                operation,
                exc,
            )
            return None

    # Public API

    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value for ``key`` or None on a miss."""
        full_key = self._full_key(key)

        if self.local_enabled:
            value = self._local_get(full_key)
            if value is not None:
                logger.debug("Local cache hit: %s", full_key)
                return value

        if self.redis_client is None:
            return None

        value = await self._redis_call(
            "get", self.redis_client.get_json(self._redis_key(full_key))
        )
        if value is not None:
            logger.debug("Redis cache hit: %s", full_key)
            if self.local_enabled:
                self._local_set(
                    full_key, json.dumps(value), self._local_ttl(self.default_ttl)
                )
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl = ttl or self.default_ttl
        full_key = self._full_key(key)
        payload = json.dumps(value, ensure_ascii=False)

        if self.local_enabled:
            self._local_set(full_key, payload, self._local_ttl(ttl))

        if self.redis_client is not None:
            await self._redis_call(
                "set", self.redis_client.set(self._redis_key(full_key), payload, ex=ttl)
            )

    async def delete(self, key: str) -> None:
        full_key = self._full_key(key)
        self._local.pop(full_key, None)
        if self.redis_client is not None:
            await self._redis_call(
                "delete", self.redis_client.delete(self._redis_key(full_key))
            )

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Return the cached value, or call ``loader`` and cache its result.

        Concurrent misses for the same key may each call the loader; the last
        writer's result stays cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await loader()
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def invalidate_pattern(self, pattern: str = "*") -> int:
        """
        Drop every entry in this namespace whose key matches ``pattern``.

        Returns the number of local entries removed; Redis deletions are
        best-effort.
        """
        full_pattern = self._full_key(pattern)
        removed = self._local_delete_pattern(full_pattern)

        if self.redis_client is not None:
            await self._redis_call(
                "invalidate",
                self.redis_client.delete_pattern(self._redis_key(full_pattern)),
            )

        logger.info("Invalidated cache entries matching %s", full_pattern)
        return removed

    def stats(self) -> Dict[str, Any]:
        return {
            "local_enabled": self.local_enabled,
            "local_entries": len(self._local),
            "redis_enabled": self.redis_enabled,
            "default_ttl": self.default_ttl,
            "local_ttl": self.local_ttl,
        }


def create_settings_cache() -> SettingsCache:
    """Build the cache from ``runtime_settings__*`` settings."""
    redis_client = (
        get_redis_client() if settings.runtime_settings__redis_cache_enabled else None
    )
    return SettingsCache(
        redis_client,
        namespace=settings.runtime_settings__cache_namespace,
        key_prefix=settings.runtime_settings__cache_prefix,
        default_ttl=settings.runtime_settings__cache_ttl_seconds,
        local_enabled=settings.runtime_settings__local_cache_enabled,
        max_local_entries=settings.runtime_settings__local_cache_max_entries,
        local_ttl=settings.runtime_settings__local_cache_ttl_seconds,
        timeout=settings.runtime_settings__cache_timeout_seconds,
    )


__all__ = ["SettingsCache", "create_settings_cache"]
