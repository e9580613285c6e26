import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from runtime_config.stores.settings_cache import SettingsCache


class BrokenRedisClient:
    async def get_json(self, key):
        raise RedisConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("redis down")

    async def delete(self, *keys):
        raise RedisConnectionError("redis down")

    async def delete_pattern(self, pattern):
        raise RedisConnectionError("redis down")


@pytest.mark.asyncio
async def test_local_entries_expire_after_ttl(cache, clock):
    await cache.set("production:all:ios:0:global", [{"id": "1"}], ttl=60)

    clock.advance(59)
    assert await cache.get("production:all:ios:0:global") == [{"id": "1"}]

    clock.advance(1)
    assert await cache.get("production:all:ios:0:global") is None


@pytest.mark.asyncio
async def test_get_or_set_calls_loader_once_per_ttl(cache, clock):
    calls = []

    async def loader():
        calls.append(1)
        return []

    assert await cache.get_or_set("k", loader) == []
    assert await cache.get_or_set("k", loader) == []
    assert len(calls) == 1

    clock.advance(181)
    await cache.get_or_set("k", loader)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_get_or_set_does_not_cache_none(cache):
    calls = []

    async def loader():
        calls.append(1)
        return None

    await cache.get_or_set("k", loader)
    await cache.get_or_set("k", loader)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_pattern_only_touches_matching_keys(cache):
    await cache.set("production:ui:ios:0:global", {"a": 1})
    await cache.set("production:ui:web:0:global", {"a": 2})
    await cache.set("staging:ui:ios:0:global", {"a": 3})

    removed = await cache.invalidate_pattern("production:*")

    assert removed == 2
    assert await cache.get("production:ui:ios:0:global") is None
    assert await cache.get("staging:ui:ios:0:global") == {"a": 3}

    await cache.invalidate_pattern()
    assert cache.stats()["local_entries"] == 0


@pytest.mark.asyncio
async def test_local_tier_evicts_least_recently_used(clock):
    cache = SettingsCache(max_local_entries=2, clock=clock)
    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.get("a")
    await cache.set("c", 3)

    assert await cache.get("a") == 1
    assert await cache.get("b") is None
    assert await cache.get("c") == 3


@pytest.mark.asyncio
async def test_redis_tier_is_shared_between_caches(fake_redis, clock):
    writer = SettingsCache(fake_redis, key_prefix="rc:", clock=clock)
    reader = SettingsCache(fake_redis, key_prefix="rc:", clock=clock)

    await writer.set("production:all:ios:0:global", [{"id": "1"}], ttl=30)

    assert fake_redis.ttls["rc:runtime_settings:production:all:ios:0:global"] == 30
    assert await reader.get("production:all:ios:0:global") == [{"id": "1"}]

    await writer.invalidate_pattern("*")
    assert fake_redis.data == {}


@pytest.mark.asyncio
async def test_redis_errors_behave_like_misses(clock):
    cache = SettingsCache(BrokenRedisClient(), local_enabled=False, clock=clock)

    async def loader():
        return {"fresh": True}

    assert await cache.get("k") is None
    assert await cache.get_or_set("k", loader) == {"fresh": True}
    await cache.delete("k")
    assert await cache.invalidate_pattern("*") == 0


@pytest.mark.asyncio
async def test_local_copies_are_short_lived_when_redis_is_shared(fake_redis, clock):
    writer = SettingsCache(fake_redis, key_prefix="rc:", local_ttl=10, clock=clock)
    reader = SettingsCache(fake_redis, key_prefix="rc:", local_ttl=10, clock=clock)

    await writer.set("production:all:ios:0:global", [{"id": "1"}], ttl=180)
    assert fake_redis.ttls["rc:runtime_settings:production:all:ios:0:global"] == 180
    assert await reader.get("production:all:ios:0:global") == [{"id": "1"}]

    # another worker invalidates; only the shared tier is cleared for the reader
    await writer.invalidate_pattern("*")
    clock.advance(9)
    assert await reader.get("production:all:ios:0:global") == [{"id": "1"}]

    clock.advance(1)
    assert await reader.get("production:all:ios:0:global") is None


@pytest.mark.asyncio
async def test_local_ttl_cap_ignored_without_redis(clock):
    cache = SettingsCache(local_ttl=10, clock=clock)
    await cache.set("k", {"a": 1}, ttl=60)

    clock.advance(30)
    assert await cache.get("k") == {"a": 1}
