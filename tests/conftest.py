import fnmatch
import itertools
import json
import os
import tempfile

# Settings are read at import time, so point them at throwaway resources first
os.environ.setdefault("DATABASE__URL", "sqlite://")
os.environ.setdefault("LOG__DIR", tempfile.mkdtemp(prefix="runtime-config-logs-"))
os.environ.setdefault("LOGFIRE__ENABLED", "false")

import pytest

from runtime_config.models import Base, RuntimeSetting
from runtime_config.services.runtime_config_engine import RuntimeConfigEngine
from runtime_config.services.value_codec import ValueCodec
from runtime_config.stores.database import engine as db_engine
from runtime_config.stores.runtime_setting_store import RuntimeSettingStore
from runtime_config.stores.settings_cache import SettingsCache


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedisClient:
    """In-memory stand-in for RedisClient with the methods the cache uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def get_json(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = json.loads(value)
        self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def delete_pattern(self, pattern):
        matched = [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]
        return await self.delete(*matched)


@pytest.fixture
def db():
    _ = RuntimeSetting
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture
def store(db):
    counter = itertools.count(1)
    return RuntimeSettingStore(id_generator=lambda: f"setting-{next(counter)}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return SettingsCache(default_ttl=180, clock=clock)


@pytest.fixture
def config_engine(store, cache):
    return RuntimeConfigEngine(
        store,
        cache,
        ValueCodec(),
        default_environment="development",
        default_platform="all",
    )


@pytest.fixture
def fake_redis():
    return FakeRedisClient()
