from datetime import datetime, timedelta, timezone

import pytest

from runtime_config.core.exceptions import RequestParamException, ValidationException
from runtime_config.services.runtime_config_engine import (
    RuntimeConfigEngine,
    group_settings,
)
from runtime_config.services.runtime_setting_models import (
    ActiveSettingsQuery,
    CachedSetting,
    RuntimeSettingListQuery,
    WriteContext,
)
from runtime_config.services.value_codec import FernetCipher, ValueCodec
from runtime_config.stores import runtime_setting_store

SECRET = "an-encryption-secret-of-at-least-32-chars"
OTHER_SECRET = "a-completely-different-secret-value!!"


def _payload(**overrides):
    payload = {
        "namespace": "ui",
        "key": "theme",
        "value": {"color": "blue"},
        "environment": "production",
        "status": "published",
    }
    payload.update(overrides)
    return payload


def test_group_settings_keeps_first_row_per_key():
    rows = [
        CachedSetting(id="1", namespace="ui", key="theme", value={"color": "red"}),
        CachedSetting(id="2", namespace="ui", key="theme", value={"color": "blue"}),
        CachedSetting(id="3", namespace="ui", key="font", value={"size": 12}),
    ]
    assert group_settings(rows) == {
        "ui": {"theme": {"color": "red"}, "font": {"size": 12}}
    }


@pytest.mark.asyncio
async def test_platform_specific_setting_wins_over_generic(config_engine):
    await config_engine.upsert_setting(_payload(priority=0))
    await config_engine.upsert_setting(
        _payload(platform="ios", value={"color": "red"}, priority=1)
    )

    ios = await config_engine.get_active_settings(
        environment="production", platform="ios", app_version="3.0.0"
    )
    web = await config_engine.get_active_settings(
        environment="production", platform="web", app_version="3.0.0"
    )

    assert ios == {"ui": {"theme": {"color": "red"}}}
    assert web == {"ui": {"theme": {"color": "blue"}}}


@pytest.mark.asyncio
async def test_channel_specific_setting_only_for_that_channel(config_engine):
    await config_engine.upsert_setting(_payload())
    await config_engine.upsert_setting(
        _payload(channel="beta", value={"color": "purple"})
    )

    beta = await config_engine.get_active_settings(
        environment="production", channel="beta"
    )
    stable = await config_engine.get_active_settings(environment="production")

    assert beta["ui"]["theme"] == {"color": "purple"}
    assert stable["ui"]["theme"] == {"color": "blue"}


@pytest.mark.asyncio
async def test_zero_percent_rollout_hidden_from_seeded_clients(config_engine):
    await config_engine.upsert_setting(
        _payload(
            namespace="feature_flags",
            key="new_home_feed",
            value={"enabled": True},
            rollout_strategy={"mode": "percentage", "percentage": 0},
        )
    )

    seeded = await config_engine.get_active_settings(
        environment="production", rollout_seed="device-1"
    )
    anonymous = await config_engine.get_active_settings(environment="production")

    assert seeded == {}
    assert anonymous == {"feature_flags": {"new_home_feed": {"enabled": True}}}


@pytest.mark.asyncio
async def test_version_gating(config_engine):
    await config_engine.upsert_setting(
        _payload(
            namespace="client_release",
            key="minimum_supported_version",
            value={"version": "2.0.0"},
            min_version="2.0",
            max_version="2.999.999",
        )
    )

    old = await config_engine.get_active_settings(
        environment="production", app_version="1.9.9"
    )
    current = await config_engine.get_active_settings(
        environment="production", app_version="2.5.1"
    )
    by_code = await config_engine.get_active_settings(
        environment="production", app_version="1.0.0", app_version_code=2_000_000
    )

    assert old == {}
    assert current["client_release"]["minimum_supported_version"] == {"version": "2.0.0"}
    assert by_code != {}


@pytest.mark.asyncio
async def test_visibility_window(config_engine):
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    await config_engine.upsert_setting(
        _payload(
            effective_at=now + timedelta(hours=1),
            expires_at=now + timedelta(hours=2),
        )
    )

    async def lookup(at):
        return await config_engine.get_active_settings(
            ActiveSettingsQuery(environment="production", now=at, skip_cache=True)
        )

    assert await lookup(now) == {}
    assert await lookup(now + timedelta(hours=1)) != {}
    assert await lookup(now + timedelta(hours=2)) == {}


@pytest.mark.asyncio
async def test_drafts_only_visible_when_requested(config_engine):
    await config_engine.upsert_setting(_payload(status="draft"))

    assert await config_engine.get_active_settings(environment="production") == {}
    drafts = await config_engine.get_active_settings(
        environment="production", include_draft=True
    )
    assert drafts == {"ui": {"theme": {"color": "blue"}}}


@pytest.mark.asyncio
async def test_upsert_is_idempotent_per_scope(config_engine, store, monkeypatch):
    ticks = iter(
        [
            datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
            datetime(2025, 3, 1, 12, 5, tzinfo=timezone.utc),
        ]
    )
    monkeypatch.setattr(runtime_setting_store, "_utcnow", lambda: next(ticks))

    first = await config_engine.upsert_setting(_payload(), WriteContext(user_id="alice"))
    second = await config_engine.upsert_setting(_payload(), WriteContext(user_id="bob"))

    assert first.id == second.id
    assert first.checksum == second.checksum
    assert second.created_by == "alice"
    assert second.updated_by == "bob"
    assert second.updated_at > first.updated_at
    assert second.created_at == first.created_at
    assert (await config_engine.list_settings()).total == 1


@pytest.mark.asyncio
async def test_upsert_defaults(config_engine):
    result = await config_engine.upsert_setting(
        {"namespace": " ui ", "key": "theme", "value": None}
    )

    assert result.namespace == "ui"
    assert result.status == "draft"
    assert result.priority == 0
    assert result.environment == "development"
    assert result.value == {}
    assert result.effective_at is not None
    assert result.checksum == ValueCodec.checksum({})


@pytest.mark.asyncio
async def test_upsert_computes_version_codes(config_engine):
    result = await config_engine.upsert_setting(
        _payload(min_version="1.2", max_version="3.4.5")
    )
    assert result.min_version_code == 1_002_000
    assert result.max_version_code == 3_004_005


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"namespace": ""},
        {"platform": "playstation"},
        {"min_version": "1.x"},
        {"min_version": "3.0", "max_version": "2.0"},
        {"status": "archived"},
        {"rollout_strategy": {"mode": "percentage", "percentage": 150}},
        {"rollout_strategy": {"mode": "geo"}},
        {
            "effective_at": "2025-03-02T00:00:00Z",
            "expires_at": "2025-03-01T00:00:00Z",
        },
    ],
)
async def test_invalid_payloads_are_rejected_without_writing(config_engine, overrides):
    with pytest.raises(ValidationException) as exc_info:
        await config_engine.upsert_setting(_payload(**overrides))

    assert exc_info.value.http_status == 400
    assert (await config_engine.list_settings()).total == 0


@pytest.mark.asyncio
async def test_writes_invalidate_cached_lookups(config_engine, store, monkeypatch):
    await config_engine.upsert_setting(_payload())

    calls = []
    original = store.find_active

    def counting_find_active(active_filter):
        calls.append(active_filter)
        return original(active_filter)

    monkeypatch.setattr(store, "find_active", counting_find_active)

    first = await config_engine.get_active_settings(environment="production")
    second = await config_engine.get_active_settings(environment="production")
    assert first == second
    assert len(calls) == 1

    await config_engine.upsert_setting(_payload(value={"color": "green"}))

    third = await config_engine.get_active_settings(environment="production")
    assert len(calls) == 2
    assert third["ui"]["theme"] == {"color": "green"}


@pytest.mark.asyncio
async def test_cache_serves_every_rollout_seed(config_engine, store, monkeypatch):
    await config_engine.upsert_setting(
        _payload(rollout_strategy={"mode": "cohort", "cohorts": ["tester"]})
    )

    calls = []
    original = store.find_active
    monkeypatch.setattr(
        store,
        "find_active",
        lambda f: calls.append(f) or original(f),
    )

    tester = await config_engine.get_active_settings(
        environment="production", rollout_seed="tester"
    )
    other = await config_engine.get_active_settings(
        environment="production", rollout_seed="someone-else"
    )

    assert tester == {"ui": {"theme": {"color": "blue"}}}
    assert other == {}
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_skip_cache_always_reads_store(config_engine, store, monkeypatch):
    calls = []
    original = store.find_active
    monkeypatch.setattr(
        store, "find_active", lambda f: calls.append(f) or original(f)
    )

    await config_engine.get_active_settings(environment="production", skip_cache=True)
    await config_engine.get_active_settings(environment="production", skip_cache=True)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_invalidate_swallows_cache_failures(config_engine, monkeypatch):
    async def boom(pattern="*"):
        raise RuntimeError("cache down")

    monkeypatch.setattr(config_engine.cache, "invalidate_pattern", boom)
    await config_engine.invalidate()


@pytest.mark.asyncio
async def test_engine_without_cache(store):
    engine = RuntimeConfigEngine(store, None, ValueCodec())
    await engine.upsert_setting(_payload(environment=None))
    assert await engine.get_active_settings() == {"ui": {"theme": {"color": "blue"}}}
    assert engine.get_health_status()["cache_enabled"] is False


@pytest.mark.asyncio
async def test_encrypted_values_round_trip(store, cache):
    engine = RuntimeConfigEngine(store, cache, ValueCodec(FernetCipher(SECRET)))

    result = await engine.upsert_setting(
        _payload(key="api_key", value={"token": "sk-123"}, sensitive=True)
    )

    stored = store.get_by_id(result.id)
    assert stored.value["encrypted"] is True
    assert "sk-123" not in stored.value["data"]
    assert stored.setting_metadata == {"contains_encrypted_value": True}
    assert result.value == {"token": "sk-123"}
    assert result.checksum == ValueCodec.checksum({"token": "sk-123"})

    active = await engine.get_active_settings(environment="production")
    assert active["ui"]["api_key"] == {"token": "sk-123"}


@pytest.mark.asyncio
async def test_undecryptable_value_is_served_as_none(store, cache):
    writer = RuntimeConfigEngine(store, cache, ValueCodec(FernetCipher(SECRET)))
    await writer.upsert_setting(_payload(value={"token": "sk-123"}, encrypt=True))

    reader = RuntimeConfigEngine(
        store,
        None,
        ValueCodec(FernetCipher(OTHER_SECRET)),
    )
    active = await reader.get_active_settings(environment="production")
    assert active == {"ui": {"theme": None}}


@pytest.mark.asyncio
async def test_list_settings_clamps_limit(config_engine):
    for i in range(3):
        await config_engine.upsert_setting(_payload(key=f"key_{i}"))

    page = await config_engine.list_settings(RuntimeSettingListQuery(limit=500))
    assert page.limit == 100
    assert page.total == 3
    assert page.pages == 1

    page = await config_engine.list_settings(RuntimeSettingListQuery(limit=2, page=1))
    assert len(page.results) == 1
    assert page.pages == 2


@pytest.mark.asyncio
async def test_update_setting_merges_with_stored_row(config_engine):
    created = await config_engine.upsert_setting(
        _payload(platform="ios", priority=7, metadata={"owner": "design"})
    )

    updated = await config_engine.update_setting(
        created.id, {"value": {"color": "teal"}}, WriteContext(user_id="carol")
    )

    assert updated.id == created.id
    assert updated.value == {"color": "teal"}
    assert updated.platform == "ios"
    assert updated.priority == 7
    assert updated.metadata == {"owner": "design"}
    assert updated.updated_by == "carol"


@pytest.mark.asyncio
async def test_update_setting_keeps_value_when_omitted(config_engine):
    created = await config_engine.upsert_setting(_payload(status="draft"))
    updated = await config_engine.update_setting(created.id, {"status": "published"})

    assert updated.status == "published"
    assert updated.value == {"color": "blue"}


@pytest.mark.asyncio
async def test_update_setting_missing_id(config_engine):
    with pytest.raises(RequestParamException) as exc_info:
        await config_engine.update_setting("missing", {"priority": 1})
    assert exc_info.value.http_status == 404


@pytest.mark.asyncio
async def test_update_setting_clears_fields_sent_as_none(config_engine):
    created = await config_engine.upsert_setting(
        _payload(
            expires_at=datetime.now(timezone.utc) + timedelta(days=30),
            rollout_strategy={"mode": "toggle", "enabled": True},
            min_version="1.0",
            max_version="9.0",
            metadata={"owner": "design"},
        )
    )

    updated = await config_engine.update_setting(
        created.id,
        {
            "expires_at": None,
            "rollout_strategy": None,
            "min_version": None,
            "max_version": None,
            "metadata": None,
        },
    )

    assert updated.id == created.id
    assert updated.expires_at is None
    assert updated.rollout_strategy is None
    assert updated.min_version is None
    assert updated.min_version_code is None
    assert updated.max_version_code is None
    assert updated.metadata is None
    assert updated.value == {"color": "blue"}


@pytest.mark.asyncio
async def test_update_setting_keeps_undecryptable_value_intact(store, cache):
    writer = RuntimeConfigEngine(store, cache, ValueCodec(FernetCipher(SECRET)))
    created = await writer.upsert_setting(
        _payload(value={"secret": "s3cr3t"}, encrypt=True, status="draft")
    )
    before = store.get_by_id(created.id)

    rotated = RuntimeConfigEngine(store, None, ValueCodec(FernetCipher(OTHER_SECRET)))
    updated = await rotated.update_setting(created.id, {"status": "published"})

    after = store.get_by_id(created.id)
    assert updated.status == "published"
    assert updated.value is None
    assert after.value == before.value
    assert after.checksum == before.checksum == ValueCodec.checksum({"secret": "s3cr3t"})
    assert after.setting_metadata == {"contains_encrypted_value": True}

    active = await writer.get_active_settings(environment="production", skip_cache=True)
    assert active == {"ui": {"theme": {"secret": "s3cr3t"}}}


@pytest.mark.asyncio
async def test_update_setting_without_cipher_keeps_encrypted_value(store):
    writer = RuntimeConfigEngine(store, None, ValueCodec(FernetCipher(SECRET)))
    created = await writer.upsert_setting(_payload(value={"token": "t"}, sensitive=True))
    before = store.get_by_id(created.id)

    plain = RuntimeConfigEngine(store, None, ValueCodec())
    await plain.update_setting(created.id, {"priority": 4})

    after = store.get_by_id(created.id)
    assert after.priority == 4
    assert after.value == before.value
    assert after.checksum == before.checksum
