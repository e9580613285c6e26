import pytest
from fastapi.testclient import TestClient

from runtime_config.api.factory import create_api
from runtime_config.services.runtime_config_engine import get_runtime_config_engine


@pytest.fixture
def client(config_engine):
    app = create_api(enable_security=False, mount_prefix="/api")
    app.dependency_overrides[get_runtime_config_engine] = lambda: config_engine
    with TestClient(app) as test_client:
        yield test_client


def _create(client, **overrides):
    body = {
        "namespace": "ui",
        "key": "theme",
        "value": {"color": "blue"},
        "environment": "production",
        "status": "published",
    }
    body.update(overrides)
    return client.post("/api/v1/runtime-settings", json=body, headers={"X-User-ID": "alice"})


def test_upsert_returns_camel_case_setting(client):
    response = _create(client, minVersion="2.0", rolloutStrategy={"mode": "toggle", "enabled": True})

    assert response.status_code == 200
    data = response.json()
    assert data["namespace"] == "ui"
    assert data["minVersionCode"] == 2_000_000
    assert data["rolloutStrategy"] == {"mode": "toggle", "enabled": True}
    assert data["createdBy"] == "alice"
    assert "X-Request-ID" in response.headers


def test_upsert_accepts_json_string_value(client):
    response = _create(client, value='{"color": "green"}')
    assert response.status_code == 200
    assert response.json()["value"] == {"color": "green"}


@pytest.mark.parametrize("value", [{}, [], "not json", "[1, 2]", 5])
def test_upsert_rejects_non_object_values(client, value):
    response = _create(client, value=value)

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "ValidationException"


def test_upsert_rejects_invalid_payload(client):
    response = _create(client, platform="playstation")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_INVALID_INPUT"


def test_current_settings_for_client_context(client):
    _create(client)
    _create(client, platform="ios", value={"color": "red"}, priority=1)

    response = client.get(
        "/api/v1/runtime-settings/current",
        params={"environment": "production", "appVersion": "3.1.0"},
        headers={"X-Runtime-Platform": "iOS"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["environment"] == "production"
    assert body["platform"] == "ios"
    assert body["namespace"] is None
    assert body["settings"] == {"ui": {"theme": {"color": "red"}}}
    assert "fetchedAt" in body


def test_current_settings_uses_defaults(client):
    response = client.get("/api/v1/runtime-settings/current")

    assert response.status_code == 200
    body = response.json()
    assert body["environment"] == "development"
    assert body["platform"] == "all"
    assert body["settings"] == {}


def test_current_settings_rollout_seed_from_header(client):
    _create(
        client,
        namespace="feature_flags",
        key="new_home_feed",
        value={"enabled": True},
        rolloutStrategy={"mode": "cohort", "cohorts": ["device-42"]},
    )

    params = {"environment": "production"}
    member = client.get(
        "/api/v1/runtime-settings/current",
        params=params,
        headers={"X-Runtime-Rollout-Seed": "device-42"},
    )
    outsider = client.get(
        "/api/v1/runtime-settings/current",
        params=params,
        headers={"X-Runtime-Rollout-Seed": "device-7"},
    )

    assert member.json()["settings"] == {"feature_flags": {"new_home_feed": {"enabled": True}}}
    assert outsider.json()["settings"] == {}


@pytest.mark.parametrize(
    "params",
    [
        {"appVersion": "1.x"},
        {"version": "1.1000"},
        {"platform": "playstation"},
    ],
)
def test_current_settings_rejects_bad_context(client, params):
    response = client.get("/api/v1/runtime-settings/current", params=params)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "REQUEST_PARAM_INVALID"


def test_list_settings_with_pagination(client):
    for i in range(3):
        _create(client, key=f"key_{i}")

    response = client.get("/api/v1/runtime-settings", params={"limit": 2, "page": 1})

    assert response.status_code == 200
    body = response.json()
    assert len(body["data"]) == 1
    assert body["meta"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_list_settings_rejects_out_of_range_limit(client):
    response = client.get("/api/v1/runtime-settings", params={"limit": 101})
    assert response.status_code == 422


def test_update_setting_by_id(client):
    created = _create(client, platform="android", priority=3).json()

    response = client.put(
        f"/api/v1/runtime-settings/{created['id']}",
        json={"value": {"color": "teal"}},
        headers={"X-User-ID": "bob"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["value"] == {"color": "teal"}
    assert body["platform"] == "android"
    assert body["priority"] == 3
    assert body["updatedBy"] == "bob"


def test_update_missing_setting_returns_404(client):
    response = client.put("/api/v1/runtime-settings/missing", json={"priority": 1})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "API_NOT_FOUND"


def test_health_includes_runtime_settings_component(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    components = response.json()["components"]
    assert components["runtime_settings"]["cache_enabled"] is True
    assert components["api"]["status"] == "healthy"


def test_update_setting_clears_expiry_with_null(client):
    created = _create(client, expiresAt="2099-01-01T00:00:00Z").json()
    assert created["expiresAt"] is not None

    response = client.put(
        f"/api/v1/runtime-settings/{created['id']}", json={"expiresAt": None}
    )

    assert response.status_code == 200
    assert response.json()["expiresAt"] is None
    assert response.json()["value"] == {"color": "blue"}
