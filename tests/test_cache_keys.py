from runtime_config.services.cache_keys import build_key


def test_build_key_joins_fields_in_order():
    assert (
        build_key("production", "ui", "ios", 3_002_000, "beta")
        == "production:ui:ios:3002000:beta"
    )


def test_build_key_fills_defaults():
    assert build_key() == "development:all:all:0:global"
    assert build_key("staging", None, "web", None, None) == "staging:all:web:0:global"


def test_build_key_is_stable_for_equal_contexts():
    first = build_key("production", None, "android", 2_000_000, None)
    second = build_key("production", None, "android", 2_000_000, None)
    assert first == second
    assert first != build_key("production", None, "android", 2_000_001, None)
