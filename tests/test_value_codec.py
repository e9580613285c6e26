import pytest
from pydantic import SecretStr

from runtime_config.core.exceptions import ConfigurationException
from runtime_config.services import value_codec
from runtime_config.services.value_codec import (
    FernetCipher,
    ValueCodec,
    canonical_json,
    create_cipher_from_settings,
    is_encrypted_envelope,
)

SECRET = "an-encryption-secret-of-at-least-32-chars"


def test_plain_values_pass_through():
    codec = ValueCodec()
    value = {"color": "blue"}
    assert codec.encode(value) is value
    assert codec.decode(value) is value


def test_encrypt_then_decode_restores_value():
    codec = ValueCodec(FernetCipher(SECRET))
    value = {"api_key": "sk-123", "nested": {"n": 1}}

    stored = codec.encode(value, encrypt=True)

    assert is_encrypted_envelope(stored)
    assert "sk-123" not in stored["data"]
    assert codec.decode(stored) == value


def test_encrypt_without_cipher_stores_plain_value():
    codec = ValueCodec()
    assert codec.encode({"a": 1}, encrypt=True) == {"a": 1}


def test_decode_failures_return_none():
    codec = ValueCodec(FernetCipher(SECRET))
    assert codec.decode({"encrypted": True, "data": "not-a-token"}) is None
    assert codec.decode({"encrypted": True}) is None

    other_key = ValueCodec(FernetCipher("a-completely-different-secret-value!!"))
    stored = other_key.encode({"a": 1}, encrypt=True)
    assert codec.decode(stored) is None


def test_decode_without_cipher_returns_none():
    stored = ValueCodec(FernetCipher(SECRET)).encode({"a": 1}, encrypt=True)
    assert ValueCodec().decode(stored) is None


def test_checksum_is_order_independent():
    assert ValueCodec.checksum({"a": 1, "b": 2}) == ValueCodec.checksum({"b": 2, "a": 1})
    assert ValueCodec.checksum({"a": 1}) != ValueCodec.checksum({"a": 2})
    assert ValueCodec.checksum(None) == ValueCodec.checksum({})


def test_canonical_json_is_compact_and_sorted():
    assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'


def test_create_cipher_from_settings(monkeypatch):
    settings = value_codec.settings
    monkeypatch.setattr(settings, "runtime_settings__encryption_enabled", False)
    assert create_cipher_from_settings() is None

    monkeypatch.setattr(settings, "runtime_settings__encryption_enabled", True)
    monkeypatch.setattr(settings, "runtime_settings__encryption_key", None)
    with pytest.raises(ConfigurationException):
        create_cipher_from_settings()

    monkeypatch.setattr(settings, "runtime_settings__encryption_key", SecretStr(SECRET))
    assert isinstance(create_cipher_from_settings(), FernetCipher)
