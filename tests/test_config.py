import pytest
from pydantic import ValidationError

from runtime_config.core.config import Settings
from runtime_config.core.error_codes import (
    APIErrorCode,
    RequestParamErrorCode,
    ValidationErrorCode,
    get_http_status_code,
)
from runtime_config.core.exceptions import RequestParamException, ValidationException


def test_runtime_settings_defaults():
    config = Settings(_env_file=None)
    assert config.runtime_settings__cache_ttl_seconds == 180
    assert config.runtime_settings__default_platform == "all"
    assert config.runtime_settings__local_cache_ttl_seconds == 15
    assert config.runtime_settings__encryption_enabled is False


def test_short_encryption_key_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, runtime_settings__encryption_key="too-short")


def test_blank_scope_default_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, runtime_settings__default_environment="  ")


def test_error_codes_map_to_http_status():
    assert get_http_status_code(ValidationErrorCode.INVALID_INPUT) == 400
    assert get_http_status_code(APIErrorCode.NOT_FOUND) == 404
    assert get_http_status_code("REQUEST_PARAM_INVALID") == 400
    assert get_http_status_code("SOMETHING_ELSE") == 500


def test_exception_to_dict_keeps_code_and_details():
    exc = RequestParamException(
        "Invalid app version: 1.x",
        RequestParamErrorCode.INVALID_PARAMETER,
        details={"appVersion": "1.x"},
    )
    assert exc.http_status == 400
    assert exc.to_dict()["code"] == "REQUEST_PARAM_INVALID"
    assert exc.to_dict()["details"] == {"appVersion": "1.x"}

    wrapped = ValidationException("bad", ValidationErrorCode.INVALID_INPUT, cause=ValueError("x"))
    assert wrapped.to_dict()["cause"] == {"type": "ValueError", "message": "x"}
