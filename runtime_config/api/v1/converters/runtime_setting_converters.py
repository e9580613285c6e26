"""
Runtime Setting Converters

Converters between API layer and service layer schemas for runtime settings.
"""

import json
from typing import Any, Dict

from runtime_config.api.v1.schemas.requests.runtime_setting_requests import (
    RuntimeSettingUpdateRequest,
    RuntimeSettingUpsertRequest,
)
from runtime_config.api.v1.schemas.responses.runtime_setting_responses import (
    PageMeta,
    RuntimeSettingListResponse,
    RuntimeSettingResponse,
)
from runtime_config.core.error_codes import ValidationErrorCode
from runtime_config.core.exceptions import ValidationException
from runtime_config.services.runtime_setting_models import (
    RuntimeSettingData,
    RuntimeSettingPage,
)


def parse_setting_value(value: Any) -> Dict[str, Any]:
    """
    Accept a JSON object, or a string holding one.

    Raises:
        ValidationException: If the value is not a non-empty JSON object
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise ValidationException(
                "value must be valid JSON",
                ValidationErrorCode.INVALID_FORMAT,
                details={"field": "value"},
            ) from exc

    if not isinstance(value, dict) or not value:
        raise ValidationException(
            "value must be a non-empty JSON object",
            ValidationErrorCode.INVALID_INPUT,
            details={"field": "value"},
        )
    return value


def convert_runtime_setting_upsert_request(
    request: RuntimeSettingUpsertRequest,
) -> Dict[str, Any]:
    """Convert API upsert request to a service layer payload."""
    payload = request.model_dump(exclude_none=True)
    payload["value"] = parse_setting_value(request.value)
    return payload


def convert_runtime_setting_update_request(
    request: RuntimeSettingUpdateRequest,
) -> Dict[str, Any]:
    """Convert API update request to a partial payload holding only sent fields."""
    payload = request.model_dump(exclude_unset=True)
    if payload.get("value") is not None:
        payload["value"] = parse_setting_value(payload["value"])
    return payload


def convert_runtime_setting_data_to_response(
    data: RuntimeSettingData,
) -> RuntimeSettingResponse:
    """Convert service layer data to API response."""
    return RuntimeSettingResponse.model_validate(data.model_dump())


def convert_runtime_setting_page_to_response(
    page: RuntimeSettingPage,
) -> RuntimeSettingListResponse:
    return RuntimeSettingListResponse(
        data=[convert_runtime_setting_data_to_response(item) for item in page.results],
        meta=PageMeta(
            page=page.page, limit=page.limit, total=page.total, pages=page.pages
        ),
    )


__all__ = [
    "convert_runtime_setting_data_to_response",
    "convert_runtime_setting_page_to_response",
    "convert_runtime_setting_update_request",
    "convert_runtime_setting_upsert_request",
    "parse_setting_value",
]
