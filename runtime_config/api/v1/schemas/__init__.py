"""
V1 API Schemas Package

Pydantic models for runtime settings API request and response data.
"""

from .requests import RuntimeSettingUpdateRequest, RuntimeSettingUpsertRequest
from .responses import (
    ActiveSettingsResponse,
    HealthResponse,
    RuntimeSettingListResponse,
    RuntimeSettingResponse,
)

__all__ = [
    "RuntimeSettingUpsertRequest",
    "RuntimeSettingUpdateRequest",
    "ActiveSettingsResponse",
    "RuntimeSettingResponse",
    "RuntimeSettingListResponse",
    "HealthResponse",
]
