"""
V1 API Response Schemas

Response schemas for all API v1 endpoints.
"""

from .health_response import HealthResponse
from .runtime_setting_responses import (
    ActiveSettingsResponse,
    PageMeta,
    RuntimeSettingListResponse,
    RuntimeSettingResponse,
)

__all__ = [
    "ActiveSettingsResponse",
    "HealthResponse",
    "PageMeta",
    "RuntimeSettingListResponse",
    "RuntimeSettingResponse",
]
