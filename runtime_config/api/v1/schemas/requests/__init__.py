"""
V1 API Request Schemas

Request schemas for all API v1 endpoints.
"""

from .runtime_setting_requests import (
    RuntimeSettingUpdateRequest,
    RuntimeSettingUpsertRequest,
)

__all__ = [
    "RuntimeSettingUpdateRequest",
    "RuntimeSettingUpsertRequest",
]
