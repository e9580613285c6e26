"""Runtime setting API response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RuntimeSettingResponse(_CamelModel):
    """Full runtime setting with its value decoded."""

    id: str = Field(..., description="Setting identifier")
    namespace: str
    key: str
    value: Any = None
    platform: Optional[str] = None
    environment: Optional[str] = None
    channel: Optional[str] = None
    min_version: Optional[str] = None
    max_version: Optional[str] = None
    min_version_code: Optional[int] = None
    max_version_code: Optional[int] = None
    priority: int = 0
    status: str
    effective_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    rollout_strategy: Optional[Dict[str, Any]] = None
    checksum: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PageMeta(_CamelModel):
    page: int = Field(..., description="Zero-based page number")
    limit: int
    total: int
    pages: int


class RuntimeSettingListResponse(_CamelModel):
    data: List[RuntimeSettingResponse]
    meta: PageMeta


class ActiveSettingsResponse(_CamelModel):
    """Active settings for one client context."""

    fetched_at: datetime = Field(..., description="Evaluation timestamp (UTC)")
    environment: str
    platform: str
    namespace: Optional[str] = None
    settings: Dict[str, Dict[str, Any]] = Field(
        ..., description="{namespace: {key: value}}"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "fetchedAt": "2025-03-01T12:00:00Z",
                "environment": "production",
                "platform": "ios",
                "namespace": None,
                "settings": {
                    "client_release": {
                        "minimum_supported_version": {"version": "2.0.0"}
                    },
                    "ui": {"theme": {"color": "blue"}},
                },
            }
        }
    )


__all__ = [
    "ActiveSettingsResponse",
    "PageMeta",
    "RuntimeSettingListResponse",
    "RuntimeSettingResponse",
]
