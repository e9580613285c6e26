"""
Runtime Setting Request Schemas

API request models for runtime setting endpoints. Wire names are camelCase.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RuntimeSettingUpsertRequest(_CamelModel):
    """Request model for creating or updating a runtime setting by scope."""

    namespace: str = Field(..., description="Logical group, e.g. client_release")
    key: str = Field(..., description="Setting key within the namespace")
    value: Any = Field(
        ..., description="Non-empty JSON object, or a JSON string encoding one"
    )
    platform: Optional[str] = Field(
        None, description="ios, android, web, desktop or all"
    )
    environment: Optional[str] = Field(None, description="Deployment environment")
    channel: Optional[str] = Field(None, description="Release channel, e.g. beta")
    status: Optional[str] = Field(None, description="draft, published or retired")
    rollout_strategy: Optional[Dict[str, Any]] = Field(
        None, description="Rollout strategy, e.g. {'mode': 'percentage', 'percentage': 25}"
    )
    priority: Optional[int] = Field(None, description="Higher wins on conflicts")
    effective_at: Optional[datetime] = Field(None, description="Visibility start")
    expires_at: Optional[datetime] = Field(None, description="Visibility end")
    min_version: Optional[str] = Field(None, description="Lowest app version, inclusive")
    max_version: Optional[str] = Field(None, description="Highest app version, inclusive")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Free-form metadata")
    encrypt: bool = Field(False, description="Store the value encrypted")
    sensitive: bool = Field(False, description="Alias for encrypt")


class RuntimeSettingUpdateRequest(_CamelModel):
    """Request model for updating a runtime setting by id; omitted fields are kept."""

    namespace: Optional[str] = None
    key: Optional[str] = None
    value: Any = None
    platform: Optional[str] = None
    environment: Optional[str] = None
    channel: Optional[str] = None
    status: Optional[str] = None
    rollout_strategy: Optional[Dict[str, Any]] = None
    priority: Optional[int] = None
    effective_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    min_version: Optional[str] = None
    max_version: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    encrypt: Optional[bool] = None
    sensitive: Optional[bool] = None


__all__ = ["RuntimeSettingUpdateRequest", "RuntimeSettingUpsertRequest"]
