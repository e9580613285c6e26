"""
Runtime Setting Service Models

Service-layer data for the runtime configuration engine: validated write
payloads, lookup queries, and the shapes returned to callers.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from runtime_config.models import SETTING_PLATFORMS
from runtime_config.services.version_codec import is_valid_version, to_version_code

SettingStatus = Literal["draft", "published", "retired"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class PercentageRollout(BaseModel):
    """Visible to a stable ``percentage`` share of rollout seeds."""

    mode: Literal["percentage"]
    percentage: float = Field(..., ge=0, le=100)


class CohortRollout(BaseModel):
    """Visible only to seeds listed in ``cohorts``."""

    mode: Literal["cohort"]
    cohorts: List[str] = Field(default_factory=list)


class ToggleRollout(BaseModel):
    mode: Literal["toggle"]
    enabled: bool = True


RolloutStrategy = Annotated[
    Union[PercentageRollout, CohortRollout, ToggleRollout],
    Field(discriminator="mode"),
]


class RuntimeSettingUpsertData(BaseModel):
    """
    Service layer data for creating or updating a runtime setting.

    Scope strings are trimmed and blank values treated as unset. Platform is
    lower-cased and limited to the known platforms. Version bounds must be
    ``MAJOR[.MINOR[.PATCH]]`` with segments up to 999.
    """

    model_config = ConfigDict(extra="ignore")

    namespace: str = Field(..., min_length=1, max_length=100)
    key: str = Field(..., min_length=1, max_length=150)
    value: Any = Field(None, description="JSON value; null is stored as {}")
    platform: Optional[str] = Field(None, description="ios, android, web, desktop or all")
    environment: Optional[str] = Field(None, min_length=2, max_length=50)
    channel: Optional[str] = Field(None, max_length=100)
    status: SettingStatus = "draft"
    rollout_strategy: Optional[RolloutStrategy] = None
    priority: int = 0
    effective_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    min_version: Optional[str] = None
    max_version: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    encrypt: bool = False
    sensitive: bool = False

    @field_validator("namespace", "key", mode="before")
    @classmethod
    def strip_identifier(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        "platform", "environment", "channel", "min_version", "max_version", mode="before"
    )
    @classmethod
    def blank_scope_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        normalized = v.lower()
        if normalized not in SETTING_PLATFORMS:
            raise ValueError(f"platform must be one of {list(SETTING_PLATFORMS)}")
        return normalized

    @field_validator("min_version", "max_version")
    @classmethod
    def validate_version(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not is_valid_version(v):
            raise ValueError(
                "version must match MAJOR[.MINOR[.PATCH]] with segments 0-999"
            )
        return v

    @field_validator("effective_at", "expires_at")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_ranges(self) -> "RuntimeSettingUpsertData":
        if self.min_version and self.max_version:
            if to_version_code(self.min_version) > to_version_code(self.max_version):
                raise ValueError("min_version must not be greater than max_version")
        if self.effective_at and self.expires_at and self.effective_at > self.expires_at:
            raise ValueError("effective_at must not be later than expires_at")
        return self

    @property
    def wants_encryption(self) -> bool:
        return self.encrypt or self.sensitive


class WriteContext(BaseModel):
    """Who is performing a write; recorded in the audit columns."""

    user_id: Optional[str] = None


class ActiveSettingsQuery(BaseModel):
    """Client context for an active-settings lookup."""

    environment: Optional[str] = None
    platform: Optional[str] = None
    namespace: Optional[str] = None
    channel: Optional[str] = None
    app_version: Optional[str] = None
    app_version_code: Optional[int] = Field(
        None, description="Takes precedence over app_version"
    )
    include_draft: bool = False
    skip_cache: bool = False
    rollout_seed: Optional[str] = None
    now: Optional[datetime] = Field(
        None, description="Evaluation time; defaults to the current UTC time"
    )

    @field_validator("environment", "platform", "namespace", "channel", "rollout_seed", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("now")
    @classmethod
    def normalize_now(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class RuntimeSettingListQuery(BaseModel):
    namespace: Optional[str] = None
    status: Optional[str] = None
    environment: Optional[str] = None
    platform: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(0, ge=0)
    limit: Optional[int] = Field(None, ge=1)


class CachedSetting(BaseModel):
    """A decoded candidate row as held in the lookup cache."""

    id: str
    namespace: str
    key: str
    value: Any = None
    rollout_strategy: Optional[Dict[str, Any]] = None


class RuntimeSettingData(BaseModel):
    """Service layer representation of a runtime setting with its value decoded."""

    id: str
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

    @field_validator("effective_at", "expires_at", "created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class RuntimeSettingPage(BaseModel):
    results: List[RuntimeSettingData]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


__all__ = [
    "ActiveSettingsQuery",
    "CachedSetting",
    "CohortRollout",
    "PercentageRollout",
    "RolloutStrategy",
    "RuntimeSettingData",
    "RuntimeSettingListQuery",
    "RuntimeSettingPage",
    "RuntimeSettingUpsertData",
    "ToggleRollout",
    "WriteContext",
]
