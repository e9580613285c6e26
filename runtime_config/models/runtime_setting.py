"""Runtime setting SQLAlchemy model."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import BaseDBModel

SETTING_STATUSES = ("draft", "published", "retired")
SETTING_PLATFORMS = ("ios", "android", "web", "desktop", "all")


class RuntimeSetting(BaseDBModel):
    """
    A configuration value scoped by namespace, key, environment, platform,
    channel and app-version range.

    Null scope columns act as wildcards on lookup. ``value`` holds either the
    plain JSON value or ``{"encrypted": true, "data": <token>}``.
    """

    __tablename__ = "runtime_settings"
    __table_args__ = (
        Index("runtime_settings_namespace_status_idx", "namespace", "status"),
        Index("runtime_settings_env_platform_idx", "environment", "platform"),
        Index(
            "runtime_settings_version_code_idx", "min_version_code", "max_version_code"
        ),
    )

    namespace: Mapped[str] = mapped_column(String(100), nullable=False)
    key: Mapped[str] = mapped_column(String(150), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)

    # Scope
    platform: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    environment: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    channel: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    min_version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    max_version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    min_version_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_version_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Lifecycle
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="draft")
    effective_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    rollout_strategy: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    checksum: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    setting_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSON, nullable=True
    )

    # Audit
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<RuntimeSetting(id='{self.id}', namespace='{self.namespace}', "
            f"key='{self.key}', status='{self.status}')>"
        )


# Nullable scope columns are coalesced so a null scope is unique too
Index(
    "runtime_settings_scope_unique",
    RuntimeSetting.namespace,
    RuntimeSetting.key,
    func.coalesce(RuntimeSetting.environment, ""),
    func.coalesce(RuntimeSetting.platform, ""),
    func.coalesce(RuntimeSetting.channel, ""),
    unique=True,
)

__all__ = ["RuntimeSetting", "SETTING_STATUSES", "SETTING_PLATFORMS"]
