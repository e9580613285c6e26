"""
Base Models

Base classes and common model utilities for runtime-config.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from runtime_config.stores.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin for models that need created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class BaseDBModel(Base, TimestampMixin):
    """Base model class with a snowflake string primary key."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(String, primary_key=True)


__all__ = ["Base", "BaseDBModel", "TimestampMixin", "utcnow"]
