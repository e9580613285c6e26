"""
Models Package

SQLAlchemy models for runtime-config.
"""

from .base import Base, BaseDBModel, TimestampMixin
from .runtime_setting import SETTING_PLATFORMS, SETTING_STATUSES, RuntimeSetting

__all__ = [
    # Base classes
    "Base",
    "BaseDBModel",
    "TimestampMixin",
    # Database models
    "RuntimeSetting",
    "SETTING_PLATFORMS",
    "SETTING_STATUSES",
]
