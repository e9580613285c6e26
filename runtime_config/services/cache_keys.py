"""Cache key construction for active-setting lookups."""

from typing import Optional

from runtime_config.core.config import settings

KEY_SEPARATOR = ":"


def build_key(
    environment: Optional[str] = None,
    namespace: Optional[str] = None,
    platform: Optional[str] = None,
    version_code: Optional[int] = None,
    channel: Optional[str] = None,
) -> str:
    """
    Build the cache key for a lookup context.

    Fields are joined in a fixed order, ``env:namespace:platform:versionCode:channel``,
    with missing parts replaced by their defaults::

        build_key("production", None, "ios", 3002000, "beta")
        # -> "production:all:ios:3002000:beta"

    The rollout seed is deliberately not part of the key; rollout filtering
    runs after the cache.
    """
    parts = (
        environment or settings.runtime_settings__default_environment,
        namespace or "all",
        platform or settings.runtime_settings__default_platform,
        str(version_code or 0),
        channel or "global",
    )
    return KEY_SEPARATOR.join(parts)


__all__ = ["build_key"]
