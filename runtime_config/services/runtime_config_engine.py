"""
Runtime Config Engine

Serves the active subset of runtime settings for a client context and
handles writes.

Lookup pipeline: normalize context -> cache key -> cache probe -> store query ->
decode values -> cache candidates -> rollout filter -> group by namespace/key.

The cache holds the decoded candidate rows for a context rather than the
final map, so one cached entry serves every rollout seed.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from runtime_config.core.config import settings
from runtime_config.core.error_codes import APIErrorCode, ValidationErrorCode
from runtime_config.core.exceptions import RequestParamException, ValidationException
from runtime_config.core.logger import get_logger
from runtime_config.models import RuntimeSetting
from runtime_config.services.cache_keys import build_key
from runtime_config.services.rollout import apply_rollout
from runtime_config.services.runtime_setting_models import (
    ActiveSettingsQuery,
    CachedSetting,
    RuntimeSettingData,
    RuntimeSettingListQuery,
    RuntimeSettingPage,
    RuntimeSettingUpsertData,
    WriteContext,
)
from runtime_config.services.value_codec import (
    ValueCodec,
    create_cipher_from_settings,
    is_encrypted_envelope,
)
from runtime_config.services.version_codec import to_version_code
from runtime_config.stores.runtime_setting_store import (
    ActiveSettingsFilter,
    RuntimeSettingStore,
    SettingListFilters,
)
from runtime_config.stores.settings_cache import SettingsCache, create_settings_cache

logger = get_logger(__name__)

ActiveSettingsMap = Dict[str, Dict[str, Any]]

# Fields a PUT may omit and inherit from the stored row
_INHERITABLE_FIELDS = (
    "namespace",
    "key",
    "platform",
    "environment",
    "channel",
    "status",
    "rollout_strategy",
    "priority",
    "effective_at",
    "expires_at",
    "min_version",
    "max_version",
    "metadata",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def group_settings(rows: Iterable[CachedSetting]) -> ActiveSettingsMap:
    """
    Group rows into ``{namespace: {key: value}}``.

    Rows arrive best match first; the first row seen for a (namespace, key)
    wins and later duplicates are skipped.
    """
    grouped: ActiveSettingsMap = {}
    for row in rows:
        bucket = grouped.setdefault(row.namespace, {})
        if row.key in bucket:
            continue
        bucket[row.key] = row.value
    return grouped


class RuntimeConfigEngine:
    """Reads and writes runtime settings through the store, cache and value codec."""

    def __init__(
        self,
        store: RuntimeSettingStore,
        cache: Optional[SettingsCache],
        codec: ValueCodec,
        *,
        default_environment: str = "development",
        default_platform: str = "all",
        cache_ttl_seconds: int = 180,
        list_default_limit: int = 25,
        list_max_limit: int = 100,
    ):
        self.store = store
        self.cache = cache
        self.codec = codec
        self.default_environment = default_environment
        self.default_platform = default_platform
        self.cache_ttl_seconds = cache_ttl_seconds
        self.list_default_limit = list_default_limit
        self.list_max_limit = list_max_limit

    # Reads

    def _to_data(self, row: RuntimeSetting) -> RuntimeSettingData:
        return RuntimeSettingData(
            id=row.id,
            namespace=row.namespace,
            key=row.key,
            value=self.codec.decode(row.value),
            platform=row.platform,
            environment=row.environment,
            channel=row.channel,
            min_version=row.min_version,
            max_version=row.max_version,
            min_version_code=row.min_version_code,
            max_version_code=row.max_version_code,
            priority=row.priority,
            status=row.status,
            effective_at=row.effective_at,
            expires_at=row.expires_at,
            rollout_strategy=row.rollout_strategy,
            checksum=row.checksum,
            metadata=row.setting_metadata,
            created_by=row.created_by,
            updated_by=row.updated_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _load_candidates(self, active_filter: ActiveSettingsFilter) -> List[CachedSetting]:
        rows = self.store.find_active(active_filter)
        return [
            CachedSetting(
                id=row.id,
                namespace=row.namespace,
                key=row.key,
                value=self.codec.decode(row.value),
                rollout_strategy=row.rollout_strategy,
            )
            for row in rows
        ]

    async def get_active_settings(
        self, query: Optional[ActiveSettingsQuery] = None, **params: Any
    ) -> ActiveSettingsMap:
        """
        Return ``{namespace: {key: value}}`` for a client context.

        Accepts an ActiveSettingsQuery or its fields as keyword arguments.
        Draft lookups and ``skip_cache`` lookups bypass the cache entirely.

        Raises:
            ValidationException: If the query parameters are invalid
            DatabaseException: If the store is unavailable
        """
        if query is None:
            try:
                query = ActiveSettingsQuery(**params)
            except ValidationError as exc:
                raise ValidationException(
                    "Invalid active settings query",
                    ValidationErrorCode.INVALID_INPUT,
                    details={
                        "errors": exc.errors(include_url=False, include_input=False)
                    },
                ) from exc

        environment = query.environment or self.default_environment
        platform = (query.platform or self.default_platform).lower()
        version_code = query.app_version_code or to_version_code(query.app_version)
        active_filter = ActiveSettingsFilter(
            environment=environment,
            platform=platform,
            version_code=version_code,
            now=query.now or _utcnow(),
            namespace=query.namespace,
            channel=query.channel,
            include_draft=query.include_draft,
        )

        use_cache = (
            self.cache is not None and not query.skip_cache and not query.include_draft
        )

        if use_cache:
            cache_key = build_key(
                environment, query.namespace, platform, version_code, query.channel
            )

            async def _load() -> List[Dict[str, Any]]:
                candidates = self._load_candidates(active_filter)
                return [c.model_dump(mode="json") for c in candidates]

            cached = await self.cache.get_or_set(
                cache_key, _load, ttl=self.cache_ttl_seconds
            )
            candidates = [CachedSetting.model_validate(item) for item in cached]
        else:
            candidates = self._load_candidates(active_filter)

        visible = apply_rollout(candidates, query.rollout_seed)
        return group_settings(visible)

    async def list_settings(
        self, query: Optional[RuntimeSettingListQuery] = None
    ) -> RuntimeSettingPage:
        """
        Page through stored settings (any status), values decoded.

        ``limit`` is clamped to the configured maximum.
        """
        query = query or RuntimeSettingListQuery()
        limit = min(query.limit or self.list_default_limit, self.list_max_limit)

        rows, total = self.store.list(
            SettingListFilters(
                namespace=query.namespace,
                status=query.status,
                environment=query.environment,
                platform=query.platform,
                search=query.search,
            ),
            page=query.page,
            limit=limit,
        )
        return RuntimeSettingPage(
            results=[self._to_data(row) for row in rows],
            total=total,
            page=query.page,
            limit=limit,
        )

    # Writes

    @staticmethod
    def _validate_payload(
        payload: Union[RuntimeSettingUpsertData, Mapping[str, Any]],
    ) -> RuntimeSettingUpsertData:
        if isinstance(payload, RuntimeSettingUpsertData):
            return payload
        try:
            return RuntimeSettingUpsertData.model_validate(payload)
        except ValidationError as exc:
            logger.warning(
                "Rejected runtime setting payload with %d validation errors",
                exc.error_count(),
            )
            raise ValidationException(
                "Invalid runtime setting payload",
                ValidationErrorCode.INVALID_INPUT,
                details={
                    "errors": exc.errors(
                        include_url=False, include_context=False, include_input=False
                    )
                },
            ) from exc

    def _normalize(self, data: RuntimeSettingUpsertData) -> Dict[str, Any]:
        value = {} if data.value is None else data.value
        stored_value = self.codec.encode(value, encrypt=data.wants_encryption)

        metadata = dict(data.metadata) if data.metadata is not None else None
        if is_encrypted_envelope(stored_value):
            metadata = metadata or {}
            metadata["contains_encrypted_value"] = True

        return {
            "namespace": data.namespace,
            "key": data.key,
            "value": stored_value,
            "platform": data.platform,
            "environment": data.environment or self.default_environment,
            "channel": data.channel,
            "status": data.status,
            "rollout_strategy": (
                data.rollout_strategy.model_dump() if data.rollout_strategy else None
            ),
            "priority": data.priority,
            "effective_at": data.effective_at or _utcnow(),
            "expires_at": data.expires_at,
            "min_version": data.min_version,
            "max_version": data.max_version,
            "min_version_code": (
                to_version_code(data.min_version) if data.min_version else None
            ),
            "max_version_code": (
                to_version_code(data.max_version) if data.max_version else None
            ),
            "checksum": self.codec.checksum(value),
            "setting_metadata": metadata,
        }

    async def upsert_setting(
        self,
        payload: Union[RuntimeSettingUpsertData, Mapping[str, Any]],
        context: Optional[WriteContext] = None,
    ) -> RuntimeSettingData:
        """
        Create or update the setting identified by its scope tuple.

        Validates the payload (nothing is written if validation fails),
        encrypts the value when ``encrypt`` or ``sensitive`` is set, stores
        it, then invalidates cached lookups.

        Raises:
            ValidationException: If the payload is invalid
            DatabaseException: If the store is unavailable
        """
        data = self._validate_payload(payload)
        return await self._write(self._normalize(data), context)

    async def _write(
        self, fields: Dict[str, Any], context: Optional[WriteContext]
    ) -> RuntimeSettingData:
        context = context or WriteContext()
        row = self.store.upsert(fields, user_id=context.user_id)
        await self.invalidate_cache_for(row)
        return self._to_data(row)

    async def update_setting(
        self,
        setting_id: str,
        payload: Mapping[str, Any],
        context: Optional[WriteContext] = None,
    ) -> RuntimeSettingData:
        """
        Update an existing setting, inheriting omitted fields from the stored row.

        Fields present in ``payload`` replace the stored ones, so an explicit
        None clears a nullable field. When ``value`` is omitted an encrypted
        value is written back as stored, without a decrypt/encrypt round trip.

        Raises:
            RequestParamException: If no setting has ``setting_id`` (HTTP 404)
            ValidationException: If the merged payload is invalid
        """
        existing = self.store.get_by_id(setting_id)
        if existing is None:
            raise RequestParamException(
                f"Runtime setting not found: {setting_id}",
                APIErrorCode.NOT_FOUND,
                details={"id": setting_id},
            )

        current = self._to_data(existing)
        merged: Dict[str, Any] = {
            name: getattr(current, name) for name in _INHERITABLE_FIELDS
        }
        if current.metadata:
            merged["metadata"] = {
                k: v
                for k, v in current.metadata.items()
                if k != "contains_encrypted_value"
            } or None

        keep_value = payload.get("value") is None
        keep_envelope = keep_value and is_encrypted_envelope(existing.value)
        if keep_value:
            merged["value"] = current.value
        merged.update(
            {k: v for k, v in payload.items() if k != "value" or v is not None}
        )

        data = self._validate_payload(merged)
        fields = self._normalize(data)
        if keep_envelope:
            fields["value"] = existing.value
            fields["checksum"] = existing.checksum
            fields["setting_metadata"] = {
                **(fields["setting_metadata"] or {}),
                "contains_encrypted_value": True,
            }

        return await self._write(fields, context)

    # Cache

    async def invalidate(self) -> None:
        """Drop every cached lookup. Cache failures are logged, never raised."""
        if self.cache is None:
            return
        try:
            await self.cache.invalidate_pattern("*")
        except Exception as exc:
            logger.warning("Failed to invalidate runtime settings cache: %s", exc)

    async def invalidate_cache_for(
        self, setting: Optional[Union[RuntimeSetting, RuntimeSettingData]]
    ) -> None:
        """
        Invalidate cached lookups that may include ``setting``.

        Any lookup context can match a given row, so this is a full invalidation.
        """
        if setting is None:
            return
        await self.invalidate()

    def get_health_status(self) -> Dict[str, Any]:
        cache_enabled = self.cache is not None and self.cache.enabled
        return {
            "overall": "healthy",
            "cache_enabled": cache_enabled,
            "redis_enabled": bool(self.cache and self.cache.redis_enabled),
            "encryption_enabled": self.codec.encryption_enabled,
        }


def create_runtime_config_engine() -> RuntimeConfigEngine:
    """Build an engine wired to the configured store, cache and cipher."""
    cache = (
        create_settings_cache()
        if settings.runtime_settings__local_cache_enabled
        or settings.runtime_settings__redis_cache_enabled
        else None
    )
    return RuntimeConfigEngine(
        RuntimeSettingStore(),
        cache,
        ValueCodec(create_cipher_from_settings()),
        default_environment=settings.runtime_settings__default_environment,
        default_platform=settings.runtime_settings__default_platform,
        cache_ttl_seconds=settings.runtime_settings__cache_ttl_seconds,
        list_default_limit=settings.runtime_settings__list_default_limit,
        list_max_limit=settings.runtime_settings__list_max_limit,
    )


@lru_cache(maxsize=1)
def get_runtime_config_engine() -> RuntimeConfigEngine:
    """Process-wide engine used by the API layer."""
    return create_runtime_config_engine()


__all__ = [
    "RuntimeConfigEngine",
    "create_runtime_config_engine",
    "get_runtime_config_engine",
    "group_settings",
]
