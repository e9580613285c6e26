"""
Runtime Setting Store

Data access layer for runtime settings: scope/version/time filtered lookups,
scope-keyed upserts, and paginated listing.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, desc, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from runtime_config.core.error_codes import DatabaseErrorCode
from runtime_config.core.exceptions import DatabaseException
from runtime_config.core.logger import get_logger
from runtime_config.models import RuntimeSetting
from runtime_config.stores.database import database_session
from runtime_config.utils.snowflake_generator import generate_snowflake_id_str

logger = get_logger(__name__)

SCOPE_FIELDS = ("namespace", "key", "environment", "platform", "channel")

# Columns an upsert may write; id and audit columns are managed here
WRITABLE_FIELDS = (
    "namespace",
    "key",
    "value",
    "platform",
    "environment",
    "channel",
    "min_version",
    "max_version",
    "min_version_code",
    "max_version_code",
    "priority",
    "status",
    "effective_at",
    "expires_at",
    "rollout_strategy",
    "checksum",
    "setting_metadata",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ActiveSettingsFilter:
    """Lookup context for :meth:`RuntimeSettingStore.find_active`."""

    environment: str
    platform: str
    version_code: int
    now: datetime
    namespace: Optional[str] = None
    channel: Optional[str] = None
    include_draft: bool = False


@dataclass(frozen=True)
class SettingListFilters:
    namespace: Optional[str] = None
    status: Optional[str] = None
    environment: Optional[str] = None
    platform: Optional[str] = None
    search: Optional[str] = None


class RuntimeSettingStore:
    """Store class for runtime setting data operations."""

    def __init__(self, id_generator=generate_snowflake_id_str):
        self._generate_id = id_generator

    @staticmethod
    def _specificity():
        """Number of scope columns a row pins down; more specific rows sort first."""
        return (
            case((RuntimeSetting.channel.is_not(None), 1), else_=0)
            + case((RuntimeSetting.environment.is_not(None), 1), else_=0)
            + case(
                (
                    and_(
                        RuntimeSetting.platform.is_not(None),
                        func.lower(RuntimeSetting.platform) != "all",
                    ),
                    1,
                ),
                else_=0,
            )
        )

    def find_active(self, active_filter: ActiveSettingsFilter) -> List[RuntimeSetting]:
        """
        Return the rows visible in a lookup context, best match first.

        Scope columns left null on a row act as wildcards. A lookup without a
        channel only sees channel-less rows; a lookup with a channel sees
        channel-less rows plus rows for that channel.

        Ordered by priority, then scope specificity, then most recent update.

        Raises:
            DatabaseException: If the query fails
        """
        f = active_filter
        platform = f.platform.lower()

        try:
            with database_session() as db:
                query: Query = db.query(RuntimeSetting).filter(
                    or_(
                        RuntimeSetting.environment.is_(None),
                        RuntimeSetting.environment == f.environment,
                    ),
                    or_(
                        RuntimeSetting.platform.is_(None),
                        func.lower(RuntimeSetting.platform) == "all",
                        func.lower(RuntimeSetting.platform) == platform,
                    ),
                    or_(
                        RuntimeSetting.effective_at.is_(None),
                        RuntimeSetting.effective_at <= f.now,
                    ),
                    or_(
                        RuntimeSetting.expires_at.is_(None),
                        RuntimeSetting.expires_at > f.now,
                    ),
                    or_(
                        RuntimeSetting.min_version_code.is_(None),
                        RuntimeSetting.min_version_code <= f.version_code,
                    ),
                    or_(
                        RuntimeSetting.max_version_code.is_(None),
                        RuntimeSetting.max_version_code >= f.version_code,
                    ),
                )

                if not f.include_draft:
                    query = query.filter(RuntimeSetting.status == "published")

                if f.namespace:
                    query = query.filter(RuntimeSetting.namespace == f.namespace)

                if f.channel:
                    query = query.filter(
                        or_(
                            RuntimeSetting.channel.is_(None),
                            RuntimeSetting.channel == f.channel,
                        )
                    )
                else:
                    query = query.filter(RuntimeSetting.channel.is_(None))

                rows = query.order_by(
                    desc(RuntimeSetting.priority),
                    desc(self._specificity()),
                    desc(RuntimeSetting.updated_at),
                ).all()

                logger.debug(
                    "find_active env=%s platform=%s namespace=%s channel=%s code=%d -> %d rows",
                    f.environment,
                    platform,
                    f.namespace,
                    f.channel,
                    f.version_code,
                    len(rows),
                )
                return rows

        except SQLAlchemyError as e:
            logger.error("Failed to query active runtime settings: %s", e)
            raise DatabaseException(
                f"Failed to query active runtime settings: {str(e)}",
                DatabaseErrorCode.QUERY_FAILED,
            ) from e

    def get_by_id(self, setting_id: str) -> Optional[RuntimeSetting]:
        """
        Get a runtime setting by ID.

        Raises:
            DatabaseException: If query fails
        """
        try:
            with database_session() as db:
                return (
                    db.query(RuntimeSetting)
                    .filter(RuntimeSetting.id == setting_id)
                    .first()
                )
        except SQLAlchemyError as e:
            logger.error("Failed to get runtime setting %s: %s", setting_id, e)
            raise DatabaseException(
                f"Failed to get runtime setting: {str(e)}",
                DatabaseErrorCode.QUERY_FAILED,
            ) from e

    def upsert(
        self, fields: Dict[str, Any], user_id: Optional[str] = None
    ) -> RuntimeSetting:
        """
        Insert or patch the row identified by the scope tuple in ``fields``.

        Each scope column matches either the given value or, when the value is
        None, a null column. Concurrent writers to the same scope are
        last-writer-wins: an insert that loses the race on the scope index
        is retried as a patch of the row that won.

        Args:
            fields: Normalized column values (see WRITABLE_FIELDS)
            user_id: Acting user recorded in the audit columns

        Returns:
            RuntimeSetting: The stored row

        Raises:
            DatabaseException: If the write fails
        """
        scope_conditions = [
            getattr(RuntimeSetting, name).is_(None)
            if fields.get(name) is None
            else getattr(RuntimeSetting, name) == fields[name]
            for name in SCOPE_FIELDS
        ]
        values = {name: fields[name] for name in WRITABLE_FIELDS if name in fields}

        try:
            with database_session() as db:
                setting = self._find_by_scope(db, scope_conditions)
                now = _utcnow()

                if setting is None:
                    setting = RuntimeSetting(
                        id=self._generate_id(),
                        created_by=user_id,
                        updated_by=user_id,
                        created_at=now,
                        updated_at=now,
                        **values,
                    )
                    db.add(setting)
                    action = "Created"
                    try:
                        db.commit()
                    except IntegrityError:
                        db.rollback()
                        setting = self._find_by_scope(db, scope_conditions)
                        if setting is None:
                            raise
                        logger.info(
                            "Scope of %s/%s was created concurrently, patching it",
                            fields.get("namespace"),
                            fields.get("key"),
                        )
                        self._patch(setting, values, user_id, now)
                        db.commit()
                        action = "Updated"
                else:
                    self._patch(setting, values, user_id, now)
                    db.commit()
                    action = "Updated"

                db.refresh(setting)
                logger.info(
                    "%s runtime setting %s (%s/%s)",
                    action,
                    setting.id,
                    setting.namespace,
                    setting.key,
                )
                return setting

        except SQLAlchemyError as e:
            logger.error(
                "Failed to upsert runtime setting %s/%s: %s",
                fields.get("namespace"),
                fields.get("key"),
                e,
            )
            raise DatabaseException(
                f"Failed to upsert runtime setting: {str(e)}",
                DatabaseErrorCode.QUERY_FAILED,
                details={"namespace": fields.get("namespace"), "key": fields.get("key")},
            ) from e

    @staticmethod
    def _find_by_scope(
        db: Session, scope_conditions: List[Any]
    ) -> Optional[RuntimeSetting]:
        return db.query(RuntimeSetting).filter(*scope_conditions).first()

    @staticmethod
    def _patch(
        setting: RuntimeSetting,
        values: Dict[str, Any],
        user_id: Optional[str],
        now: datetime,
    ) -> None:
        for name, value in values.items():
            setattr(setting, name, value)
        setting.updated_by = user_id
        # onupdate does not fire for no-op patches
        setting.updated_at = now

    @staticmethod
    def _apply_list_filters(query: Query, filters: SettingListFilters) -> Query:
        if filters.namespace:
            query = query.filter(RuntimeSetting.namespace == filters.namespace)
        if filters.status:
            query = query.filter(RuntimeSetting.status == filters.status)
        if filters.environment:
            query = query.filter(
                or_(
                    RuntimeSetting.environment.is_(None),
                    RuntimeSetting.environment == filters.environment,
                )
            )
        if filters.platform:
            query = query.filter(
                or_(
                    RuntimeSetting.platform.is_(None),
                    func.lower(RuntimeSetting.platform) == "all",
                    func.lower(RuntimeSetting.platform) == filters.platform.lower(),
                )
            )
        if filters.search:
            term = f"%{filters.search.strip().lower()}%"
            query = query.filter(
                or_(
                    func.lower(RuntimeSetting.namespace).like(term),
                    func.lower(RuntimeSetting.key).like(term),
                    func.lower(RuntimeSetting.status).like(term),
                )
            )
        return query

    def list(
        self, filters: SettingListFilters, page: int = 0, limit: int = 25
    ) -> Tuple[List[RuntimeSetting], int]:
        """
        Page through settings, most recently updated first.

        Args:
            filters: Optional filters
            page: Zero-based page number
            limit: Page size

        Returns:
            (rows on the page, total matching rows)

        Raises:
            DatabaseException: If query fails
        """
        try:
            with database_session() as db:
                query = self._apply_list_filters(db.query(RuntimeSetting), filters)
                total = query.count()
                rows = (
                    query.order_by(
                        desc(RuntimeSetting.updated_at), desc(RuntimeSetting.id)
                    )
                    .offset(page * limit)
                    .limit(limit)
                    .all()
                )
                logger.debug("Listed %d of %d runtime settings", len(rows), total)
                return rows, total

        except SQLAlchemyError as e:
            logger.error("Failed to list runtime settings: %s", e)
            raise DatabaseException(
                f"Failed to list runtime settings: {str(e)}",
                DatabaseErrorCode.QUERY_FAILED,
            ) from e


__all__ = [
    "ActiveSettingsFilter",
    "RuntimeSettingStore",
    "SettingListFilters",
]
