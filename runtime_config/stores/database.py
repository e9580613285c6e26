"""
Database Core

SQLAlchemy engine, session management, and database utilities for runtime-config.

Features:
- Connection pool with health checks (QueuePool; StaticPool for SQLite)
- Session context manager with automatic rollback
- Error handling with core error codes
- Connection lifecycle management
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Generator

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    DatabaseError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from runtime_config.core.config import settings
from runtime_config.core.error_codes import DatabaseErrorCode
from runtime_config.core.exceptions import ApplicationException, DatabaseException
from runtime_config.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PoolStatus:
    """Immutable connection pool status information."""

    size: int
    checked_out: int
    overflow: int


# Global SQLAlchemy base
Base = declarative_base()


def _create_database_engine() -> Engine:
    """Create and configure the database engine from settings."""
    try:
        url = make_url(settings.database__url)

        if url.get_backend_name() == "sqlite":
            # single shared connection so in-memory databases survive across sessions
            return create_engine(
                url,
                echo=settings.database__echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )

        return create_engine(
            url,
            echo=settings.database__echo,
            pool_pre_ping=settings.database__pool_pre_ping,
            pool_size=settings.database__pool_size,
            max_overflow=settings.database__max_overflow,
            pool_timeout=settings.database__pool_timeout,
            pool_recycle=settings.database__pool_recycle,
            poolclass=QueuePool,
        )

    except Exception as e:
        logger.error("Failed to create database engine: %s", str(e))

        database_url = str(settings.database__url)
        if "@" in database_url:
            host = database_url.rsplit("@", maxsplit=1)[-1].split("/")[0]
        else:
            host = "unknown"

        raise DatabaseException(
            f"Database engine creation failed: {str(e)}",
            DatabaseErrorCode.CONNECTION_FAILED,
            details={"database_url_host": host},
        ) from e


# Global engine and session factory
engine = _create_database_engine()

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    future=True,
    expire_on_commit=True,
)


def get_pool_status() -> PoolStatus:
    """
    Get current connection pool status.

    Pools without sizing (StaticPool) report zeros.
    """
    pool = engine.pool
    return PoolStatus(
        size=getattr(pool, "size", lambda: 0)(),
        checked_out=getattr(pool, "checkedout", lambda: 0)(),
        overflow=getattr(pool, "overflow", lambda: 0)(),
    )


@contextmanager
def database_session() -> Generator[Session, None, None]:
    """
    Context manager for a database session.

    Rolls back on any error. SQLAlchemy and unexpected errors are re-raised as
    DatabaseException; application exceptions raised inside the block pass
    through unchanged.

    Example:
        with database_session() as db:
            row = db.get(RuntimeSetting, setting_id)
            row.status = "retired"
            db.commit()
    """
    db_session = SessionLocal()
    logger.debug("Database session created")
    try:
        yield db_session

    except ApplicationException:
        db_session.rollback()
        raise

    except SQLAlchemyError as e:
        logger.error("Database session error: %s", str(e))
        db_session.rollback()
        raise DatabaseException(
            f"Database session error: {str(e)}", DatabaseErrorCode.QUERY_FAILED
        ) from e

    except Exception as e:
        logger.error("Unexpected session error: %s", str(e))
        db_session.rollback()
        raise DatabaseException(
            f"Unexpected database error: {str(e)}",
            DatabaseErrorCode.CONNECTION_FAILED,
        ) from e

    finally:
        db_session.close()
        logger.debug("Database session closed")


def dispose_engine() -> None:
    """Dispose the engine and close all pooled connections (application shutdown)."""
    try:
        engine.dispose()
        logger.info("Database engine disposed successfully")
    except SQLAlchemyError as e:
        logger.error("Failed to dispose database engine: %s", str(e))


def test_connection() -> Dict[str, Any]:
    """
    Test database connection and return status information.

    Returns:
        Dict[str, Any]: Connection test results and pool status

    Raises:
        DatabaseException: If connection test fails
    """
    try:
        with engine.connect() as conn:
            test_value = conn.execute(text("SELECT 1 as test_value")).scalar()

        pool_status = get_pool_status()
        logger.info(
            "Database connection test - Pool status: Size=%d, Checked out=%d, "
            "Overflow=%d",
            pool_status.size,
            pool_status.checked_out,
            pool_status.overflow,
        )

        return {
            "connection_test": "passed",
            "test_query_result": test_value,
            "pool_status": {
                "size": pool_status.size,
                "checked_out": pool_status.checked_out,
                "overflow": pool_status.overflow,
            },
            "engine_url": engine.url.render_as_string(hide_password=True),
        }

    except (OperationalError, DatabaseError, InterfaceError) as e:
        logger.error("Database connection test failed: %s", str(e))
        raise DatabaseException(
            f"Database connection test failed: {str(e)}",
            DatabaseErrorCode.CONNECTION_FAILED,
            details={"error_type": type(e).__name__},
        ) from e
