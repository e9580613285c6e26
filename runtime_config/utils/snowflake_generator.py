"""
Snowflake ID Generator Utility

Distributed, time-ordered ids for runtime settings, using the SonyFlake algorithm.
"""

import threading
from typing import Optional

from sonyflake import SonyFlake

from runtime_config.core.error_codes import InternalServiceErrorCode
from runtime_config.core.exceptions import InternalServiceException
from runtime_config.core.logger import get_logger

logger = get_logger(__name__)


class SnowflakeGenerator:
    """
    Process-wide SonyFlake id generator.

    SonyFlake ids are 39 bits of time (10 ms units), 8 bits of sequence and
    16 bits of machine id, so ids from different hosts never collide and sort
    by creation time.
    """

    _instance: Optional["SnowflakeGenerator"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "SnowflakeGenerator":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        try:
            self._sf = SonyFlake()
            self._initialized = True
            logger.info("SnowflakeGenerator initialized successfully")
        except Exception as e:
            logger.error("Failed to initialize SnowflakeGenerator: %s", str(e))
            raise InternalServiceException(
                f"SnowflakeGenerator initialization failed: {str(e)}",
                InternalServiceErrorCode.SNOWFLAKE_GENERATION_FAILED,
            ) from e

    def generate_id(self) -> int:
        """
        Generate a unique snowflake ID.

        Raises:
            InternalServiceException: If ID generation fails
        """
        try:
            return self._sf.next_id()
        except Exception as e:
            logger.error("Failed to generate snowflake ID: %s", str(e))
            raise InternalServiceException(
                f"Snowflake ID generation failed: {str(e)}",
                InternalServiceErrorCode.SNOWFLAKE_GENERATION_FAILED,
            ) from e


def generate_snowflake_id_str() -> str:
    """Generate a snowflake ID rendered as a string (primary key format)."""
    return str(SnowflakeGenerator().generate_id())
