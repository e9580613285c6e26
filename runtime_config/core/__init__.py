"""
Core Package

Core configuration, error handling, and logging for runtime-config.
"""

# ruff: noqa: F401  # All imports are re-exported via __all__

from .config import Settings, settings  # noqa: F401
from .error_codes import (  # noqa: F401
    ERROR_CODE_MAP,
    APIErrorCode,
    ConfigurationErrorCode,
    DatabaseErrorCode,
    EncryptionErrorCode,
    ErrorCode,
    InternalServiceErrorCode,
    RedisErrorCode,
    RequestParamErrorCode,
    ValidationErrorCode,
    get_error_info,
    get_http_status_code,
)
from .exceptions import (  # noqa: F401
    ApplicationException,
    ConfigurationException,
    DatabaseException,
    DecryptionFailedException,
    EncryptionException,
    InternalServiceException,
    RedisException,
    RequestParamException,
    ValidationException,
)
from .logger import get_logger  # noqa: F401

__all__ = [
    # Configuration
    "Settings",
    "settings",
    # Error codes
    "ErrorCode",
    "APIErrorCode",
    "ConfigurationErrorCode",
    "DatabaseErrorCode",
    "EncryptionErrorCode",
    "InternalServiceErrorCode",
    "RedisErrorCode",
    "RequestParamErrorCode",
    "ValidationErrorCode",
    "ERROR_CODE_MAP",
    "get_http_status_code",
    "get_error_info",
    # Exceptions
    "ApplicationException",
    "ConfigurationException",
    "DatabaseException",
    "DecryptionFailedException",
    "EncryptionException",
    "InternalServiceException",
    "RedisException",
    "RequestParamException",
    "ValidationException",
    # Logger
    "get_logger",
]
