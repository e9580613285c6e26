"""
Logfire Configuration Module

Logfire configuration and instrumentation setup for runtime-config.

Usage:
    from runtime_config.core.logfire_config import initialize_logfire

    results = initialize_logfire(app)  # idempotent; safe to call at startup
    # results: {"configured": bool, "instrumentation": {...}}
"""

import logging
from typing import Any, Dict, Optional, Union

import logfire
from fastapi import FastAPI, Request, WebSocket

from runtime_config.core.config import settings
from runtime_config.core.logger import setup_logfire_handler

_SENSITIVE_QUERY_KEYS = {"password", "token", "secret", "encryption_key"}


class _LogfireState:
    """Internal state management for logfire configuration."""

    def __init__(self) -> None:
        self.configured = False
        self.instrumented = False
        self.instrument_results: Dict[str, bool] = {
            "redis": False,
            "sqlalchemy": False,
        }

    def update_instrument_result(self, key: str, value: bool) -> None:
        self.instrument_results[key] = value

    def get_instrument_results(self) -> Dict[str, bool]:
        return self.instrument_results.copy()


_state = _LogfireState()


def _custom_scrub_callback(match: Any) -> Any:
    """
    Keep rollout seeds and request IDs visible; redact everything else Logfire flags.

    Args:
        match: ScrubMatch object containing path, value, and pattern_match

    Returns:
        The original value if it should be kept, None if it should be redacted
    """
    allowed_keys = {"rid", "rollout_seed", "rolloutseed"}
    if any(str(part).lower() in allowed_keys for part in match.path):
        return match.value
    return None


def custom_request_attributes_mapper(
    request: Union[Request, WebSocket], attributes: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Shape the attributes Logfire records for each request.

    Validation errors are always kept. For successful requests the parsed
    values are logged with secrets redacted; setting values themselves are
    dropped since they may carry sensitive configuration.
    """
    endpoint = str(request.url.path)
    method = getattr(request, "method", "WebSocket")
    request_id = request.headers.get("x-request-id")

    if attributes.get("errors"):
        return {
            "errors": attributes["errors"],
            "endpoint": endpoint,
            "method": method,
            "request_id": request_id,
        }

    filtered_values: Dict[str, Any] = {}
    for key, value in (attributes.get("values") or {}).items():
        if key.lower() in _SENSITIVE_QUERY_KEYS:
            filtered_values[key] = "[REDACTED]"
        elif key == "payload":
            # request bodies carry setting values; keep the scope only
            filtered_values[key] = {
                "namespace": getattr(value, "namespace", None),
                "key": getattr(value, "key", None),
            }
        else:
            filtered_values[key] = value

    return {
        "values": filtered_values,
        "endpoint": endpoint,
        "method": method,
        "request_id": request_id,
    }


def setup_logfire() -> bool:
    """
    Configure logfire from settings.

    Returns:
        bool: True if logfire is configured, False otherwise
    """
    logger = logging.getLogger("runtime_config.logfire")

    if not settings.logfire__enabled or _state.configured:
        return _state.configured

    try:
        config_kwargs: Dict[str, Any] = {
            "service_name": settings.logfire__service_name,
            "environment": settings.logfire__environment,
        }

        if settings.logfire__disable_scrubbing:
            config_kwargs["scrubbing"] = False
        else:
            config_kwargs["scrubbing"] = logfire.ScrubbingOptions(
                callback=_custom_scrub_callback
            )

        if settings.logfire__token:
            config_kwargs["token"] = settings.logfire__token.get_secret_value()

        logfire.configure(**config_kwargs)
        logging.getLogger("runtime_config.startup").info(
            "Logfire initialized for service: %s", settings.logfire__service_name
        )

        setup_logfire_handler()

        _state.configured = True
        return True

    except Exception as e:
        logger.error("Failed to initialize logfire: %s", e)
        return False


def instrument_logfire() -> Dict[str, bool]:
    """
    Instrument Redis and SQLAlchemy.

    Returns:
        dict: Instrumentation results per library
    """
    logger = logging.getLogger("runtime_config.logfire")

    if not settings.logfire__enabled or _state.instrumented:
        return _state.get_instrument_results()

    if settings.logfire__instrument__redis:
        try:
            logfire.instrument_redis()
            logger.info("Logfire Redis instrumentation enabled")
            _state.update_instrument_result("redis", True)
        except Exception as e:
            logger.warning("Failed to instrument Redis with logfire: %s", e)

    if settings.logfire__instrument__sqlalchemy:
        try:
            from runtime_config.stores.database import engine

            logfire.instrument_sqlalchemy(engine=engine)
            logger.info("Logfire SQLAlchemy instrumentation enabled")
            _state.update_instrument_result("sqlalchemy", True)
        except Exception as e:
            logger.warning("Failed to instrument SQLAlchemy with logfire: %s", e)

    _state.instrumented = True
    return _state.get_instrument_results()


def instrument_fastapi(app: FastAPI) -> bool:
    """
    Set up logfire instrumentation for FastAPI.

    Args:
        app: The FastAPI application instance

    Returns:
        bool: True if FastAPI was successfully instrumented, False otherwise
    """
    logger = logging.getLogger("runtime_config.logfire")

    if not settings.logfire__enabled or not settings.logfire__instrument__fastapi:
        return False

    try:
        logfire.instrument_fastapi(
            app,
            request_attributes_mapper=custom_request_attributes_mapper,
            capture_headers=True,
        )
        logger.info("FastAPI instrumented with logfire")
        return True

    except Exception as e:
        logger.error("Failed to instrument FastAPI with logfire: %s", e)
        return False


def initialize_logfire(app: Optional[FastAPI] = None) -> Dict[str, Any]:
    """
    Complete logfire initialization including configuration and instrumentation.

    Args:
        app: Optional FastAPI application instance for instrumentation

    Returns:
        dict: Initialization results with status for each component
    """
    results: Dict[str, Any] = {
        "configured": setup_logfire(),
        "instrumentation": {"redis": False, "sqlalchemy": False, "fastapi": False},
    }

    if results["configured"]:
        results["instrumentation"].update(instrument_logfire())
        if app is not None:
            results["instrumentation"]["fastapi"] = instrument_fastapi(app)

    return results
