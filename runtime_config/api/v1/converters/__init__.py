"""
API Layer Converters

Converters between API layer schemas and service layer schemas.
"""

from .runtime_setting_converters import (
    convert_runtime_setting_data_to_response,
    convert_runtime_setting_page_to_response,
    convert_runtime_setting_update_request,
    convert_runtime_setting_upsert_request,
    parse_setting_value,
)

__all__ = [
    "convert_runtime_setting_upsert_request",
    "convert_runtime_setting_update_request",
    "convert_runtime_setting_data_to_response",
    "convert_runtime_setting_page_to_response",
    "parse_setting_value",
]
