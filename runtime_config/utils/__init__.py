"""
Utils Package

Common utility functions and helpers for runtime-config.
"""

from .snowflake_generator import SnowflakeGenerator, generate_snowflake_id_str

__all__ = [
    "SnowflakeGenerator",
    "generate_snowflake_id_str",
]
