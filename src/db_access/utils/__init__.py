"""Utility modules for the database access layer."""

from db_access.utils.serialization import (
    convert_row_to_json_safe,
    convert_value_to_json_safe,
    dumps,
)

__all__ = [
    "convert_value_to_json_safe",
    "convert_row_to_json_safe",
    "dumps",
]
