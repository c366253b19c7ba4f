"""JSON serialization of rows and execution outputs using orjson.

orjson handles datetime, date, time and UUID natively. MySQL rows also carry
a few types it does not know:
- DECIMAL → string (preserving precision)
- TIME → timedelta → total seconds
- BLOB/BINARY → bytes → UTF-8 text or base64
- SET → set → sorted list
"""

import base64
import datetime
import decimal
from typing import Any

import orjson

# Fetched rows are keyed by integer ordinal
_DUMP_OPTIONS = orjson.OPT_NON_STR_KEYS


def _default_handler(obj: Any) -> Any:
    """
    Custom default handler for types orjson doesn't handle natively.

    Args:
        obj: Object to serialize

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object cannot be serialized
    """
    if isinstance(obj, decimal.Decimal):
        return str(obj)

    if isinstance(obj, datetime.timedelta):
        return obj.total_seconds()

    if isinstance(obj, (bytes, bytearray, memoryview)):
        data = bytes(obj)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(data).decode("ascii")

    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)

    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def convert_value_to_json_safe(value: Any) -> Any:
    """
    Convert a value to JSON-serializable format.

    Args:
        value: Value to convert

    Returns:
        JSON-serializable value
    """
    try:
        return orjson.loads(orjson.dumps(value, default=_default_handler, option=_DUMP_OPTIONS))
    except TypeError:
        # If orjson can't handle it, convert to string as fallback
        return str(value)


def convert_row_to_json_safe(row: dict[str, Any]) -> dict[str, Any]:
    """Convert all values in a row dict to JSON-serializable formats."""
    return {key: convert_value_to_json_safe(value) for key, value in row.items()}


def dumps(obj: Any, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = _DUMP_OPTIONS | (orjson.OPT_INDENT_2 if indent else 0)
    return orjson.dumps(obj, default=_default_handler, option=option).decode("utf-8")
