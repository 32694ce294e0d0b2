"""Logical field type to storage type mapping.

Pure logic -- no I/O.  Model definitions declare fields with a logical
type (the legacy object-model codes or their names); schema comparison
works on normalized storage types.

Usage:
    from module_upgrade.schema.types import LogicalType, map_logical_type

    map_logical_type(LogicalType.HTML)   # StorageType.TEXT
    map_logical_type(3)                  # StorageType.STRING (legacy code)
    map_logical_type("nothing")          # raises UnsupportedTypeError
"""

from enum import Enum
from typing import Any

from module_upgrade.errors import UnsupportedTypeError
from module_upgrade.schema.models import StorageType


class LogicalType(str, Enum):
    """Domain-level field types declared by model definitions."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"
    FLOAT = "float"
    DATE = "date"
    HTML = "html"
    SQL = "sql"


# Numeric codes used by legacy object-model definitions.
# Code 7 ("nothing") is deliberately absent: it has no storage type.
LEGACY_TYPE_CODES: dict[int, LogicalType] = {
    1: LogicalType.INTEGER,
    2: LogicalType.BOOLEAN,
    3: LogicalType.STRING,
    4: LogicalType.FLOAT,
    5: LogicalType.DATE,
    6: LogicalType.HTML,
    8: LogicalType.SQL,
}

_STORAGE_TYPES: dict[LogicalType, StorageType] = {
    LogicalType.INTEGER: StorageType.INTEGER,
    LogicalType.BOOLEAN: StorageType.BOOLEAN,
    LogicalType.STRING: StorageType.STRING,
    LogicalType.FLOAT: StorageType.FLOAT,
    LogicalType.DATE: StorageType.DATETIME,
    LogicalType.HTML: StorageType.TEXT,
    LogicalType.SQL: StorageType.TEXT,
}


def coerce_logical_type(value: Any) -> LogicalType:
    """Resolve a raw logical type (member, name, or legacy code).

    Legacy codes may be given as integers or digit strings (``"3"``).

    Raises:
        UnsupportedTypeError: If *value* does not name a known logical type.
    """
    if isinstance(value, LogicalType):
        return value
    # bool is an int subclass; True must not read as code 1
    if isinstance(value, int) and not isinstance(value, bool):
        if value in LEGACY_TYPE_CODES:
            return LEGACY_TYPE_CODES[value]
    elif isinstance(value, str):
        normalized = value.strip().lower()
        if normalized.isdecimal() and int(normalized) in LEGACY_TYPE_CODES:
            return LEGACY_TYPE_CODES[int(normalized)]
        if normalized == "datetime":
            return LogicalType.DATE
        for member in LogicalType:
            if member.value == normalized:
                return member
    raise UnsupportedTypeError(value)


def map_logical_type(logical_type: Any) -> StorageType:
    """Map a logical field type to its storage type.

    Args:
        logical_type: A ``LogicalType``, its name, or a legacy numeric code.

    Returns:
        The normalized ``StorageType``.

    Raises:
        UnsupportedTypeError: For any value without a storage type.  Callers
            must let it abort the translation of the model being processed.

    Examples:
        >>> map_logical_type(LogicalType.DATE)
        <StorageType.DATETIME: 'datetime'>
        >>> map_logical_type(LogicalType.SQL)
        <StorageType.TEXT: 'text'>
    """
    return _STORAGE_TYPES[coerce_logical_type(logical_type)]
