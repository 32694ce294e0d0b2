"""Relational schema models, type mapping, introspection, and diffing.

Provides schema snapshot models (``SchemaSnapshot``, ``TableSchema``...),
the logical-to-storage type mapper (``map_logical_type``), table naming
conventions, live PostgreSQL introspection (``SchemaIntrospector``), and
the non-destructive schema differ (``diff``).

The snapshot builder lives in ``module_upgrade.schema.snapshot``.

Usage:
    from module_upgrade.schema import diff, SchemaIntrospector, SchemaSnapshot
    from module_upgrade.schema.snapshot import build_target, capture_current
"""

from module_upgrade.schema.differ import MigrationPlan, MigrationStep, StepKind, diff
from module_upgrade.schema.introspector import SchemaIntrospector
from module_upgrade.schema.models import (
    ColumnSchema,
    IndexSchema,
    SchemaSnapshot,
    StorageType,
    TableSchema,
)
from module_upgrade.schema.naming import NamingConvention, default_naming, prefixed_naming
from module_upgrade.schema.types import LogicalType, map_logical_type

__all__ = [
    "diff",
    "MigrationPlan",
    "MigrationStep",
    "StepKind",
    "SchemaIntrospector",
    "ColumnSchema",
    "IndexSchema",
    "SchemaSnapshot",
    "StorageType",
    "TableSchema",
    "NamingConvention",
    "default_naming",
    "prefixed_naming",
    "LogicalType",
    "map_logical_type",
]
