"""module-upgrade: reconcile a database schema with model definitions.

Translates a module's model definitions into table schemas, compares
them with the live PostgreSQL schema, and applies a non-destructive,
ordered set of DDL statements (create table, add column, alter column,
add unique index -- never drops).

Usage:
    from module_upgrade import translate, build_target, diff, upgrade_database
    from module_upgrade import RawModelDefinition, SchemaIntrospector
"""

__version__ = "0.1.0"

# Errors
from module_upgrade.errors import (
    DiscoveryError,
    InvalidDefinitionError,
    ModuleUpgradeError,
    SnapshotUnavailableError,
    UnsupportedTypeError,
)

# Definitions
from module_upgrade.definitions import (
    JsonDefinitionDiscovery,
    ModelDiscoveryService,
    ObjectModelDefinition,
    RawFieldDefinition,
    RawModelDefinition,
    translate,
)

# Schema
from module_upgrade.schema import (
    MigrationPlan,
    MigrationStep,
    SchemaIntrospector,
    SchemaSnapshot,
    StepKind,
    TableSchema,
    default_naming,
    diff,
    map_logical_type,
    prefixed_naming,
)
from module_upgrade.schema.snapshot import TranslationFailure, build_target, capture_current

# Migration
from module_upgrade.migration import (
    MigrationResult,
    UpgradeResult,
    UpgradeStatus,
    apply_plan,
    upgrade_database,
)

__all__ = [
    # Errors
    "ModuleUpgradeError",
    "InvalidDefinitionError",
    "UnsupportedTypeError",
    "SnapshotUnavailableError",
    "DiscoveryError",
    # Definitions
    "RawFieldDefinition",
    "RawModelDefinition",
    "ObjectModelDefinition",
    "ModelDiscoveryService",
    "JsonDefinitionDiscovery",
    "translate",
    # Schema
    "map_logical_type",
    "default_naming",
    "prefixed_naming",
    "SchemaSnapshot",
    "TableSchema",
    "SchemaIntrospector",
    "build_target",
    "capture_current",
    "TranslationFailure",
    "diff",
    "MigrationPlan",
    "MigrationStep",
    "StepKind",
    # Migration
    "apply_plan",
    "MigrationResult",
    "upgrade_database",
    "UpgradeResult",
    "UpgradeStatus",
]
