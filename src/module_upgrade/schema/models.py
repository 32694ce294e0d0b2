"""Pydantic models for relational schema snapshots.

This module contains schema-domain models:
- Storage types: StorageType
- Table models: ColumnSchema, IndexSchema, TableSchema
- Whole-schema snapshot: SchemaSnapshot

All models are frozen.  Tables are assembled column by column by their
builder (translator or introspector) and constructed once.

Definition models (RawModelDefinition, RawFieldDefinition) live in
module_upgrade.definitions.models.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StorageType(str, Enum):
    """Normalized column types used for schema comparison."""

    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING = "string"
    FLOAT = "float"
    DATETIME = "datetime"
    TEXT = "text"


# Storage types that can carry the unsigned flag
NUMERIC_STORAGE_TYPES = (StorageType.INTEGER, StorageType.FLOAT)

# Length used for strings that do not declare a size
DEFAULT_STRING_LENGTH = 255


# ============================================================================
# Table Models
# ============================================================================


class ColumnSchema(BaseModel):
    """Schema for a table column.

    ``storage_type`` holds a ``StorageType`` value for columns this tool
    manages.  Live columns of other types (``jsonb``, ``uuid``...) keep
    their database type name.

    Example:
        >>> col = ColumnSchema(name="id_foo", storage_type=StorageType.INTEGER)
        >>> col.nullable
        True
    """

    model_config = ConfigDict(frozen=True)

    name: str
    storage_type: str
    nullable: bool = True
    length: int | None = None
    unsigned: bool | None = None
    autoincrement: bool = False

    @property
    def effective_length(self) -> int | None:
        """Length used for comparison (strings only, defaulting to 255)."""
        if self.storage_type == StorageType.STRING:
            return self.length or DEFAULT_STRING_LENGTH
        return None


class IndexSchema(BaseModel):
    """Schema for a (unique) index."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[str] = Field(default_factory=list)
    is_unique: bool = True


class TableSchema(BaseModel):
    """Schema for a database table."""

    model_config = ConfigDict(frozen=True)

    name: str
    columns: list[ColumnSchema] = Field(default_factory=list)
    primary_key: list[str] = Field(default_factory=list)
    unique_indexes: list[IndexSchema] = Field(default_factory=list)

    @property
    def column_names(self) -> list[str]:
        """Column names in declaration order."""
        return [column.name for column in self.columns]

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)

    def get_column(self, name: str) -> ColumnSchema | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None


# ============================================================================
# Snapshot
# ============================================================================


class SchemaSnapshot(BaseModel):
    """A whole-schema snapshot keyed by qualified table name.

    Represents either the live database state or the desired state.

    Example:
        >>> snapshot = SchemaSnapshot(schema_name="public")
        >>> snapshot.qualify("foo")
        'public.foo'
    """

    model_config = ConfigDict(frozen=True)

    schema_name: str = "public"
    tables: dict[str, TableSchema] = Field(default_factory=dict)

    def qualify(self, table_name: str) -> str:
        """Return the snapshot key for a bare table name."""
        return f"{self.schema_name}.{table_name}"
