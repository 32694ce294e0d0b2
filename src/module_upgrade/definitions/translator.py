"""Translate raw model definitions into table schemas.

Pure logic -- no I/O, no database access.  One ``RawModelDefinition``
becomes one ``ObjectModelDefinition``: a main table and, for
multi-language models, a language table.

Usage:
    from module_upgrade.definitions.translator import translate
    from module_upgrade.schema.naming import prefixed_naming

    model = translate(definition, naming=prefixed_naming("ps_"))
    model.main_table.name      # 'ps_foo'
    model.lang_table.name      # 'ps_foo_lang' (multilang only)
"""

from pydantic import BaseModel, ConfigDict

from module_upgrade.definitions.models import RawFieldDefinition, RawModelDefinition
from module_upgrade.errors import InvalidDefinitionError
from module_upgrade.schema.models import (
    NUMERIC_STORAGE_TYPES,
    ColumnSchema,
    IndexSchema,
    StorageType,
    TableSchema,
)
from module_upgrade.schema.naming import NamingConvention, default_naming
from module_upgrade.schema.types import map_logical_type

LANG_TABLE_SUFFIX = "_lang"
LANG_COLUMN = "id_lang"
SHOP_COLUMN = "id_shop"


class ObjectModelDefinition(BaseModel):
    """Translation result: the tables backing one model.

    Example:
        >>> model = translate(RawModelDefinition.from_definition({
        ...     "table": "foo",
        ...     "primary": "id_foo",
        ...     "fields": {"name": {"type": "string", "required": True}},
        ... }))
        >>> model.main_table.column_names
        ['id_foo', 'name']
        >>> model.lang_table is None
        True
    """

    model_config = ConfigDict(frozen=True)

    main_table: TableSchema
    lang_table: TableSchema | None = None
    multilang: bool = False
    multilang_shop: bool = False

    @property
    def tables(self) -> list[TableSchema]:
        """Main table, then the language table when present."""
        if self.lang_table is None:
            return [self.main_table]
        return [self.main_table, self.lang_table]


class _TableBuilder:
    """Append-only column collector for one table under construction."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.columns: list[ColumnSchema] = []
        self.primary_key: list[str] = []
        self.unique_indexes: list[IndexSchema] = []

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)

    def add_column(self, column: ColumnSchema) -> None:
        self.columns.append(column)

    def add_unique_index(self, columns: list[str]) -> None:
        self.unique_indexes.append(
            IndexSchema(name=f"{self.name}_{'_'.join(columns)}_key", columns=columns)
        )

    def build(self) -> TableSchema:
        return TableSchema(
            name=self.name,
            columns=self.columns,
            primary_key=self.primary_key,
            unique_indexes=self.unique_indexes,
        )


def _key_column(name: str, autoincrement: bool = False) -> ColumnSchema:
    return ColumnSchema(
        name=name,
        storage_type=StorageType.INTEGER,
        nullable=False,
        unsigned=True,
        autoincrement=autoincrement,
    )


def _field_column(field: RawFieldDefinition) -> ColumnSchema:
    """Build the column for one field.

    The unsigned flag is a heuristic: numeric columns whose validation
    hint mentions "unsigned" (any case) are unsigned.
    """
    storage_type = map_logical_type(field.logical_type)

    unsigned: bool | None = None
    if storage_type in NUMERIC_STORAGE_TYPES:
        if field.validate_hint and "unsigned" in field.validate_hint.lower():
            unsigned = True

    return ColumnSchema(
        name=field.name,
        storage_type=storage_type,
        nullable=not field.required,
        length=field.size,
        unsigned=unsigned,
    )


def _check_definition(definition: RawModelDefinition) -> None:
    if definition.error:
        raise InvalidDefinitionError(
            f"Definition '{definition.identifier}' is malformed: {definition.error}"
        )
    missing = [
        key
        for key, value in (
            ("table", definition.table),
            ("primary", definition.primary),
            ("fields", definition.fields),
        )
        if not value
    ]
    if missing:
        raise InvalidDefinitionError(
            f"Definition '{definition.identifier}' does not have all required "
            f"fields (missing: {', '.join(missing)})"
        )


def translate(
    definition: RawModelDefinition,
    naming: NamingConvention = default_naming,
) -> ObjectModelDefinition:
    """Translate one model definition into its table schemas.

    The main table gets a synthesized primary key column (unsigned,
    auto-incrementing integer) named after ``definition.primary``.
    Multi-language models get a ``<table>_lang`` table keyed by the
    primary key, ``id_lang`` and (per shop) ``id_shop``, covered by one
    composite unique index.  Fields are routed to the language table when
    it exists and the field is flagged ``lang``; a field whose column
    already exists in its table is skipped.

    Args:
        definition: Raw definition from discovery.
        naming: Convention mapping definition table names to physical names.

    Returns:
        ``ObjectModelDefinition`` owning the built tables.

    Raises:
        InvalidDefinitionError: If ``table``, ``primary`` or ``fields`` is
            missing or empty, or discovery marked the definition malformed.
        UnsupportedTypeError: If a field declares an unmappable type.
    """
    _check_definition(definition)
    table_name = definition.table
    primary = definition.primary

    main = _TableBuilder(naming(table_name))
    main.add_column(_key_column(primary, autoincrement=True))
    main.primary_key = [primary]

    lang: _TableBuilder | None = None
    if definition.multilang:
        lang = _TableBuilder(naming(table_name + LANG_TABLE_SUFFIX))
        keys = [primary, LANG_COLUMN]
        if definition.multilang_shop:
            keys.append(SHOP_COLUMN)
        for key in keys:
            lang.add_column(_key_column(key))
        lang.add_unique_index(keys)

    for field in definition.fields:
        target = lang if lang is not None and field.lang else main
        if target.has_column(field.name):
            continue
        target.add_column(_field_column(field))

    return ObjectModelDefinition(
        main_table=main.build(),
        lang_table=lang.build() if lang is not None else None,
        multilang=definition.multilang,
        multilang_shop=definition.multilang_shop,
    )
