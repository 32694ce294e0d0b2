"""PostgreSQL DDL rendering for table schemas.

Pure string building -- no I/O.  Statements are guarded where
PostgreSQL allows it (``IF NOT EXISTS``) so a plan can be replayed.

Type rendering:
    integer   -> INTEGER
    boolean   -> BOOLEAN
    string    -> VARCHAR(n)            (n defaults to 255)
    float     -> DOUBLE PRECISION
    datetime  -> TIMESTAMP(0) WITHOUT TIME ZONE
    text      -> TEXT

PostgreSQL has no unsigned integers: an unsigned column carries a named
check constraint ``<table>_<column>_unsigned CHECK (<column> >= 0)``.
Auto-increment columns are identity columns.
"""

import re

from module_upgrade.schema.models import ColumnSchema, IndexSchema, StorageType, TableSchema

_PLAIN_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_$]*$")

# PostgreSQL keywords that cannot be used as bare column or table names.
RESERVED_KEYWORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization binary
    both case cast check collate collation column concurrently constraint
    create cross current_catalog current_date current_role current_schema
    current_time current_timestamp current_user default deferrable desc
    distinct do else end except false fetch for foreign freeze from full grant
    group having ilike in initially inner intersect into is isnull join
    lateral leading left like limit localtime localtimestamp natural not
    notnull null offset on only or order outer overlaps placing primary
    references returning right select session_user similar some symmetric
    system_user table tablesample then to trailing true union unique user
    using variadic verbose when where window with
    """.split()
)

_TYPE_NAMES: dict[str, str] = {
    StorageType.INTEGER.value: "INTEGER",
    StorageType.BOOLEAN.value: "BOOLEAN",
    StorageType.FLOAT.value: "DOUBLE PRECISION",
    StorageType.DATETIME.value: "TIMESTAMP(0) WITHOUT TIME ZONE",
    StorageType.TEXT.value: "TEXT",
}


def quote_identifier(name: str) -> str:
    """Quote an identifier unless it is a plain, non-reserved lower-case name.

    Example:
        >>> quote_identifier("id_foo")
        'id_foo'
        >>> quote_identifier("Order")
        '"Order"'
        >>> quote_identifier("order")
        '"order"'
    """
    if _PLAIN_IDENTIFIER.match(name) and name not in RESERVED_KEYWORDS:
        return name
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def qualified_table(schema_name: str, table_name: str) -> str:
    return f"{quote_identifier(schema_name)}.{quote_identifier(table_name)}"


def unsigned_constraint_name(table_name: str, column_name: str) -> str:
    return f"{table_name}_{column_name}_unsigned"


def render_column_type(column: ColumnSchema) -> str:
    """Render the SQL type of a column.

    Raises:
        ValueError: If the column's storage type is not a ``StorageType``.
    """
    storage_type = StorageType(column.storage_type).value
    if storage_type == StorageType.STRING.value:
        return f"VARCHAR({column.effective_length})"
    return _TYPE_NAMES[storage_type]


def render_unsigned_check(table_name: str, column_name: str) -> str:
    name = quote_identifier(unsigned_constraint_name(table_name, column_name))
    return f"CONSTRAINT {name} CHECK ({quote_identifier(column_name)} >= 0)"


def render_column_definition(table_name: str, column: ColumnSchema) -> str:
    """Render a full column definition for CREATE TABLE / ADD COLUMN.

    Example:
        >>> col = ColumnSchema(name="name", storage_type="string", nullable=False)
        >>> render_column_definition("foo", col)
        'name VARCHAR(255) NOT NULL'
    """
    parts = [quote_identifier(column.name), render_column_type(column)]
    if column.autoincrement:
        parts.append("GENERATED BY DEFAULT AS IDENTITY")
    if not column.nullable:
        parts.append("NOT NULL")
    if column.unsigned:
        parts.append(render_unsigned_check(table_name, column.name))
    return " ".join(parts)


def _column_list(columns: list[str]) -> str:
    return ", ".join(quote_identifier(column) for column in columns)


def create_table_sql(schema_name: str, table: TableSchema) -> str:
    """Render CREATE TABLE with columns, primary key and unique constraints inline."""
    elements = [render_column_definition(table.name, column) for column in table.columns]
    if table.primary_key:
        elements.append(f"PRIMARY KEY ({_column_list(table.primary_key)})")
    for index in table.unique_indexes:
        elements.append(
            f"CONSTRAINT {quote_identifier(index.name)} UNIQUE ({_column_list(index.columns)})"
        )
    body = ", ".join(elements)
    return f"CREATE TABLE IF NOT EXISTS {qualified_table(schema_name, table.name)} ({body});"


def add_column_sql(schema_name: str, table_name: str, column: ColumnSchema) -> str:
    definition = render_column_definition(table_name, column)
    return (
        f"ALTER TABLE {qualified_table(schema_name, table_name)} "
        f"ADD COLUMN IF NOT EXISTS {definition};"
    )


def alter_column_sql(
    schema_name: str,
    table_name: str,
    current: ColumnSchema,
    target: ColumnSchema,
) -> str | None:
    """Render the ALTER TABLE statement moving *current* to *target*.

    Only type/length, nullability and unsigned-ness are reconciled.

    Returns:
        The statement, or ``None`` if the columns already agree.
    """
    name = quote_identifier(target.name)
    clauses: list[str] = []

    if current.storage_type != target.storage_type or (
        current.effective_length != target.effective_length
    ):
        sql_type = render_column_type(target)
        clauses.append(f"ALTER COLUMN {name} TYPE {sql_type} USING {name}::{sql_type}")

    if current.nullable != target.nullable:
        clauses.append(
            f"ALTER COLUMN {name} DROP NOT NULL"
            if target.nullable
            else f"ALTER COLUMN {name} SET NOT NULL"
        )

    if bool(current.unsigned) != bool(target.unsigned):
        if target.unsigned:
            clauses.append(f"ADD {render_unsigned_check(table_name, target.name)}")
        else:
            constraint = quote_identifier(unsigned_constraint_name(table_name, target.name))
            clauses.append(f"DROP CONSTRAINT IF EXISTS {constraint}")

    if not clauses:
        return None
    return f"ALTER TABLE {qualified_table(schema_name, table_name)} {', '.join(clauses)};"


def create_unique_index_sql(schema_name: str, table_name: str, index: IndexSchema) -> str:
    return (
        f"CREATE UNIQUE INDEX IF NOT EXISTS {quote_identifier(index.name)} "
        f"ON {qualified_table(schema_name, table_name)} ({_column_list(index.columns)});"
    )
