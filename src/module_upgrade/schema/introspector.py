"""PostgreSQL schema introspection via information_schema.

This module queries the live database to build a ``SchemaSnapshot``:
- Tables, columns, normalized storage types, nullability, lengths
- Identity columns (reported as auto-increment)
- Primary keys
- Unique indexes (excluding the primary key)
- Unsigned columns (``CHECK (col >= 0)`` constraints)

Uses psycopg (v3) async connections.
"""

import re

import psycopg
from psycopg import AsyncConnection

from module_upgrade.schema.models import (
    ColumnSchema,
    IndexSchema,
    SchemaSnapshot,
    StorageType,
    TableSchema,
)

_UNSIGNED_CHECK = re.compile(
    r'^CHECK \(\(?"?(?P<column>[^"\s()]+)"? >= (?:0|\(0\)::[\w ]+)\)?\)$'
)


class SchemaIntrospector:
    """Introspects a PostgreSQL schema into a ``SchemaSnapshot``.

    Uses information_schema and pg_catalog.  Works with any PostgreSQL
    database (RDS, Supabase, local).

    Usage:
        async with SchemaIntrospector(database_url, schema_name="public") as introspector:
            snapshot = await introspector.introspect()
    """

    # Tables to exclude from introspection (system tables)
    EXCLUDED_TABLES_DEFAULT = {
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(
        self,
        database_url: str,
        schema_name: str = "public",
        excluded_tables: set[str] | None = None,
        connect_timeout: int = 10,
    ):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
            schema_name: PostgreSQL schema to introspect (default: public)
            excluded_tables: Tables to skip (default: EXCLUDED_TABLES_DEFAULT)
            connect_timeout: Connection timeout in seconds
        """
        self._database_url = database_url
        self._schema_name = schema_name
        self._excluded_tables = (
            set(self.EXCLUDED_TABLES_DEFAULT) if excluded_tables is None else set(excluded_tables)
        )
        self._connect_timeout = connect_timeout
        self._conn: AsyncConnection | None = None

    async def __aenter__(self) -> "SchemaIntrospector":
        """Async context manager entry - opens connection."""
        url = self._database_url
        if "connect_timeout" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}connect_timeout={self._connect_timeout}"

        self._conn = await AsyncConnection.connect(url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - closes connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_connection(self) -> AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    async def test_connection(self) -> bool:
        """Run ``SELECT 1`` on the open connection.

        Raises:
            RuntimeError: If not connected.
            ConnectionError: If the query fails.
        """
        conn = self._require_connection()
        try:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                row = await cur.fetchone()
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e
        return row is not None and row[0] == 1

    async def introspect(self) -> SchemaSnapshot:
        """Introspect the configured schema.

        Returns:
            SchemaSnapshot keyed by ``"<schema>.<table>"``.
        """
        self._require_connection()
        schema_name = self._schema_name
        tables: dict[str, TableSchema] = {}

        for table_name in await self._get_tables():
            if table_name in self._excluded_tables:
                continue

            unsigned_columns = await self._get_unsigned_columns(table_name)
            columns = [
                column.model_copy(update={"unsigned": column.name in unsigned_columns})
                for column in await self._get_columns(table_name)
            ]

            tables[f"{schema_name}.{table_name}"] = TableSchema(
                name=table_name,
                columns=columns,
                primary_key=await self._get_primary_key(table_name),
                unique_indexes=await self._get_unique_indexes(table_name),
            )

        return SchemaSnapshot(schema_name=schema_name, tables=tables)

    async def _fetchall(self, query: str, params: tuple) -> list[tuple]:
        conn = self._require_connection()
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()

    async def _get_tables(self) -> list[str]:
        """Get all base table names in schema."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        rows = await self._fetchall(query, (self._schema_name,))
        return [row[0] for row in rows]

    async def _get_columns(self, table_name: str) -> list[ColumnSchema]:
        """Get columns for a table in ordinal order."""
        query = """
            SELECT
                column_name,
                data_type,
                is_nullable,
                character_maximum_length,
                is_identity,
                column_default
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
        """
        rows = await self._fetchall(query, (self._schema_name, table_name))
        columns = []
        for col_name, data_type, is_nullable, max_length, is_identity, default in rows:
            storage_type = self._normalize_data_type(data_type)
            columns.append(
                ColumnSchema(
                    name=col_name,
                    storage_type=storage_type,
                    nullable=(is_nullable == "YES"),
                    length=max_length if storage_type == StorageType.STRING else None,
                    autoincrement=(
                        is_identity == "YES"
                        or (default or "").startswith("nextval(")
                    ),
                )
            )
        return columns

    def _normalize_data_type(self, data_type: str) -> str:
        """Normalize PostgreSQL data type names to storage types.

        Types without a storage type are returned lower-cased as-is.
        """
        type_map = {
            "smallint": StorageType.INTEGER,
            "integer": StorageType.INTEGER,
            "bigint": StorageType.INTEGER,
            "boolean": StorageType.BOOLEAN,
            "character varying": StorageType.STRING,
            "character": StorageType.STRING,
            "real": StorageType.FLOAT,
            "double precision": StorageType.FLOAT,
            "numeric": StorageType.FLOAT,
            "timestamp without time zone": StorageType.DATETIME,
            "timestamp with time zone": StorageType.DATETIME,
            "date": StorageType.DATETIME,
            "text": StorageType.TEXT,
        }
        normalized = data_type.lower()
        storage_type = type_map.get(normalized)
        return storage_type.value if storage_type else normalized

    async def _get_primary_key(self, table_name: str) -> list[str]:
        """Get primary key columns in key order."""
        query = """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            WHERE tc.table_schema = %s
              AND tc.table_name = %s
              AND tc.constraint_type = 'PRIMARY KEY'
            ORDER BY kcu.ordinal_position
        """
        rows = await self._fetchall(query, (self._schema_name, table_name))
        return [row[0] for row in rows]

    async def _get_unique_indexes(self, table_name: str) -> list[IndexSchema]:
        """Get unique indexes for a table (excluding primary key)."""
        query = """
            SELECT
                i.relname AS index_name,
                array_agg(a.attname ORDER BY x.ordinality) AS columns
            FROM pg_index ix
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN LATERAL unnest(ix.indkey) WITH ORDINALITY AS x(attnum, ordinality) ON TRUE
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = x.attnum
            WHERE n.nspname = %s
              AND t.relname = %s
              AND ix.indisunique
              AND NOT ix.indisprimary
            GROUP BY i.relname
            ORDER BY i.relname
        """
        rows = await self._fetchall(query, (self._schema_name, table_name))
        return [IndexSchema(name=name, columns=list(columns)) for name, columns in rows]

    async def _get_unsigned_columns(self, table_name: str) -> set[str]:
        """Get columns guarded by a ``CHECK (col >= 0)`` constraint."""
        query = """
            SELECT pg_get_constraintdef(c.oid)
            FROM pg_constraint c
            JOIN pg_class t ON t.oid = c.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE n.nspname = %s
              AND t.relname = %s
              AND c.contype = 'c'
        """
        rows = await self._fetchall(query, (self._schema_name, table_name))
        unsigned = set()
        for (definition,) in rows:
            match = _UNSIGNED_CHECK.match(definition)
            if match:
                unsigned.add(match.group("column"))
        return unsigned
