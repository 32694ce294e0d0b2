"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that statement executors rely on.
All methods are ``async def`` -- the library is async-first.

Usage:
    from module_upgrade.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        await client.execute("CREATE UNIQUE INDEX IF NOT EXISTS foo_key ON foo (name)")
        await client.close()
"""

from typing import Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    All methods are async -- callers must ``await`` every operation.
    """

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a raw SQL statement (DDL or other non-query operations).

        Each call is committed on its own; there is no transaction
        spanning several calls.

        Args:
            sql: Raw SQL statement to execute.
            params: Optional dict of named parameters for the SQL statement.

        Raises:
            NotImplementedError: If the adapter does not support DDL.

        Example:
            await client.execute(
                "ALTER TABLE foo ADD COLUMN IF NOT EXISTS name VARCHAR(255)"
            )
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
