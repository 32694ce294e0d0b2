"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async PostgreSQL
adapter used to apply migration statements.

Usage:
    from module_upgrade.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from module_upgrade.adapters.base import DatabaseClient
from module_upgrade.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
]
