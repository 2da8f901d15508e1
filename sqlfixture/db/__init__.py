"""Database connectivity, datasets from databases and fixture operations."""

from sqlfixture.db.base import BaseAdapter, QueryResult
from sqlfixture.db.connection import (
    DEFAULT_CONNECTION,
    AdapterFactory,
    ConnectionManager,
)
from sqlfixture.db.adapters import (
    PostgreSQLAdapter,
    SQLiteAdapter,
)
from sqlfixture.db.operations import (
    DatabaseOperation,
    DatabaseOperationLookup,
    OperationExecutor,
)

__all__ = [
    # Base classes
    "BaseAdapter",
    "QueryResult",
    # Connection management
    "DEFAULT_CONNECTION",
    "AdapterFactory",
    "ConnectionManager",
    # Database adapters
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    # Operations
    "DatabaseOperation",
    "DatabaseOperationLookup",
    "OperationExecutor",
]
