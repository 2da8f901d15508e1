"""Database adapters."""

from sqlfixture.db.adapters.postgresql import PostgreSQLAdapter
from sqlfixture.db.adapters.sqlite import SQLiteAdapter

__all__ = [
    "PostgreSQLAdapter",
    "SQLiteAdapter",
]
