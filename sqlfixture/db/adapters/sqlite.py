"""SQLite database adapter."""

from pathlib import Path
from typing import Any, Dict

from sqlalchemy.pool import StaticPool

from sqlfixture.config.models import DatabaseConfig
from sqlfixture.db.base import BaseAdapter
from sqlfixture.exceptions import DatabaseError

MEMORY_PATH = ":memory:"


class SQLiteAdapter(BaseAdapter):
    """SQLite database adapter.

    An in-memory database lives as long as the adapter: every connection
    shares the same underlying DBAPI connection.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize SQLite adapter."""
        super().__init__(config)

        if not self.config.path:
            raise DatabaseError("SQLite requires a database file path")

    @property
    def in_memory(self) -> bool:
        return self.config.path == MEMORY_PATH

    def build_connection_string(self) -> str:
        """Build SQLite connection string."""
        if self.in_memory:
            return "sqlite://"

        db_path = Path(self.config.path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)

        return f"sqlite:///{db_path}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        options: Dict[str, Any] = {
            'connect_args': {
                'check_same_thread': False,
                'timeout': self.config.options.get('timeout', 30),
            }
        }
        if self.in_memory:
            options['poolclass'] = StaticPool
        return options

    def truncate_statement(self, table_name: str) -> str:
        """SQLite has no TRUNCATE; an unqualified DELETE is truncated internally."""
        return f"DELETE FROM {self.quote_identifier(table_name)}"
