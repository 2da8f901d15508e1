"""Database connection registry and adapter factory."""

import logging
from typing import Dict, List, Optional, Type

from sqlfixture.config.models import DatabaseConfig, DatabaseType, SQLFixtureConfig
from sqlfixture.db.base import BaseAdapter
from sqlfixture.db.adapters.postgresql import PostgreSQLAdapter
from sqlfixture.db.adapters.sqlite import SQLiteAdapter
from sqlfixture.exceptions import DatabaseError, UnknownConnectionError


#: Connection identifier that selects the default database.
DEFAULT_CONNECTION = ""


class AdapterFactory:
    """Factory for creating database adapters."""

    _adapters: Dict[DatabaseType, Type[BaseAdapter]] = {
        DatabaseType.POSTGRESQL: PostgreSQLAdapter,
        DatabaseType.SQLITE: SQLiteAdapter,
    }

    @classmethod
    def create_adapter(cls, config: DatabaseConfig) -> BaseAdapter:
        """Create a database adapter based on configuration.

        Raises:
            DatabaseError: If database type is not supported.
        """
        adapter_class = cls._adapters.get(config.type)
        if not adapter_class:
            supported_types = list(cls._adapters.keys())
            raise DatabaseError(
                f"Unsupported database type: {config.type}. "
                f"Supported types: {supported_types}"
            )

        return adapter_class(config)

    @classmethod
    def register_adapter(cls, db_type: DatabaseType, adapter_class: Type[BaseAdapter]) -> None:
        """Register a custom database adapter."""
        cls._adapters[db_type] = adapter_class

    @classmethod
    def get_supported_types(cls) -> List[DatabaseType]:
        """Get list of supported database types."""
        return list(cls._adapters.keys())


class ConnectionManager:
    """Named database connections owned by one test execution.

    Adapters are created on first use and cached until ``close_all``. Managers
    must not be shared between tests running concurrently.
    """

    def __init__(
        self,
        config: Optional[SQLFixtureConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Initialize connection manager.

        Args:
            config: SQLFixture configuration; may be omitted when adapters are
                registered directly.
            logger: Logger for connection lifecycle messages.
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self._adapters: Dict[str, BaseAdapter] = {}
        self._registered: Dict[str, BaseAdapter] = {}
        self._factory = AdapterFactory()

    @property
    def default_connection(self) -> Optional[str]:
        """Name of the connection selected by an empty identifier."""
        if self.config is not None and self.config.default_database:
            return self.config.default_database
        return next(iter(self._registered), None)

    @property
    def connection_ids(self) -> List[str]:
        names = list(self._registered)
        if self.config is not None:
            names.extend(name for name in self.config.databases if name not in self._registered)
        return names

    def register(self, connection_id: str, adapter: BaseAdapter) -> None:
        """Register a ready-made adapter under ``connection_id``."""
        if not connection_id:
            raise ValueError("Connection identifier must not be empty")
        self._registered[connection_id] = adapter

    def has_connection(self, connection_id: Optional[str] = None) -> bool:
        name = connection_id or self.default_connection
        return name is not None and name in self.connection_ids

    def get(self, connection_id: Optional[str] = DEFAULT_CONNECTION) -> BaseAdapter:
        """Adapter for ``connection_id``; the empty identifier selects the default.

        Raises:
            UnknownConnectionError: If no such connection is declared.
            DatabaseError: If the adapter cannot be created.
        """
        name = connection_id or self.default_connection
        if not name or name not in self.connection_ids:
            raise UnknownConnectionError(
                f"Unable to find connection named '{connection_id}'. "
                f"Available connections: {self.connection_ids}",
                connection_id=connection_id,
                available=self.connection_ids,
            )

        if name in self._adapters:
            return self._adapters[name]

        if name in self._registered:
            adapter = self._registered[name]
        else:
            try:
                adapter = self._factory.create_adapter(self.config.databases[name])
            except DatabaseError:
                raise
            except Exception as e:
                raise DatabaseError(f"Failed to create adapter for database '{name}': {e}") from e

        self.logger.debug(f"Opened connection '{name}'")
        self._adapters[name] = adapter
        return adapter

    def close_all(self) -> None:
        """Close every opened connection. Calling it again is a no-op.

        Raises:
            DatabaseError: If closing a connection failed; the remaining
                connections are still closed.
        """
        errors = []
        while self._adapters:
            name, adapter = self._adapters.popitem()
            try:
                adapter.close()
                self.logger.debug(f"Closed connection '{name}'")
            except Exception as e:
                self.logger.warning(f"Failed to close connection '{name}': {e}")
                errors.append(e)

        if errors:
            raise DatabaseError(
                f"Failed to close {len(errors)} connection(s): {errors[0]}",
                details={'errors': [str(e) for e in errors]},
            ) from errors[0]

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_all()
