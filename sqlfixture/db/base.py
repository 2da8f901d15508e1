"""Base database adapter and connection management."""

import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

import pandas as pd
from sqlalchemy import MetaData, Table as SATable, create_engine, inspect, select, text
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import NoSuchTableError as SANoSuchTableError, SQLAlchemyError

from sqlfixture.config.models import DatabaseConfig
from sqlfixture.dataset.models import Column, Dataset, Table, TableMetaData
from sqlfixture.exceptions import DatabaseError, NoSuchTableError

logger = logging.getLogger(__name__)


class QueryResult:
    """Container for query results with metadata."""

    def __init__(
        self,
        data: Optional[pd.DataFrame] = None,
        rows_affected: Optional[int] = None,
        execution_time: Optional[float] = None,
        columns: Optional[List[str]] = None,
    ) -> None:
        """Initialize query result.

        Args:
            data: Result data as DataFrame.
            rows_affected: Number of rows affected by query.
            execution_time: Query execution time in seconds.
            columns: Column names for the result.
        """
        self.data = data
        self.rows_affected = rows_affected or 0
        self.execution_time = execution_time or 0.0
        self.columns = columns or []

    @property
    def row_count(self) -> int:
        """Get number of rows in result."""
        return len(self.data) if self.data is not None else 0


class BaseAdapter(ABC):
    """Base class for database adapters.

    Besides raw query execution an adapter exposes the database as datasets:
    single tables, query results and the whole schema.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize database adapter.

        Args:
            config: Database configuration.
        """
        self.config = config
        self._engine: Optional[Engine] = None
        self._metadata = MetaData()
        self._reflected: Dict[str, SATable] = {}

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build database connection string."""
        pass

    def get_engine(self) -> Engine:
        """Get or create SQLAlchemy engine.

        Raises:
            DatabaseError: If engine creation fails.
        """
        if self._engine is None:
            try:
                connection_string = self.build_connection_string()

                engine_args = {
                    'pool_pre_ping': True,
                    'echo': False,  # Set to True for SQL debugging
                }
                engine_args.update(self._get_engine_options())

                self._engine = create_engine(connection_string, **engine_args)

            except Exception as e:
                raise DatabaseError(
                    f"Failed to create database engine: {e}",
                    database_type=self.config.type.value,
                ) from e

        return self._engine

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get database-specific engine options."""
        return {}

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """Get database connection; commits on success and rolls back on error.

        Raises:
            DatabaseError: If the connection or a statement fails.
        """
        engine = self.get_engine()
        connection = None

        try:
            connection = engine.connect()
            yield connection
            connection.commit()

        except DatabaseError:
            self._rollback(connection)
            raise

        except SQLAlchemyError as e:
            self._rollback(connection)
            raise DatabaseError(f"Database connection error: {e}", database_type=self.config.type.value) from e

        finally:
            if connection is not None:
                connection.close()

    @staticmethod
    def _rollback(connection: Optional[Connection]) -> None:
        if connection is None:
            return
        try:
            connection.rollback()
        except SQLAlchemyError as e:
            logger.debug(f"Rollback failed: {e}")

    def test_connection(self) -> bool:
        """Test database connection.

        Raises:
            DatabaseError: If connection test fails.
        """
        with self.get_connection() as conn:
            conn.execute(text("SELECT 1 as test")).fetchone()
            return True

    def execute_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
        fetch_results: bool = True,
    ) -> QueryResult:
        """Execute SQL query and return results.

        Raises:
            DatabaseError: If query execution fails.
        """
        start_time = time.time()

        try:
            with self.get_connection() as conn:
                result = conn.execute(text(query), params or {})
                execution_time = time.time() - start_time

                if result.returns_rows and fetch_results:
                    rows = result.fetchall()
                    columns = list(result.keys())
                    df = pd.DataFrame([tuple(row) for row in rows], columns=columns, dtype=object)
                    return QueryResult(
                        data=df,
                        rows_affected=len(rows),
                        execution_time=execution_time,
                        columns=columns,
                    )

                rows_affected = result.rowcount if result.rowcount >= 0 else 0
                return QueryResult(rows_affected=rows_affected, execution_time=execution_time)

        except DatabaseError as e:
            execution_time = time.time() - start_time
            raise DatabaseError(
                f"Query execution failed after {execution_time:.2f}s: {e.message}",
                database_type=self.config.type.value,
            ) from e

    def execute_script(self, script: str, delimiter: str = ";") -> List[QueryResult]:
        """Execute a script of ``delimiter``-separated statements.

        Raises:
            DatabaseError: If a statement fails.
        """
        statements = [stmt.strip() for stmt in script.split(delimiter) if stmt.strip()]
        results = []

        for i, statement in enumerate(statements):
            try:
                results.append(self.execute_query(statement, fetch_results=False))
            except DatabaseError as e:
                raise DatabaseError(f"Script execution failed at statement {i + 1}: {e.message}") from e

        return results

    def get_table_names(self) -> List[str]:
        """Names of the tables in the database."""
        try:
            return inspect(self.get_engine()).get_table_names()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to list tables: {e}") from e

    def resolve_table_name(self, table_name: str) -> str:
        """Database spelling of ``table_name``, matched case-insensitively.

        Raises:
            NoSuchTableError: If the database has no such table.
        """
        names = self.get_table_names()
        if table_name in names:
            return table_name
        for name in names:
            if name.lower() == table_name.lower():
                return name
        raise NoSuchTableError(f"Table '{table_name}' does not exist. Available tables: {names}", table=table_name)

    def reflect_table(self, table_name: str) -> SATable:
        """SQLAlchemy table object for ``table_name``, reflected once per adapter."""
        cached = self._reflected.get(table_name.lower())
        if cached is not None:
            return cached
        name = self.resolve_table_name(table_name)
        try:
            if name in self._metadata.tables:
                sa_table = self._metadata.tables[name]
            else:
                sa_table = SATable(name, self._metadata, autoload_with=self.get_engine())
        except SANoSuchTableError as e:
            raise NoSuchTableError(f"Table '{table_name}' does not exist", table=table_name) from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to reflect table '{table_name}': {e}") from e
        self._reflected[table_name.lower()] = sa_table
        return sa_table

    def get_table_metadata(self, table_name: str) -> TableMetaData:
        """Column schema and primary key of ``table_name``."""
        sa_table = self.reflect_table(table_name)
        return TableMetaData(
            sa_table.name,
            tuple(Column(c.name, str(c.type), bool(c.nullable)) for c in sa_table.columns),
            tuple(c.name for c in sa_table.primary_key.columns),
        )

    def create_table(self, table_name: str) -> Table:
        """Current contents of ``table_name``, ordered by primary key."""
        sa_table = self.reflect_table(table_name)
        metadata = self.get_table_metadata(table_name)
        statement = select(sa_table)
        if metadata.primary_keys:
            statement = statement.order_by(*(sa_table.c[pk] for pk in metadata.primary_keys))

        with self.get_connection() as conn:
            rows = [tuple(row) for row in conn.execute(statement).fetchall()]

        frame = pd.DataFrame(rows, columns=metadata.get_column_names(), dtype=object)
        return Table(metadata, frame)

    def create_query_table(self, table_name: str, query: str) -> Table:
        """Result of ``query`` presented as a table called ``table_name``."""
        result = self.execute_query(query)
        metadata = TableMetaData.from_names(table_name, result.columns)
        return Table(metadata, result.data)

    def create_dataset(self) -> Dataset:
        """Every table of the database."""
        return Dataset(self.create_table(name) for name in self.get_table_names())

    def quote_identifier(self, identifier: str) -> str:
        return self.get_engine().dialect.identifier_preparer.quote(identifier)

    def truncate_statement(self, table_name: str) -> str:
        """SQL that removes every row of ``table_name``."""
        return f"TRUNCATE TABLE {self.quote_identifier(table_name)}"

    def close(self) -> None:
        """Close database connections and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
        self._metadata = MetaData()
        self._reflected.clear()
