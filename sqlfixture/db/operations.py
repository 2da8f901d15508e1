"""
Database operations applied with fixture datasets.

Each operation works table by table on SQLAlchemy Core statements inside one
transaction. Inserting operations follow the dataset's table order; deleting
operations walk it in reverse so child tables are emptied before parents.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from sqlalchemy import Table as SATable, and_, text
from sqlalchemy.engine import Connection

from sqlfixture.dataset.models import Dataset, Table
from sqlfixture.db.base import BaseAdapter
from sqlfixture.exceptions import DatabaseError, UnsupportedOperationError

logger = logging.getLogger(__name__)


class DatabaseOperation(str, Enum):
    """Operations that setup and teardown directives can request."""
    UPDATE = "update"
    INSERT = "insert"
    REFRESH = "refresh"
    DELETE = "delete"
    DELETE_ALL = "delete_all"
    TRUNCATE_TABLE = "truncate_table"
    CLEAN_INSERT = "clean_insert"
    NONE = "none"


class OperationExecutor(ABC):
    """Applies a dataset to a database connection."""

    def execute(self, adapter: BaseAdapter, dataset: Dataset) -> None:
        """Run the operation in a single transaction."""
        # Reflection must not run inside the operation's transaction
        for table in dataset:
            adapter.reflect_table(table.table_name)
        with adapter.get_connection() as conn:
            self.execute_in(conn, adapter, dataset)

    @abstractmethod
    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        """Run the operation on an open connection."""


class NoneOperation(OperationExecutor):
    """Leaves the database untouched."""

    def execute(self, adapter: BaseAdapter, dataset: Dataset) -> None:
        return None

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        return None


class InsertOperation(OperationExecutor):
    """Inserts every row of the dataset."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in dataset:
            sa_table = adapter.reflect_table(table.table_name)
            records = _map_records(sa_table, table)
            if records:
                conn.execute(sa_table.insert(), records)
                logger.debug(f"Inserted {len(records)} row(s) into {sa_table.name}")


class DeleteAllOperation(OperationExecutor):
    """Deletes all rows of every table named in the dataset."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in reversed(dataset.get_tables()):
            sa_table = adapter.reflect_table(table.table_name)
            conn.execute(sa_table.delete())


class TruncateTableOperation(OperationExecutor):
    """Truncates every table named in the dataset."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in reversed(dataset.get_tables()):
            name = adapter.reflect_table(table.table_name).name
            conn.execute(text(adapter.truncate_statement(name)))


class DeleteOperation(OperationExecutor):
    """Deletes the dataset's rows, matched by primary key."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in reversed(dataset.get_tables()):
            sa_table = adapter.reflect_table(table.table_name)
            for record in _map_records(sa_table, table):
                conn.execute(sa_table.delete().where(_primary_key_clause(sa_table, record)))


class UpdateOperation(OperationExecutor):
    """Updates the dataset's rows, matched by primary key."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in dataset:
            sa_table = adapter.reflect_table(table.table_name)
            for record in _map_records(sa_table, table):
                _update_row(conn, sa_table, record)


class RefreshOperation(OperationExecutor):
    """Updates rows that exist and inserts the others."""

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for table in dataset:
            sa_table = adapter.reflect_table(table.table_name)
            for record in _map_records(sa_table, table):
                if _update_row(conn, sa_table, record) == 0:
                    conn.execute(sa_table.insert(), [record])


class CompositeOperation(OperationExecutor):
    """Runs several operations in one transaction."""

    def __init__(self, *operations: OperationExecutor):
        self.operations = operations

    def execute_in(self, conn: Connection, adapter: BaseAdapter, dataset: Dataset) -> None:
        for operation in self.operations:
            operation.execute_in(conn, adapter, dataset)


class DatabaseOperationLookup:
    """Maps database operations to their executors."""

    def __init__(self, executors: Optional[Mapping[DatabaseOperation, OperationExecutor]] = None):
        if executors is None:
            executors = {
                DatabaseOperation.UPDATE: UpdateOperation(),
                DatabaseOperation.INSERT: InsertOperation(),
                DatabaseOperation.REFRESH: RefreshOperation(),
                DatabaseOperation.DELETE: DeleteOperation(),
                DatabaseOperation.DELETE_ALL: DeleteAllOperation(),
                DatabaseOperation.TRUNCATE_TABLE: TruncateTableOperation(),
                DatabaseOperation.CLEAN_INSERT: CompositeOperation(DeleteAllOperation(), InsertOperation()),
                DatabaseOperation.NONE: NoneOperation(),
            }
        self._executors: Dict[DatabaseOperation, OperationExecutor] = dict(executors)

    def register(self, operation: DatabaseOperation, executor: OperationExecutor) -> None:
        self._executors[operation] = executor

    def get(self, operation: DatabaseOperation) -> OperationExecutor:
        """Executor for ``operation``.

        Raises:
            UnsupportedOperationError: If no executor is registered.
        """
        executor = self._executors.get(operation)
        if executor is None:
            raise UnsupportedOperationError(
                f"The database operation {operation} is not supported",
                operation=operation,
            )
        return executor


def _map_records(sa_table: SATable, table: Table) -> List[Dict[str, Any]]:
    """Dataset rows keyed by the database's column names."""
    columns = {column.name.lower(): column.name for column in sa_table.columns}
    mapping = {}
    for name in table.metadata.get_column_names():
        if name.lower() not in columns:
            raise DatabaseError(f"Column '{name}' does not exist in table '{sa_table.name}'")
        mapping[name] = columns[name.lower()]

    return [
        {mapping[name]: _coerce(sa_table.c[mapping[name]], value) for name, value in record.items()}
        for record in table.to_records()
    ]


def _coerce(column, value: Any) -> Any:
    """Parse textual dates for date and time columns; other values pass through."""
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is datetime:
        return pd.Timestamp(value).to_pydatetime()
    if python_type is date:
        return pd.Timestamp(value).date()
    if python_type is time:
        return time.fromisoformat(value)
    return value


def _primary_key_clause(sa_table: SATable, record: Mapping[str, Any]):
    primary_keys = [column.name for column in sa_table.primary_key.columns]
    if not primary_keys:
        raise DatabaseError(f"Table '{sa_table.name}' has no primary key")
    missing = [pk for pk in primary_keys if pk not in record]
    if missing:
        raise DatabaseError(f"Dataset rows for '{sa_table.name}' lack primary key column(s) {missing}")
    return and_(*(sa_table.c[pk] == record[pk] for pk in primary_keys))


def _update_row(conn: Connection, sa_table: SATable, record: Mapping[str, Any]) -> int:
    primary_keys = {column.name for column in sa_table.primary_key.columns}
    values = {name: value for name, value in record.items() if name not in primary_keys}
    clause = _primary_key_clause(sa_table, record)
    if not values:
        # Nothing to update; report whether the row exists
        existing = conn.execute(sa_table.select().where(clause)).first()
        return 0 if existing is None else 1
    return conn.execute(sa_table.update().where(clause).values(values)).rowcount
