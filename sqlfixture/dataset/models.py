"""
In-memory dataset model used for fixtures and expectations.

A dataset is an ordered collection of named tables. Each table carries its
column metadata and its rows as a pandas DataFrame of plain Python objects.
Table and column names are matched case-insensitively.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from sqlfixture.config.models import CompositionStrategy
from sqlfixture.exceptions import NoSuchTableError


def is_null(value: Any) -> bool:
    """Return True for None, NaN, NaT and pandas NA."""
    if value is None:
        return True
    try:
        result = pd.isna(value)
    except (TypeError, ValueError):
        return False
    return bool(result) if pd.api.types.is_scalar(result) else False


@dataclass(frozen=True)
class Column:
    """A single column of a table."""
    name: str
    data_type: str = "UNKNOWN"
    nullable: bool = True


@dataclass(frozen=True)
class TableMetaData:
    """Ordered column schema of a table."""
    table_name: str
    columns: Tuple[Column, ...] = ()
    primary_keys: Tuple[str, ...] = ()

    @classmethod
    def from_names(cls, table_name: str, column_names: Iterable[str],
                   primary_keys: Iterable[str] = ()) -> "TableMetaData":
        """Build metadata for columns of unknown type."""
        return cls(table_name, tuple(Column(name) for name in column_names), tuple(primary_keys))

    def get_column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def get_column_index(self, name: str) -> int:
        """Position of ``name`` in the schema.

        Raises:
            KeyError: If the table has no such column.
        """
        lowered = name.lower()
        for index, column in enumerate(self.columns):
            if column.name.lower() == lowered:
                return index
        raise KeyError(f"Column '{name}' not found in table '{self.table_name}'")

    def has_column(self, name: str) -> bool:
        lowered = name.lower()
        return any(column.name.lower() == lowered for column in self.columns)

    def get_column(self, name: str) -> Column:
        return self.columns[self.get_column_index(name)]

    def with_columns(self, columns: Iterable[Column]) -> "TableMetaData":
        """Copy of this metadata restricted to ``columns``."""
        columns = tuple(columns)
        kept = {column.name.lower() for column in columns}
        return TableMetaData(
            self.table_name,
            columns,
            tuple(pk for pk in self.primary_keys if pk.lower() in kept),
        )


class Table:
    """A named table: metadata plus rows held in a DataFrame."""

    def __init__(self, metadata: TableMetaData, rows: Optional[pd.DataFrame] = None):
        self.metadata = metadata
        names = metadata.get_column_names()
        if rows is None:
            rows = pd.DataFrame(columns=names)
        else:
            rows = rows.reindex(columns=names)
        # Object dtype keeps ints as ints and nulls as None
        rows = rows.astype(object)
        self._rows = rows.where(pd.notna(rows), None).reset_index(drop=True)

    @classmethod
    def from_records(cls, table_name: str, records: Sequence[Mapping[str, Any]],
                     columns: Optional[Sequence[str]] = None,
                     primary_keys: Iterable[str] = ()) -> "Table":
        """Build a table from row mappings; columns default to first-seen key order."""
        if columns is None:
            seen: Dict[str, str] = {}
            for record in records:
                for key in record:
                    seen.setdefault(key.lower(), key)
            columns = list(seen.values())
        metadata = TableMetaData.from_names(table_name, columns, primary_keys)
        frame = pd.DataFrame(list(records), columns=list(columns), dtype=object)
        return cls(metadata, frame)

    @property
    def table_name(self) -> str:
        return self.metadata.table_name

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> pd.DataFrame:
        """Copy of the row data."""
        return self._rows.copy()

    def get_value(self, row: int, column: str) -> Any:
        """Cell value at ``row`` for ``column``; nulls come back as None."""
        if row < 0 or row >= self.row_count:
            raise IndexError(f"Row {row} out of range for table '{self.table_name}' ({self.row_count} rows)")
        index = self.metadata.get_column_index(column)
        value = self._rows.iat[row, index]
        return None if is_null(value) else value

    def to_records(self) -> List[Dict[str, Any]]:
        """Rows as dictionaries keyed by column name."""
        names = self.metadata.get_column_names()
        return [
            {name: self.get_value(row, name) for name in names}
            for row in range(self.row_count)
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return (
            self.table_name.lower() == other.table_name.lower()
            and [n.lower() for n in self.metadata.get_column_names()]
            == [n.lower() for n in other.metadata.get_column_names()]
            and [list(r.values()) for r in self.to_records()]
            == [list(r.values()) for r in other.to_records()]
        )

    def __repr__(self) -> str:
        return (f"Table(name={self.table_name!r}, columns={self.metadata.get_column_names()!r}, "
                f"rows={self.row_count})")


class Dataset:
    """Ordered collection of tables addressed by name."""

    def __init__(self, tables: Iterable[Table] = ()):
        self._tables: Dict[str, Table] = {}
        for table in tables:
            key = table.table_name.lower()
            if key in self._tables:
                raise ValueError(f"Duplicate table '{table.table_name}' in dataset")
            self._tables[key] = table

    @classmethod
    def from_dict(cls, data: Mapping[str, Sequence[Mapping[str, Any]]]) -> "Dataset":
        """Build a dataset from ``{table_name: [row, ...]}``."""
        return cls(Table.from_records(name, rows or []) for name, rows in data.items())

    def get_table_names(self) -> List[str]:
        return [table.table_name for table in self._tables.values()]

    def get_tables(self) -> List[Table]:
        return list(self._tables.values())

    def has_table(self, name: str) -> bool:
        return name.lower() in self._tables

    def get_table(self, name: str) -> Table:
        """Table called ``name``.

        Raises:
            NoSuchTableError: If the dataset has no such table.
        """
        try:
            return self._tables[name.lower()]
        except KeyError:
            raise NoSuchTableError(
                f"Table '{name}' not found in dataset. Available tables: {self.get_table_names()}",
                table=name,
            ) from None

    def get_table_metadata(self, name: str) -> TableMetaData:
        return self.get_table(name).metadata

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {table.table_name: table.to_records() for table in self._tables.values()}

    def __iter__(self) -> Iterator[Table]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self.get_tables() == other.get_tables()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tables={self.get_table_names()!r})"


class CompositeDataset(Dataset):
    """Several datasets presented as one.

    With ``FIRST_WINS`` the first declared table of a name is kept and later
    same-named tables are dropped. With ``MERGE`` the rows of same-named tables
    are concatenated in declaration order and their columns unioned.
    """

    def __init__(self, datasets: Sequence[Dataset],
                 strategy: CompositionStrategy = CompositionStrategy.FIRST_WINS):
        self.strategy = CompositionStrategy(strategy)
        self.datasets = tuple(datasets)
        composed: Dict[str, Table] = {}
        for dataset in self.datasets:
            for table in dataset:
                key = table.table_name.lower()
                if key not in composed:
                    composed[key] = table
                elif self.strategy == CompositionStrategy.MERGE:
                    composed[key] = _merge_tables(composed[key], table)
        super().__init__(composed.values())


def _merge_tables(first: Table, second: Table) -> Table:
    columns = list(first.metadata.columns)
    for column in second.metadata.columns:
        if not first.metadata.has_column(column.name):
            columns.append(column)
    metadata = first.metadata.with_columns(columns)
    names = metadata.get_column_names()
    records = []
    for table in (first, second):
        for record in table.to_records():
            lowered = {key.lower(): value for key, value in record.items()}
            records.append({name: lowered.get(name.lower()) for name in names})
    frame = pd.DataFrame(records, columns=names, dtype=object)
    return Table(metadata, frame)
