"""Column filters that decide which columns take part in a comparison."""

import re
from typing import Any, Callable, Dict, Protocol

from sqlfixture.dataset.models import TableMetaData
from sqlfixture.exceptions import ConfigurationError


class ColumnFilter(Protocol):
    """Returns the metadata with the columns that should be compared."""

    def apply(self, metadata: TableMetaData) -> TableMetaData:
        ...


class ExcludeColumnsFilter:
    """Drops the named columns."""

    def __init__(self, *column_names: str):
        self.column_names = frozenset(name.lower() for name in column_names)

    def apply(self, metadata: TableMetaData) -> TableMetaData:
        return metadata.with_columns(
            column for column in metadata.columns if column.name.lower() not in self.column_names
        )

    def __repr__(self) -> str:
        return f"ExcludeColumnsFilter({sorted(self.column_names)!r})"


class IncludeColumnsFilter:
    """Keeps only the named columns."""

    def __init__(self, *column_names: str):
        self.column_names = frozenset(name.lower() for name in column_names)

    def apply(self, metadata: TableMetaData) -> TableMetaData:
        return metadata.with_columns(
            column for column in metadata.columns if column.name.lower() in self.column_names
        )

    def __repr__(self) -> str:
        return f"IncludeColumnsFilter({sorted(self.column_names)!r})"


class RegexColumnFilter:
    """Drops (or, with ``exclude=False``, keeps) columns matching a pattern."""

    def __init__(self, pattern: str, exclude: bool = True):
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.exclude = exclude

    def apply(self, metadata: TableMetaData) -> TableMetaData:
        return metadata.with_columns(
            column for column in metadata.columns
            if bool(self.pattern.fullmatch(column.name)) != self.exclude
        )

    def __repr__(self) -> str:
        return f"RegexColumnFilter({self.pattern.pattern!r}, exclude={self.exclude})"


class FilterRegistry:
    """Maps symbolic column filter names to factories."""

    def __init__(self) -> None:
        self._factories: Dict[str, Callable[[], ColumnFilter]] = {}

    def register(self, name: str, factory: Callable[[], ColumnFilter]) -> None:
        self._factories[name] = factory

    def create(self, name: str) -> ColumnFilter:
        """Instantiate the filter registered as ``name``.

        Raises:
            ConfigurationError: If no filter is registered under ``name``.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ConfigurationError(
                f"Unknown column filter '{name}'. Registered filters: {sorted(self._factories)}"
            )
        return factory()

    def resolve(self, column_filter: Any) -> ColumnFilter:
        """Return ``column_filter`` itself, or the registered filter when given a name."""
        if isinstance(column_filter, str):
            return self.create(column_filter)
        return column_filter
