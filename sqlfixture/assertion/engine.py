"""Comparison engine for expected versus actual database contents.

Two policies are supported:

- ``STRICT``: both tables must expose the same columns (after removing the
  columns dropped by column filters) with the same values row by row.
- ``NON_STRICT``: columns that exist only in the actual table are ignored, so
  an expectation only has to declare the columns it cares about. With column
  filters the ignore set is the union, over all filters, of the actual-only
  columns left after filtering the expected metadata.

Dataset comparison walks the expected dataset's tables only; tables present
only in the actual dataset are never examined.
"""
import logging
import numbers
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

from sqlfixture.assertion.filters import ColumnFilter
from sqlfixture.dataset.models import Dataset, Table, TableMetaData, is_null
from sqlfixture.exceptions import AssertionMismatchError

logger = logging.getLogger(__name__)


class AssertionMode(str, Enum):
    """Comparison policy for expected datasets."""
    STRICT = "strict"
    NON_STRICT = "non_strict"


@dataclass(frozen=True)
class ColumnDiff:
    """Columns present on only one side of two table schemas."""
    expected_only: Tuple[str, ...] = ()
    actual_only: Tuple[str, ...] = ()

    @classmethod
    def compute(cls, expected: TableMetaData, actual: TableMetaData) -> "ColumnDiff":
        expected_names = {name.lower() for name in expected.get_column_names()}
        actual_names = {name.lower() for name in actual.get_column_names()}
        return cls(
            expected_only=tuple(n for n in expected.get_column_names() if n.lower() not in actual_names),
            actual_only=tuple(n for n in actual.get_column_names() if n.lower() not in expected_names),
        )

    @property
    def has_difference(self) -> bool:
        return bool(self.expected_only or self.actual_only)


@dataclass
class ComparisonResult:
    """Outcome of a table or dataset comparison."""
    passed: bool
    message: str = ""
    table: Optional[str] = None
    column: Optional[str] = None
    row: Optional[int] = None
    expected: Any = None
    actual: Any = None
    column_diff: ColumnDiff = field(default_factory=ColumnDiff)
    ignored_columns: Tuple[str, ...] = ()

    def raise_for_mismatch(self) -> None:
        """Raise AssertionMismatchError when the comparison failed."""
        if self.passed:
            return
        raise AssertionMismatchError(
            self.message,
            table=self.table,
            column=self.column,
            row=self.row,
            expected=self.expected,
            actual=self.actual,
            details={
                'expected_only_columns': list(self.column_diff.expected_only),
                'actual_only_columns': list(self.column_diff.actual_only),
                'ignored_columns': list(self.ignored_columns),
            },
        )


def values_equal(expected: Any, actual: Any) -> bool:
    """Compare cells loosely: flat files carry text, databases return typed values."""
    if is_null(expected) or is_null(actual):
        return is_null(expected) and is_null(actual)
    try:
        if bool(expected == actual):
            return True
    except (TypeError, ValueError):
        logger.debug(f"Values {expected!r} and {actual!r} are not directly comparable")
    if str(expected) == str(actual):
        return True
    # Text on both sides must match exactly; numeric parsing needs a typed number
    if not (_is_number(expected) or _is_number(actual)):
        return False
    try:
        return Decimal(str(expected)) == Decimal(str(actual))
    except (InvalidOperation, ValueError):
        return False


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


class ComparisonEngine:
    """Compares expected tables and datasets against actual ones."""

    def compare_tables(self,
                       expected: Table,
                       actual: Table,
                       mode: AssertionMode = AssertionMode.STRICT,
                       column_filters: Sequence[ColumnFilter] = ()) -> ComparisonResult:
        """Compare two tables under ``mode``."""
        mode = AssertionMode(mode)
        ignored = self.get_columns_to_ignore(expected.metadata, actual.metadata, mode, column_filters)
        return self._compare_ignoring(expected, actual, ignored)

    def compare_datasets(self,
                         expected: Dataset,
                         actual: Dataset,
                         mode: AssertionMode = AssertionMode.STRICT,
                         column_filters: Sequence[ColumnFilter] = ()) -> ComparisonResult:
        """Compare every table declared in ``expected`` against ``actual``."""
        for table_name in expected.get_table_names():
            expected_table = expected.get_table(table_name)
            if not actual.has_table(table_name):
                return self.missing_table(table_name, actual.get_table_names())
            result = self.compare_tables(expected_table, actual.get_table(table_name), mode, column_filters)
            if not result.passed:
                return result
        return ComparisonResult(passed=True)

    def missing_table(self, table_name: str, available: Sequence[str]) -> ComparisonResult:
        """Failed result for an expected table the actual side does not have."""
        return ComparisonResult(
            passed=False,
            message=f"Expected table '{table_name}' not found in actual dataset",
            table=table_name,
            expected=table_name,
            actual=list(available),
        )

    def assert_tables(self, expected: Table, actual: Table,
                      mode: AssertionMode = AssertionMode.STRICT,
                      column_filters: Sequence[ColumnFilter] = ()) -> None:
        """Raise AssertionMismatchError unless the tables match."""
        self.compare_tables(expected, actual, mode, column_filters).raise_for_mismatch()

    def assert_datasets(self, expected: Dataset, actual: Dataset,
                        mode: AssertionMode = AssertionMode.STRICT,
                        column_filters: Sequence[ColumnFilter] = ()) -> None:
        """Raise AssertionMismatchError unless the datasets match."""
        self.compare_datasets(expected, actual, mode, column_filters).raise_for_mismatch()

    def get_columns_to_ignore(self,
                              expected: TableMetaData,
                              actual: TableMetaData,
                              mode: AssertionMode,
                              column_filters: Sequence[ColumnFilter] = ()) -> List[str]:
        """Names of the columns left out of the comparison."""
        ignored: List[str] = []

        if mode == AssertionMode.NON_STRICT:
            if not column_filters:
                return list(ColumnDiff.compute(expected, actual).actual_only)
            for column_filter in column_filters:
                filtered = column_filter.apply(expected)
                _extend_unique(ignored, ColumnDiff.compute(filtered, actual).actual_only)
            return ignored

        for column_filter in column_filters:
            for metadata in (expected, actual):
                kept = {name.lower() for name in column_filter.apply(metadata).get_column_names()}
                _extend_unique(ignored, (n for n in metadata.get_column_names() if n.lower() not in kept))
        return ignored

    def _compare_ignoring(self, expected: Table, actual: Table, ignored: Iterable[str]) -> ComparisonResult:
        ignored = tuple(ignored)
        ignored_set: Set[str] = {name.lower() for name in ignored}
        table_name = expected.table_name

        # Two empty tables match whatever their columns
        if expected.row_count == 0 and actual.row_count == 0:
            return ComparisonResult(passed=True, ignored_columns=ignored)

        if expected.row_count != actual.row_count:
            return ComparisonResult(
                passed=False,
                message=(f"Row count mismatch for table '{table_name}': "
                         f"expected {expected.row_count}, actual {actual.row_count}"),
                table=table_name,
                expected=expected.row_count,
                actual=actual.row_count,
                ignored_columns=ignored,
            )

        expected_md = expected.metadata.with_columns(
            c for c in expected.metadata.columns if c.name.lower() not in ignored_set
        )
        actual_md = actual.metadata.with_columns(
            c for c in actual.metadata.columns if c.name.lower() not in ignored_set
        )
        diff = ColumnDiff.compute(expected_md, actual_md)
        if diff.has_difference:
            column = (diff.expected_only or diff.actual_only)[0]
            return ComparisonResult(
                passed=False,
                message=(f"Column mismatch for table '{table_name}': "
                         f"expected-only {list(diff.expected_only)}, actual-only {list(diff.actual_only)}"),
                table=table_name,
                column=column,
                expected=expected_md.get_column_names(),
                actual=actual_md.get_column_names(),
                column_diff=diff,
                ignored_columns=ignored,
            )

        for row in range(expected.row_count):
            for column in expected_md.get_column_names():
                expected_value = expected.get_value(row, column)
                actual_value = actual.get_value(row, column)
                if not values_equal(expected_value, actual_value):
                    return ComparisonResult(
                        passed=False,
                        message=(f"Value mismatch in table '{table_name}', row {row}, column '{column}': "
                                 f"expected {expected_value!r}, actual {actual_value!r}"),
                        table=table_name,
                        column=column,
                        row=row,
                        expected=expected_value,
                        actual=actual_value,
                        ignored_columns=ignored,
                    )

        return ComparisonResult(passed=True, ignored_columns=ignored)


def _extend_unique(target: List[str], names: Iterable[str]) -> None:
    seen = {name.lower() for name in target}
    for name in names:
        if name.lower() not in seen:
            seen.add(name.lower())
            target.append(name)
