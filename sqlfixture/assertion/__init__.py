"""Expected-versus-actual comparison of database contents."""

from sqlfixture.assertion.engine import (
    AssertionMode,
    ColumnDiff,
    ComparisonEngine,
    ComparisonResult,
    values_equal,
)
from sqlfixture.assertion.filters import (
    ColumnFilter,
    ExcludeColumnsFilter,
    FilterRegistry,
    IncludeColumnsFilter,
    RegexColumnFilter,
)

__all__ = [
    "AssertionMode",
    "ColumnDiff",
    "ComparisonEngine",
    "ComparisonResult",
    "values_equal",
    "ColumnFilter",
    "ExcludeColumnsFilter",
    "FilterRegistry",
    "IncludeColumnsFilter",
    "RegexColumnFilter",
]
