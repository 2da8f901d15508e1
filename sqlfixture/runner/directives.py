"""
Directive definitions for dataset-driven setup, teardown and expectations.

Directives are immutable descriptions attached to test classes and test
functions through the decorators in ``sqlfixture.runner.resolver``.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterator, Optional, Sequence, Tuple, Union

from sqlfixture.assertion.engine import AssertionMode
from sqlfixture.db.connection import DEFAULT_CONNECTION
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError


class DirectiveKind(str, Enum):
    """Phase a directive belongs to."""
    SETUP = "setup"
    TEARDOWN = "teardown"
    EXPECTATION = "expectation"


def _as_tuple(value: Union[str, Sequence[Any], None]) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class DatasetDirective:
    """Common fields: dataset locations and the target connection."""
    value: Tuple[str, ...] = ()
    connection: str = DEFAULT_CONNECTION

    kind: ClassVar[DirectiveKind]

    def __post_init__(self):
        object.__setattr__(self, 'value', _as_tuple(self.value))

    @property
    def locations(self) -> Tuple[str, ...]:
        """Declared dataset locations, without empty entries."""
        return tuple(location for location in self.value if location)


@dataclass(frozen=True)
class OperationDirective(DatasetDirective):
    """Datasets applied to the database with a database operation."""
    type: DatabaseOperation = DatabaseOperation.CLEAN_INSERT

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, 'type', DatabaseOperation(self.type))


@dataclass(frozen=True)
class DatabaseSetup(OperationDirective):
    """Datasets applied before the test body runs."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.SETUP


@dataclass(frozen=True)
class DatabaseTearDown(OperationDirective):
    """Datasets applied after the test body and its verification."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.TEARDOWN


@dataclass(frozen=True)
class ExpectedDatabase(DatasetDirective):
    """Datasets the database must match once the test body has run.

    ``table`` limits the comparison to one table and ``query`` compares the
    result of a query, exposed as ``table``, instead. ``column_filters`` and
    ``modifiers`` hold instances or names registered with the corresponding
    registry. When ``override`` is set on a method-level expectation, the
    class-level expectations are not checked for that test.
    """
    override: bool = True
    table: Optional[str] = None
    query: Optional[str] = None
    assertion_mode: Optional[AssertionMode] = None
    column_filters: Tuple[Any, ...] = ()
    modifiers: Tuple[Any, ...] = ()

    kind: ClassVar[DirectiveKind] = DirectiveKind.EXPECTATION

    def __post_init__(self):
        super().__post_init__()
        if self.query and not self.table:
            raise ConfigurationError("The table name must be specified when using a SQL query")
        if self.assertion_mode is not None:
            object.__setattr__(self, 'assertion_mode', AssertionMode(self.assertion_mode))
        object.__setattr__(self, 'column_filters', _as_tuple(self.column_filters))
        object.__setattr__(self, 'modifiers', _as_tuple(self.modifiers))


@dataclass(frozen=True)
class DirectiveSet:
    """Directives of one kind resolved for one test.

    ``all`` lists class-level directives before method-level ones.
    """
    kind: DirectiveKind
    class_level: Tuple[DatasetDirective, ...] = ()
    method_level: Tuple[DatasetDirective, ...] = ()
    all: Tuple[DatasetDirective, ...] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'class_level', tuple(self.class_level))
        object.__setattr__(self, 'method_level', tuple(self.method_level))
        object.__setattr__(self, 'all', self.class_level + self.method_level)

    def __iter__(self) -> Iterator[DatasetDirective]:
        return iter(self.all)

    def __len__(self) -> int:
        return len(self.all)
