"""
Directive registration and resolution.

Decorators record directives in a ``DirectiveRegistry`` keyed by the decorated
class or function; nothing is stored on the decorated objects themselves.
Stacked decorators keep their top-to-bottom order::

    @database_setup("users.yaml")
    class TestUsers:

        @database_setup("orders.yaml", type=DatabaseOperation.INSERT)
        @expected_database("orders_after.yaml", assertion_mode="non_strict")
        def test_place_order(self):
            ...

For each scope the resolver returns the directly declared directives followed
by the directives of any container declaration (``database_setups`` and
friends), flattened in declaration order.
"""
import inspect
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from sqlfixture.assertion.engine import AssertionMode
from sqlfixture.db.connection import DEFAULT_CONNECTION
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.exceptions import ConfigurationError
from sqlfixture.runner.directives import (
    DatabaseSetup,
    DatabaseTearDown,
    DatasetDirective,
    DirectiveKind,
    DirectiveSet,
    ExpectedDatabase,
)

T = TypeVar('T')


@dataclass
class _Declarations:
    direct: List[DatasetDirective] = field(default_factory=list)
    containers: List[Tuple[DatasetDirective, ...]] = field(default_factory=list)

    def flatten(self) -> List[DatasetDirective]:
        directives = list(self.direct)
        for container in self.containers:
            directives.extend(container)
        return directives


class DirectiveRegistry:
    """Lookup table of directives keyed by test class or test function."""

    def __init__(self) -> None:
        self._entries: Dict[Any, Dict[DirectiveKind, _Declarations]] = {}

    def declare(self, target: T, directive: DatasetDirective) -> T:
        """Declare ``directive`` on ``target``.

        Decorators apply bottom-up, so each new direct declaration goes first.
        """
        self._declarations(target, directive.kind).direct.insert(0, directive)
        return target

    def declare_container(self, target: T, kind: DirectiveKind,
                          directives: Tuple[DatasetDirective, ...]) -> T:
        """Declare a repeatable group of directives on ``target``."""
        for directive in directives:
            if directive.kind != kind:
                raise ConfigurationError(
                    f"Only {kind.value} directives may be grouped here, got {type(directive).__name__}"
                )
        self._declarations(target, kind).containers.insert(0, tuple(directives))
        return target

    def declared(self, target: Any, kind: DirectiveKind) -> List[DatasetDirective]:
        """Directives of ``kind`` declared on ``target`` or on the function it wraps."""
        for candidate in _unwrap_chain(target):
            entry = self._entries.get(candidate, {}).get(kind)
            if entry is not None:
                return entry.flatten()
        return []

    def has_directives(self, target: Any) -> bool:
        return any(candidate in self._entries for candidate in _unwrap_chain(target))

    def clear(self) -> None:
        self._entries.clear()

    def _declarations(self, target: Any, kind: DirectiveKind) -> _Declarations:
        return self._entries.setdefault(target, {}).setdefault(kind, _Declarations())


default_registry = DirectiveRegistry()


def _unwrap_chain(target: Any) -> List[Any]:
    """``target`` and every object it wraps through ``__wrapped__``."""
    target = getattr(target, '__func__', target)
    chain = [target]
    seen = {id(target)}
    while hasattr(target, '__wrapped__'):
        target = target.__wrapped__
        if id(target) in seen:
            break
        seen.add(id(target))
        chain.append(target)
    return chain


class DirectiveResolver:
    """Resolves the directives that apply to one test."""

    def __init__(self, registry: Optional[DirectiveRegistry] = None):
        self.registry = registry or default_registry

    def resolve(self, test_class: Any, test_method: Callable, kind: DirectiveKind) -> DirectiveSet:
        """
        Collect class-level and method-level directives of ``kind``.

        Args:
            test_class: Test class, or the module of a plain test function
            test_method: Test function defined on ``test_class``
            kind: Directive kind to resolve

        Returns:
            Read-only set of the resolved directives

        Raises:
            ConfigurationError: If ``test_method`` does not belong to ``test_class``
        """
        kind = DirectiveKind(kind)
        self._check_membership(test_class, test_method)
        return DirectiveSet(
            kind=kind,
            class_level=tuple(self._class_directives(test_class, kind)),
            method_level=tuple(self.registry.declared(test_method, kind)),
        )

    def has_directives(self, test_class: Any, test_method: Callable) -> bool:
        """Whether any directive applies to the test."""
        owners = inspect.getmro(test_class) if inspect.isclass(test_class) else (test_class,)
        return self.registry.has_directives(test_method) or any(
            self.registry.has_directives(owner) for owner in owners
        )

    def _class_directives(self, test_class: Any, kind: DirectiveKind) -> List[DatasetDirective]:
        if not inspect.isclass(test_class):
            return self.registry.declared(test_class, kind)
        # The nearest class in the MRO declaring this kind wins
        for klass in inspect.getmro(test_class):
            directives = self.registry.declared(klass, kind)
            if directives:
                return directives
        return []

    @staticmethod
    def _check_membership(test_class: Any, test_method: Callable) -> None:
        name = getattr(test_method, '__name__', None)
        targets = set(id(obj) for obj in _unwrap_chain(test_method))
        if name:
            if inspect.isclass(test_class):
                candidates = [vars(klass).get(name) for klass in inspect.getmro(test_class)]
            elif isinstance(test_class, ModuleType):
                candidates = [vars(test_class).get(name)]
            else:
                candidates = []
            for candidate in candidates:
                if candidate is None:
                    continue
                if any(id(obj) in targets for obj in _unwrap_chain(candidate)):
                    return
        raise ConfigurationError(
            f"Test method {name or test_method!r} does not belong to {getattr(test_class, '__name__', test_class)!r}"
        )


def database_setup(*value: str,
                   connection: str = DEFAULT_CONNECTION,
                   type: DatabaseOperation = DatabaseOperation.CLEAN_INSERT,
                   registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Apply the datasets at ``value`` before the test runs."""
    directive = DatabaseSetup(value, connection=connection, type=type)
    return lambda target: (registry or default_registry).declare(target, directive)


def database_teardown(*value: str,
                      connection: str = DEFAULT_CONNECTION,
                      type: DatabaseOperation = DatabaseOperation.CLEAN_INSERT,
                      registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Apply the datasets at ``value`` after the test has run."""
    directive = DatabaseTearDown(value, connection=connection, type=type)
    return lambda target: (registry or default_registry).declare(target, directive)


def expected_database(*value: str,
                      connection: str = DEFAULT_CONNECTION,
                      override: bool = True,
                      table: Optional[str] = None,
                      query: Optional[str] = None,
                      assertion_mode: Optional[AssertionMode] = None,
                      column_filters: Tuple[Any, ...] = (),
                      modifiers: Tuple[Any, ...] = (),
                      registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Check the database against the datasets at ``value`` after the test."""
    directive = ExpectedDatabase(
        value,
        connection=connection,
        override=override,
        table=table,
        query=query,
        assertion_mode=assertion_mode,
        column_filters=column_filters,
        modifiers=modifiers,
    )
    return lambda target: (registry or default_registry).declare(target, directive)


def _container(kind: DirectiveKind, directives: Tuple[DatasetDirective, ...],
               registry: Optional[DirectiveRegistry]) -> Callable[[T], T]:
    return lambda target: (registry or default_registry).declare_container(target, kind, directives)


def database_setups(*directives: DatabaseSetup,
                    registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Declare several setup directives at once."""
    return _container(DirectiveKind.SETUP, directives, registry)


def database_teardowns(*directives: DatabaseTearDown,
                       registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Declare several teardown directives at once."""
    return _container(DirectiveKind.TEARDOWN, directives, registry)


def expected_databases(*directives: ExpectedDatabase,
                       registry: Optional[DirectiveRegistry] = None) -> Callable[[T], T]:
    """Declare several expectation directives at once."""
    return _container(DirectiveKind.EXPECTATION, directives, registry)
