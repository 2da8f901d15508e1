"""Verifies the database against expected datasets after a test."""

import logging
from typing import List, Optional

from sqlfixture.assertion.engine import AssertionMode, ComparisonEngine
from sqlfixture.assertion.filters import ColumnFilter, FilterRegistry
from sqlfixture.config.models import CompositionStrategy
from sqlfixture.dataset.models import CompositeDataset
from sqlfixture.dataset.modifiers import ModifierChain, ModifierRegistry
from sqlfixture.exceptions import NoSuchTableError
from sqlfixture.runner.context import FixtureTestContext
from sqlfixture.runner.directives import DirectiveSet, ExpectedDatabase


class ExpectationVerifier:
    """Checks expectation directives for one test.

    Method-level expectations are checked first. When one of them sets
    ``override`` the class-level expectations are skipped; otherwise they are
    checked as well. Nothing is checked when the test already failed.
    """

    def __init__(self,
                 context: FixtureTestContext,
                 engine: Optional[ComparisonEngine] = None,
                 filter_registry: Optional[FilterRegistry] = None,
                 modifier_registry: Optional[ModifierRegistry] = None,
                 composition_strategy: CompositionStrategy = CompositionStrategy.FIRST_WINS,
                 default_mode: AssertionMode = AssertionMode.STRICT,
                 logger: Optional[logging.Logger] = None):
        self.context = context
        self.engine = engine or ComparisonEngine()
        self.filter_registry = filter_registry or FilterRegistry()
        self.modifier_registry = modifier_registry or ModifierRegistry()
        self.composition_strategy = composition_strategy
        self.default_mode = AssertionMode(default_mode)
        self.logger = logger or logging.getLogger(__name__)

    def verify(self, directives: DirectiveSet, test_failed: bool) -> None:
        """
        Check the expectations in ``directives``.

        Raises:
            AssertionMismatchError: If the database does not match an expectation.
        """
        if test_failed:
            exception = self.context.test_exception
            self.logger.debug(
                f"Skipping database expectations of {self.context.test_name} due to test exception "
                f"{type(exception).__name__ if exception is not None else ''}"
            )
            return

        modifier = self._build_modifier(directives)
        override = False
        for directive in directives.method_level:
            self._verify_directive(directive, modifier)
            override |= directive.override

        if override:
            return

        for directive in directives.class_level:
            self._verify_directive(directive, modifier)

    def _build_modifier(self, directives: DirectiveSet) -> ModifierChain:
        """Fresh chain: context modifiers, then those declared on the directives."""
        chain = ModifierChain(self.context.modifiers)
        for directive in directives.all:
            for modifier in directive.modifiers:
                chain.add(self.modifier_registry.resolve(modifier))
        return chain

    def _column_filters(self, directive: ExpectedDatabase) -> List[ColumnFilter]:
        return [self.filter_registry.resolve(column_filter) for column_filter in directive.column_filters]

    def _verify_directive(self, directive: ExpectedDatabase, modifier: ModifierChain) -> None:
        locations = directive.locations
        if not locations:
            return

        expected = CompositeDataset(self.context.load_datasets(locations), self.composition_strategy)
        expected = modifier.modify(expected)
        connection = self.context.connections.get(directive.connection)

        mode = directive.assertion_mode or self.default_mode
        column_filters = self._column_filters(directive)
        self.logger.debug(f"Verifying database expectation of {self.context.test_name} using {list(locations)}")

        if directive.query:
            expected_table = expected.get_table(directive.table)
            actual_table = connection.create_query_table(directive.table, directive.query)
            self.engine.assert_tables(expected_table, actual_table, mode, column_filters)
        elif directive.table:
            expected_table = expected.get_table(directive.table)
            try:
                actual_table = connection.create_table(directive.table)
            except NoSuchTableError:
                self.engine.missing_table(directive.table, connection.get_table_names()).raise_for_mismatch()
                return
            self.engine.assert_tables(expected_table, actual_table, mode, column_filters)
        else:
            actual = connection.create_dataset()
            self.engine.assert_datasets(expected, actual, mode, column_filters)
