"""
Fixture lifecycle around a single test.

``before_test`` applies setup directives. ``after_test`` verifies
expectations, applies teardown directives and releases the test's
connections, in that order:

1. expectations are skipped when the test already failed;
2. teardown always runs; its failure is logged and dropped when the test or
   its verification already failed, and raised otherwise;
3. connections are always closed; a close failure is raised only when
   nothing failed before it.

Exactly one failure leaves ``after_test``.
"""
import logging
from typing import Any, Callable, Optional

from sqlfixture.assertion.engine import AssertionMode, ComparisonEngine
from sqlfixture.assertion.filters import FilterRegistry
from sqlfixture.config.models import FixtureSettings
from sqlfixture.dataset.modifiers import ModifierRegistry
from sqlfixture.db.operations import DatabaseOperationLookup
from sqlfixture.runner.applicator import FixtureApplicator
from sqlfixture.runner.context import FixtureTestContext
from sqlfixture.runner.directives import DirectiveKind
from sqlfixture.runner.resolver import DirectiveResolver
from sqlfixture.runner.verifier import ExpectationVerifier


class FixtureLifecycle:
    """Entry points called by the host test runner around each test."""

    def __init__(self,
                 resolver: Optional[DirectiveResolver] = None,
                 settings: Optional[FixtureSettings] = None,
                 operation_lookup: Optional[DatabaseOperationLookup] = None,
                 comparison_engine: Optional[ComparisonEngine] = None,
                 filter_registry: Optional[FilterRegistry] = None,
                 modifier_registry: Optional[ModifierRegistry] = None,
                 logger: Optional[logging.Logger] = None):
        self.resolver = resolver or DirectiveResolver()
        self.settings = settings or FixtureSettings()
        self.operation_lookup = operation_lookup or DatabaseOperationLookup()
        self.comparison_engine = comparison_engine or ComparisonEngine()
        self.filter_registry = filter_registry or FilterRegistry()
        self.modifier_registry = modifier_registry or ModifierRegistry()
        self.logger = logger or logging.getLogger(__name__)

    def applicator(self, context: FixtureTestContext) -> FixtureApplicator:
        return FixtureApplicator(
            context,
            operation_lookup=self.operation_lookup,
            composition_strategy=self.settings.composition_strategy,
            fail_fast=self.settings.teardown_fail_fast,
            logger=self.logger,
        )

    def verifier(self, context: FixtureTestContext) -> ExpectationVerifier:
        return ExpectationVerifier(
            context,
            engine=self.comparison_engine,
            filter_registry=self.filter_registry,
            modifier_registry=self.modifier_registry,
            composition_strategy=self.settings.composition_strategy,
            default_mode=AssertionMode(self.settings.default_assertion_mode.value),
            logger=self.logger,
        )

    def before_test(self, context: FixtureTestContext) -> None:
        """Apply the setup directives of the test."""
        directives = self.resolver.resolve(context.test_class, context.test_method, DirectiveKind.SETUP)
        self.applicator(context).apply(directives, is_setup_phase=True)

    def after_test(self, context: FixtureTestContext) -> None:
        """Verify expectations, tear down and release connections."""
        failure: Optional[BaseException] = None
        try:
            try:
                directives = self.resolver.resolve(
                    context.test_class, context.test_method, DirectiveKind.EXPECTATION
                )
                self.verifier(context).verify(directives, test_failed=context.test_exception is not None)
            except Exception as e:
                failure = e

            try:
                self._teardown(context)
            except Exception as e:
                prior = context.test_exception or failure
                if prior is None:
                    failure = e
                else:
                    self.logger.warning(
                        f"Unable to throw database cleanup exception due to existing test error: {e}",
                        exc_info=e,
                    )
        finally:
            release_error = self._release(context)

        if failure is None and context.test_exception is None and release_error is not None:
            failure = release_error
        if failure is not None:
            raise failure

    def run(self, context: FixtureTestContext, test_body: Callable[[], Any]) -> Any:
        """Run ``test_body`` between ``before_test`` and ``after_test``.

        A setup failure counts as the test's failure: the body is skipped but
        teardown and connection release still happen.
        """
        try:
            self.before_test(context)
            result = test_body()
        except BaseException as e:
            context.test_exception = e
            self.after_test(context)
            raise
        self.after_test(context)
        return result

    def _teardown(self, context: FixtureTestContext) -> None:
        directives = self.resolver.resolve(context.test_class, context.test_method, DirectiveKind.TEARDOWN)
        self.applicator(context).apply(directives, is_setup_phase=False)

    def _release(self, context: FixtureTestContext) -> Optional[Exception]:
        try:
            context.connections.close_all()
        except Exception as e:
            self.logger.warning(f"Failed to release connections of {context.test_name}: {e}")
            return e
        return None
