"""Applies setup and teardown directives to the database."""

import logging
from typing import List, Optional

from sqlfixture.config.models import CompositionStrategy
from sqlfixture.dataset.models import CompositeDataset
from sqlfixture.db.operations import DatabaseOperationLookup
from sqlfixture.exceptions import ConfigurationError, TeardownError
from sqlfixture.runner.context import FixtureTestContext
from sqlfixture.runner.directives import DirectiveSet, OperationDirective


class FixtureApplicator:
    """Runs the database operations declared by setup or teardown directives.

    Directives run in order, class-level first. During setup the first failure
    aborts the phase. During teardown ``fail_fast`` selects between stopping at
    the first failing directive (the default) and running every directive and
    reporting all failures together.

    Configuration defects found in fail-fast teardown propagate unchanged;
    other failures are reported as ``TeardownError``.
    """

    def __init__(self,
                 context: FixtureTestContext,
                 operation_lookup: Optional[DatabaseOperationLookup] = None,
                 composition_strategy: CompositionStrategy = CompositionStrategy.FIRST_WINS,
                 fail_fast: bool = True,
                 logger: Optional[logging.Logger] = None):
        self.context = context
        self.operation_lookup = operation_lookup or DatabaseOperationLookup()
        self.composition_strategy = composition_strategy
        self.fail_fast = fail_fast
        self.logger = logger or logging.getLogger(__name__)

    def apply(self, directives: DirectiveSet, is_setup_phase: bool) -> None:
        """
        Apply every directive of ``directives``.

        Raises:
            SQLFixtureError: Configuration and load errors, immediately.
            TeardownError: If a teardown operation failed.
        """
        phase = "Setup" if is_setup_phase else "Teardown"
        errors: List[Exception] = []

        for directive in directives.all:
            try:
                self._apply_directive(directive, phase)
            except Exception as e:
                if is_setup_phase:
                    raise
                if self.fail_fast:
                    if isinstance(e, ConfigurationError):
                        raise
                    raise TeardownError(
                        f"Teardown of {self.context.test_name} failed: {e}", errors=[e]
                    ) from e
                self.logger.warning(f"Teardown directive {directive} of {self.context.test_name} failed: {e}")
                errors.append(e)

        if errors:
            raise TeardownError(
                f"{len(errors)} teardown directive(s) of {self.context.test_name} failed: {errors[0]}",
                errors=errors,
            ) from errors[0]

    def _apply_directive(self, directive: OperationDirective, phase: str) -> None:
        locations = directive.locations
        if not locations:
            self.logger.debug(f"Skipping {phase} directive without datasets for {self.context.test_name}")
            return

        # Resolve connection and operation before anything is loaded or changed
        connection = self.context.connections.get(directive.connection)
        executor = self.operation_lookup.get(directive.type)

        datasets = self.context.load_datasets(locations)
        dataset = CompositeDataset(datasets, self.composition_strategy)

        self.logger.debug(
            f"Executing {phase} of {self.context.test_name} using {directive.type.value} on {list(locations)}"
        )
        executor.execute(connection, dataset)
