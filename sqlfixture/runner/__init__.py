"""Directive resolution and the fixture lifecycle around each test."""

from sqlfixture.runner.applicator import FixtureApplicator
from sqlfixture.runner.context import FixtureTestContext
from sqlfixture.runner.directives import (
    DatabaseSetup,
    DatabaseTearDown,
    DirectiveKind,
    DirectiveSet,
    ExpectedDatabase,
)
from sqlfixture.runner.lifecycle import FixtureLifecycle
from sqlfixture.runner.resolver import (
    DirectiveRegistry,
    DirectiveResolver,
    database_setup,
    database_setups,
    database_teardown,
    database_teardowns,
    default_registry,
    expected_database,
    expected_databases,
)
from sqlfixture.runner.verifier import ExpectationVerifier

__all__ = [
    "FixtureApplicator",
    "FixtureTestContext",
    "DatabaseSetup",
    "DatabaseTearDown",
    "DirectiveKind",
    "DirectiveSet",
    "ExpectedDatabase",
    "FixtureLifecycle",
    "DirectiveRegistry",
    "DirectiveResolver",
    "database_setup",
    "database_setups",
    "database_teardown",
    "database_teardowns",
    "default_registry",
    "expected_database",
    "expected_databases",
    "ExpectationVerifier",
]
