"""Tests for applying setup and teardown directives."""

import pytest

from sqlfixture.config.models import CompositionStrategy
from sqlfixture.db.operations import DatabaseOperation, DatabaseOperationLookup
from sqlfixture.exceptions import (
    DatabaseError,
    DatasetLoadError,
    TeardownError,
    UnknownConnectionError,
    UnsupportedOperationError,
)
from sqlfixture.runner.applicator import FixtureApplicator
from sqlfixture.runner.directives import DatabaseSetup, DatabaseTearDown, DirectiveKind, DirectiveSet


def setups(*directives, class_level=()):
    return DirectiveSet(DirectiveKind.SETUP, class_level=class_level, method_level=directives)


def teardowns(*directives):
    return DirectiveSet(DirectiveKind.TEARDOWN, method_level=directives)


def user_names(connections):
    return [r["name"] for r in connections.get().create_table("users").to_records()]


class TestFixtureTestContext:
    """Test dataset loading through the context."""

    def test_test_name(self, make_context):
        assert make_context().test_name == "SampleTests.test_example"

    def test_loader_errors_are_wrapped(self, make_context, mock_loader):
        mock_loader.load_dataset.side_effect = RuntimeError("disk on fire")
        context = make_context(dataset_loader=mock_loader)

        with pytest.raises(DatasetLoadError, match="disk on fire"):
            context.load_dataset("users.yaml")

    def test_loader_returning_nothing(self, make_context, mock_loader):
        mock_loader.load_dataset.return_value = None
        context = make_context(dataset_loader=mock_loader)

        with pytest.raises(DatasetLoadError) as exc_info:
            context.load_dataset("users.yaml")
        assert exc_info.value.location == "users.yaml"


class TestSetupPhase:
    """Test applying setup directives."""

    def test_no_directives(self, make_context, mock_loader):
        applicator = FixtureApplicator(make_context(dataset_loader=mock_loader))

        applicator.apply(setups(), is_setup_phase=True)

        mock_loader.load_dataset.assert_not_called()

    def test_clean_insert(self, make_context, connections, write_yaml):
        location = write_yaml("users.yaml", {"users": [{"id": 1, "name": "alice"}]})
        connections.get().execute_query("INSERT INTO users (id, name) VALUES (9, 'stale')", fetch_results=False)

        FixtureApplicator(make_context()).apply(setups(DatabaseSetup(location)), is_setup_phase=True)

        assert user_names(connections) == ["alice"]

    def test_class_level_before_method_level(self, make_context, connections, write_yaml):
        first = write_yaml("first.yaml", {"users": [{"id": 1, "name": "alice"}]})
        second = write_yaml("second.yaml", {"users": [{"id": 2, "name": "bob"}]})

        FixtureApplicator(make_context()).apply(
            setups(DatabaseSetup(second, type=DatabaseOperation.INSERT),
                   class_level=[DatabaseSetup(first)]),
            is_setup_phase=True,
        )

        assert user_names(connections) == ["alice", "bob"]

    def test_locations_compose_first_wins(self, make_context, connections, write_yaml):
        first = write_yaml("first.yaml", {"users": [{"id": 1, "name": "alice"}]})
        second = write_yaml("second.yaml", {"users": [{"id": 2, "name": "bob"}]})

        FixtureApplicator(make_context()).apply(setups(DatabaseSetup((first, second))), is_setup_phase=True)

        assert user_names(connections) == ["alice"]

    def test_locations_compose_merge(self, make_context, connections, write_yaml):
        first = write_yaml("first.yaml", {"users": [{"id": 1, "name": "alice"}]})
        second = write_yaml("second.yaml", {"users": [{"id": 2, "name": "bob"}]})

        FixtureApplicator(make_context(), composition_strategy=CompositionStrategy.MERGE).apply(
            setups(DatabaseSetup((first, second))), is_setup_phase=True
        )

        assert user_names(connections) == ["alice", "bob"]

    def test_directive_without_locations_skipped(self, make_context, mock_loader):
        FixtureApplicator(make_context(dataset_loader=mock_loader)).apply(
            setups(DatabaseSetup(("",))), is_setup_phase=True
        )
        mock_loader.load_dataset.assert_not_called()

    def test_unknown_connection_fails_before_loading(self, make_context, mock_loader):
        applicator = FixtureApplicator(make_context(dataset_loader=mock_loader))

        with pytest.raises(UnknownConnectionError):
            applicator.apply(setups(DatabaseSetup("users.yaml", connection="secondary")), is_setup_phase=True)

        mock_loader.load_dataset.assert_not_called()

    def test_unsupported_operation_fails_before_loading(self, make_context, mock_loader):
        applicator = FixtureApplicator(make_context(dataset_loader=mock_loader),
                                       operation_lookup=DatabaseOperationLookup(executors={}))

        with pytest.raises(UnsupportedOperationError):
            applicator.apply(setups(DatabaseSetup("users.yaml")), is_setup_phase=True)

        mock_loader.load_dataset.assert_not_called()

    def test_database_errors_propagate_unchanged(self, make_context, write_yaml):
        location = write_yaml("bad.yaml", {"users": [{"id": 1, "nickname": "x"}]})

        with pytest.raises(DatabaseError):
            FixtureApplicator(make_context()).apply(setups(DatabaseSetup(location)), is_setup_phase=True)


class TestTeardownPhase:
    """Test applying teardown directives."""

    @pytest.fixture
    def failing_then_cleanup(self, write_yaml):
        bad = write_yaml("bad.yaml", {"users": [{"id": 1, "nickname": "x"}]})
        cleanup = write_yaml("cleanup.yaml", {"users": []})
        return DatabaseTearDown(bad), DatabaseTearDown(cleanup, type=DatabaseOperation.DELETE_ALL)

    @pytest.fixture
    def seeded_connections(self, connections):
        connections.get().execute_query("INSERT INTO users (id, name) VALUES (1, 'alice')", fetch_results=False)
        return connections

    def test_fail_fast_stops_at_first_failure(self, make_context, seeded_connections, failing_then_cleanup):
        with pytest.raises(TeardownError) as exc_info:
            FixtureApplicator(make_context()).apply(teardowns(*failing_then_cleanup), is_setup_phase=False)

        assert isinstance(exc_info.value.errors[0], DatabaseError)
        assert user_names(seeded_connections) == ["alice"]

    def test_best_effort_runs_every_directive(self, make_context, seeded_connections, failing_then_cleanup):
        bad, cleanup = failing_then_cleanup

        with pytest.raises(TeardownError) as exc_info:
            FixtureApplicator(make_context(), fail_fast=False).apply(
                teardowns(bad, cleanup, bad), is_setup_phase=False
            )

        assert len(exc_info.value.errors) == 2
        assert user_names(seeded_connections) == []

    def test_configuration_errors_propagate(self, make_context):
        with pytest.raises(UnknownConnectionError):
            FixtureApplicator(make_context()).apply(
                teardowns(DatabaseTearDown("x.yaml", connection="secondary")), is_setup_phase=False
            )

    def test_successful_teardown(self, make_context, seeded_connections, failing_then_cleanup):
        _, cleanup = failing_then_cleanup
        FixtureApplicator(make_context()).apply(teardowns(cleanup), is_setup_phase=False)
        assert user_names(seeded_connections) == []
