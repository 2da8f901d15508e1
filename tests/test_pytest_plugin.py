"""Tests for the pytest plugin, run in isolated pytest sessions."""

import logging

import pytest

from sqlfixture.config.models import DatabaseConfig, EnvironmentSettings
from sqlfixture.db.adapters.sqlite import SQLiteAdapter
from sqlfixture.pytest_plugin import configure_logging

PLUGIN_ARGS = ("-p", "no:sqlfixture", "-p", "sqlfixture.pytest_plugin")

TEST_MODULE = '''
from sqlalchemy import create_engine, text

from sqlfixture import database_setup, database_teardown, expected_database

DB_PATH = {db_path!r}


def place_order():
    engine = create_engine(f"sqlite:///{{DB_PATH}}")
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO orders (id, user_id, amount) VALUES (10, 1, 12.5)"))
    engine.dispose()


@database_setup("users.yaml")
@database_teardown("cleanup.yaml", type="delete_all")
class TestOrders:

    @expected_database("orders_after.yaml", table="orders")
    def test_place_order(self):
        place_order()

    @expected_database("orders_after.yaml", table="orders")
    def test_forgot_order(self):
        pass


def test_plain():
    assert True
'''


@pytest.fixture
def database(pytester, sample_schema):
    db_path = pytester.path / "app.db"
    adapter = SQLiteAdapter(DatabaseConfig(type="sqlite", path=str(db_path)))
    adapter.execute_script(sample_schema)
    adapter.close()
    return db_path


@pytest.fixture
def project(pytester, database):
    """Test project with a configuration, datasets and a test module."""
    pytester.makefile(
        ".yaml",
        sqlfixture=f"databases:\n  main:\n    driver: sqlite\n    path: '{database}'\n",
        users="users:\n  - id: 1\n    name: alice\n",
        orders_after="orders:\n  - id: 10\n    user_id: 1\n    amount: 12.5\n",
        cleanup="orders: []\nusers: []\n",
    )
    pytester.makepyfile(test_orders=TEST_MODULE.format(db_path=str(database)))
    return pytester


class TestPytestPlugin:
    """Test the plugin's hooks end to end."""

    def test_lifecycle_around_tests(self, project):
        result = project.runpytest(*PLUGIN_ARGS, "--sqlfixture-config=sqlfixture.yaml")

        result.assert_outcomes(passed=2, failed=1)
        result.stdout.fnmatch_lines(["*test_forgot_order*", "*Row count mismatch*"])

    def test_config_from_ini(self, project):
        project.makeini("[pytest]\nsqlfixture_config = sqlfixture.yaml\n")

        result = project.runpytest(*PLUGIN_ARGS)

        result.assert_outcomes(passed=2, failed=1)

    def test_config_from_default_location(self, project):
        result = project.runpytest(*PLUGIN_ARGS)
        result.assert_outcomes(passed=2, failed=1)

    def test_tests_without_directives_need_no_config(self, pytester):
        pytester.makepyfile(test_plain="def test_plain():\n    assert True\n")

        result = pytester.runpytest(*PLUGIN_ARGS)

        result.assert_outcomes(passed=1)

    def test_missing_config_fails_decorated_tests(self, pytester, monkeypatch):
        monkeypatch.delenv("SQLFIXTURE_CONFIG_FILE", raising=False)
        pytester.makepyfile(test_decorated=(
            "from sqlfixture import database_setup\n\n"
            "@database_setup('users.yaml')\n"
            "def test_decorated():\n"
            "    pass\n"
        ))

        result = pytester.runpytest(*PLUGIN_ARGS)

        result.assert_outcomes(failed=1)
        result.stdout.fnmatch_lines(["*ConfigurationError*"])

    def test_registered_filters_reach_expectations(self, project):
        """Names registered through the session hook resolve in directives."""
        project.makeconftest(
            "from sqlfixture.assertion.filters import ExcludeColumnsFilter\n\n\n"
            "def pytest_sqlfixture_register(filter_registry, modifier_registry):\n"
            "    filter_registry.register('no_created', lambda: ExcludeColumnsFilter('created_at'))\n"
        )
        project.makefile(".yaml", users_after="users:\n  - id: 1\n    name: alice\n    email: null\n")
        project.makepyfile(test_filters=(
            "from sqlfixture import AssertionMode, database_setup, expected_database\n\n\n"
            "@database_setup('users.yaml')\n"
            "@expected_database('users_after.yaml', table='users',\n"
            "                   assertion_mode=AssertionMode.STRICT, column_filters=('no_created',))\n"
            "def test_filtered():\n"
            "    pass\n\n\n"
            "@database_setup('users.yaml')\n"
            "@expected_database('users_after.yaml', table='users', assertion_mode=AssertionMode.STRICT)\n"
            "def test_unfiltered():\n"
            "    pass\n"
        ))

        result = project.runpytest(*PLUGIN_ARGS, "--sqlfixture-config=sqlfixture.yaml", "test_filters.py")

        result.assert_outcomes(passed=1, failed=1)
        result.stdout.fnmatch_lines(["*test_unfiltered*", "*Column mismatch*created_at*"])


class TestConfigureLogging:
    """Test the package log level taken from the environment."""

    @pytest.fixture(autouse=True)
    def restore_level(self):
        package_logger = logging.getLogger("sqlfixture")
        level = package_logger.level
        yield
        package_logger.setLevel(level)

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("SQLFIXTURE_LOG_LEVEL", "warning")
        configure_logging(EnvironmentSettings())
        assert logging.getLogger("sqlfixture").level == logging.WARNING

    def test_debug_overrides_log_level(self, monkeypatch):
        monkeypatch.setenv("SQLFIXTURE_LOG_LEVEL", "error")
        monkeypatch.setenv("SQLFIXTURE_DEBUG", "true")
        configure_logging(EnvironmentSettings())
        assert logging.getLogger("sqlfixture").level == logging.DEBUG
