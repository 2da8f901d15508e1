"""SQLFixture: dataset-driven database fixtures for tests.

SQLFixture provides:
- Setup and teardown of database state from flat YAML, JSON and CSV datasets
- Expected-database verification with strict and non-strict comparison
- Column filters and dataset modifiers for expectations
- Multiple named connections through SQLAlchemy
- A pytest plugin driving the lifecycle around each test
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from sqlfixture.exceptions import (
    SQLFixtureError,
    ConfigurationError,
    DatabaseError,
    DatasetLoadError,
    UnknownConnectionError,
    UnsupportedOperationError,
    AssertionMismatchError,
    TeardownError,
)
from sqlfixture.assertion import AssertionMode
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.runner import (
    database_setup,
    database_setups,
    database_teardown,
    database_teardowns,
    expected_database,
    expected_databases,
)

__all__ = [
    "__version__",
    "SQLFixtureError",
    "ConfigurationError",
    "DatabaseError",
    "DatasetLoadError",
    "UnknownConnectionError",
    "UnsupportedOperationError",
    "AssertionMismatchError",
    "TeardownError",
    "AssertionMode",
    "DatabaseOperation",
    "database_setup",
    "database_setups",
    "database_teardown",
    "database_teardowns",
    "expected_database",
    "expected_databases",
]
