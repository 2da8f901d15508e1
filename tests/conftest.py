"""
Pytest configuration and fixtures for SQLFixture tests.

Database tests run against in-memory SQLite; dataset files are written to a
temporary directory per test.
"""
from pathlib import Path
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
import yaml

from sqlfixture.config.models import DatabaseConfig, SQLFixtureConfig
from sqlfixture.dataset.loader import FlatDatasetLoader
from sqlfixture.db.adapters.sqlite import SQLiteAdapter
from sqlfixture.db.connection import ConnectionManager
from sqlfixture.runner.context import FixtureTestContext

SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    amount REAL
);
CREATE TABLE audit_log (
    message TEXT
)
"""


class SampleTests:
    """Stands in for a test class in lifecycle tests."""

    def test_example(self):
        pass

    def test_other(self):
        pass


@pytest.fixture
def sample_schema() -> str:
    return SCHEMA


@pytest.fixture
def memory_config() -> SQLFixtureConfig:
    """Configuration with a single in-memory SQLite database."""
    return SQLFixtureConfig(databases={"main": DatabaseConfig(driver="sqlite", database=":memory:")})


@pytest.fixture
def sqlite_adapter() -> SQLiteAdapter:
    """In-memory SQLite adapter with the sample schema."""
    adapter = SQLiteAdapter(DatabaseConfig(driver="sqlite", path=":memory:"))
    adapter.execute_script(SCHEMA)
    yield adapter
    adapter.close()


@pytest.fixture
def connections(sqlite_adapter) -> ConnectionManager:
    """Connection manager whose default connection is the sample database."""
    manager = ConnectionManager()
    manager.register("main", sqlite_adapter)
    return manager


@pytest.fixture
def dataset_dir(tmp_path) -> Path:
    return tmp_path


@pytest.fixture
def write_yaml(dataset_dir) -> Callable[[str, dict], str]:
    """Write a flat YAML dataset and return its absolute location."""
    def _write(name: str, data: dict) -> str:
        path = dataset_dir / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def make_context(connections, dataset_dir) -> Callable[..., FixtureTestContext]:
    """Build a context, by default for ``SampleTests.test_example``."""
    def _make(test_method: Optional[Callable] = None, **kwargs) -> FixtureTestContext:
        kwargs.setdefault("connections", connections)
        kwargs.setdefault("dataset_loader", FlatDatasetLoader(dataset_dir))
        kwargs.setdefault("test_class", SampleTests)
        return FixtureTestContext(test_method=test_method or SampleTests.test_example, **kwargs)
    return _make


@pytest.fixture
def mock_loader():
    """Dataset loader mock; configure ``load_dataset`` per test."""
    return Mock(spec=FlatDatasetLoader)
