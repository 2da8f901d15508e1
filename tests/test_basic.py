"""Basic tests for the SQLFixture package."""

import sqlfixture
from sqlfixture import AssertionMode, DatabaseOperation


class TestPackageBasics:
    """Test basic package functionality."""

    def test_package_version(self) -> None:
        """Test that package has a version."""
        assert hasattr(sqlfixture, '__version__')
        assert isinstance(sqlfixture.__version__, str)
        assert len(sqlfixture.__version__) > 0

    def test_package_exports(self) -> None:
        """Test that package exports errors and decorators."""
        for name in ('SQLFixtureError', 'ConfigurationError', 'DatabaseError',
                     'AssertionMismatchError', 'TeardownError',
                     'database_setup', 'database_teardown', 'expected_database'):
            assert hasattr(sqlfixture, name), name

    def test_error_hierarchy(self) -> None:
        """Mismatches are assertion errors; lookup failures are configuration errors."""
        assert issubclass(sqlfixture.AssertionMismatchError, AssertionError)
        assert issubclass(sqlfixture.AssertionMismatchError, sqlfixture.SQLFixtureError)
        assert issubclass(sqlfixture.UnknownConnectionError, sqlfixture.ConfigurationError)
        assert issubclass(sqlfixture.DatasetLoadError, sqlfixture.ConfigurationError)
        assert issubclass(sqlfixture.UnsupportedOperationError, sqlfixture.ConfigurationError)

    def test_enums_accept_values(self) -> None:
        """Enums can be built from their lowercase values."""
        assert AssertionMode("non_strict") is AssertionMode.NON_STRICT
        assert DatabaseOperation("clean_insert") is DatabaseOperation.CLEAN_INSERT
