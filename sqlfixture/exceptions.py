"""Core exceptions for SQLFixture."""

from typing import Any, Dict, List, Optional, Sequence


class SQLFixtureError(Exception):
    """Base exception for all SQLFixture errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SQLFixtureError):
    """Raised when there's an error in configuration parsing or validation."""
    pass


class DatabaseError(SQLFixtureError):
    """Raised when there's an error connecting to or querying a database."""

    def __init__(
        self,
        message: str,
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.database_type = database_type


class DatasetLoadError(ConfigurationError):
    """Raised when a declared dataset location cannot be resolved or parsed."""

    def __init__(
        self,
        message: str,
        location: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.location = location


class UnknownConnectionError(ConfigurationError):
    """Raised when a directive references a connection that is not registered."""

    def __init__(
        self,
        message: str,
        connection_id: Optional[str] = None,
        available: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.connection_id = connection_id
        self.available = list(available or [])


class UnsupportedOperationError(ConfigurationError):
    """Raised when a database operation has no backing executor."""

    def __init__(
        self,
        message: str,
        operation: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.operation = operation


class AssertionMismatchError(SQLFixtureError, AssertionError):
    """Raised when the expected and actual database contents differ."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        column: Optional[str] = None,
        row: Optional[int] = None,
        expected: Any = None,
        actual: Any = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.table = table
        self.column = column
        self.row = row
        self.expected = expected
        self.actual = actual


class TeardownError(SQLFixtureError):
    """Raised when one or more teardown operations fail."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[BaseException]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.errors = list(errors or [])


class NoSuchTableError(SQLFixtureError):
    """Raised when a dataset or database has no table of the requested name."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.table = table
