"""Configuration management for SQLFixture."""

from sqlfixture.config.models import (
    AssertionModeSetting,
    CompositionStrategy,
    DatabaseType,
    DatabaseConfig,
    FixtureSettings,
    SQLFixtureConfig,
    EnvironmentSettings,
)
from sqlfixture.config.parser import (
    ConfigParser,
    load_config,
)

__all__ = [
    # Models
    "AssertionModeSetting",
    "CompositionStrategy",
    "DatabaseType",
    "DatabaseConfig",
    "FixtureSettings",
    "SQLFixtureConfig",
    "EnvironmentSettings",
    # Parser
    "ConfigParser",
    "load_config",
]
