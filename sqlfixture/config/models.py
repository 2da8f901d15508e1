"""Pydantic models for SQLFixture configuration."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class CompositionStrategy(str, Enum):
    """How same-named tables from several dataset locations are combined."""
    FIRST_WINS = "first_wins"
    MERGE = "merge"


class AssertionModeSetting(str, Enum):
    """Comparison policy used when an expectation does not name one."""
    STRICT = "strict"
    NON_STRICT = "non_strict"


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    model_config = ConfigDict(populate_by_name=True)

    type: DatabaseType = Field(validation_alias=AliasChoices("type", "driver"))
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    path: Optional[str] = None  # For SQLite
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('port')
    def validate_port(cls, v):
        """Validate port number range."""
        if v is not None and (v < 1 or v > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @model_validator(mode='after')
    def validate_database_config(self):
        """Validate database-specific required fields."""
        if self.type == DatabaseType.SQLITE:
            if not (self.path or self.database):
                raise ValueError("SQLite databases require a 'path' or 'database' field")
            if not self.path:
                # Allow configs that specify `database` instead of `path`
                object.__setattr__(self, "path", self.database)
            return self

        required_fields = ['host', 'database', 'username', 'password']
        for field in required_fields:
            if not getattr(self, field):
                raise ValueError(f"{self.type.value} databases require '{field}' field")
        return self


class FixtureSettings(BaseModel):
    """Fixture lifecycle settings."""
    composition_strategy: CompositionStrategy = Field(
        default=CompositionStrategy.FIRST_WINS,
        description="How same-named tables from several datasets are combined",
    )
    teardown_fail_fast: bool = Field(
        default=True,
        description="Stop teardown at the first failing directive",
    )
    dataset_base_path: Optional[str] = Field(
        default=None,
        description="Directory used to resolve relative dataset locations",
    )
    default_assertion_mode: AssertionModeSetting = Field(default=AssertionModeSetting.STRICT)


class SQLFixtureConfig(BaseModel):
    """Main configuration model for SQLFixture."""
    databases: Dict[str, DatabaseConfig]
    default_database: Optional[str] = None
    fixture_settings: FixtureSettings = Field(default_factory=FixtureSettings)

    @model_validator(mode='after')
    def validate_default_database(self):
        """Ensure default_database exists in databases."""
        if self.default_database and self.default_database not in self.databases:
            raise ValueError(f"default_database '{self.default_database}' not found in databases")
        return self

    @model_validator(mode='after')
    def set_default_database(self):
        """Set default database if not specified."""
        if not self.default_database and self.databases:
            self.default_database = next(iter(self.databases))
        return self


class EnvironmentSettings(BaseSettings):
    """Environment-specific settings."""
    model_config = SettingsConfigDict(env_prefix="SQLFIXTURE_", case_sensitive=False)

    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    config_file: Optional[str] = Field(default=None)
