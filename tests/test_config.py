"""Tests for configuration models and the YAML configuration parser."""

import pytest

from sqlfixture.config import (
    CompositionStrategy,
    ConfigParser,
    DatabaseConfig,
    DatabaseType,
    FixtureSettings,
    SQLFixtureConfig,
)
from sqlfixture.exceptions import ConfigurationError


class TestDatabaseConfig:
    """Test database configuration validation."""

    def test_sqlite_database_alias_fills_path(self):
        """A SQLite config may give ``database`` instead of ``path``."""
        config = DatabaseConfig(driver="sqlite", database=":memory:")
        assert config.type == DatabaseType.SQLITE
        assert config.path == ":memory:"

    def test_sqlite_requires_location(self):
        """A SQLite config without path or database is rejected."""
        with pytest.raises(ValueError):
            DatabaseConfig(type="sqlite")

    def test_postgresql_requires_credentials(self):
        """Server databases need host, database and credentials."""
        with pytest.raises(ValueError, match="host"):
            DatabaseConfig(type="postgresql", database="app", username="u", password="p")

    def test_port_range(self):
        """Ports outside 1-65535 are rejected."""
        with pytest.raises(ValueError):
            DatabaseConfig(type="postgresql", host="db", port=70000,
                           database="app", username="u", password="p")


class TestSQLFixtureConfig:
    """Test the top-level configuration model."""

    def test_default_database_is_first(self):
        config = SQLFixtureConfig(databases={
            "main": DatabaseConfig(type="sqlite", path=":memory:"),
            "other": DatabaseConfig(type="sqlite", path=":memory:"),
        })
        assert config.default_database == "main"

    def test_unknown_default_database(self):
        with pytest.raises(ValueError, match="missing"):
            SQLFixtureConfig(
                databases={"main": DatabaseConfig(type="sqlite", path=":memory:")},
                default_database="missing",
            )

    def test_fixture_settings_defaults(self):
        """Defaults keep the first table of a name and stop teardown at the first failure."""
        settings = FixtureSettings()
        assert settings.composition_strategy == CompositionStrategy.FIRST_WINS
        assert settings.teardown_fail_fast is True
        assert settings.default_assertion_mode.value == "strict"


class TestConfigParser:
    """Test loading configuration files."""

    @pytest.fixture
    def parser(self, monkeypatch):
        monkeypatch.delenv("SQLFIXTURE_CONFIG_FILE", raising=False)
        return ConfigParser()

    def test_load_with_env_vars(self, parser, tmp_path, monkeypatch):
        """Environment variables and defaults are substituted."""
        monkeypatch.setenv("FIXTURE_DB_PATH", str(tmp_path / "app.db"))
        monkeypatch.delenv("FIXTURE_STRATEGY", raising=False)
        config_file = tmp_path / "sqlfixture.yaml"
        config_file.write_text(
            "databases:\n"
            "  main:\n"
            "    driver: sqlite\n"
            "    path: ${FIXTURE_DB_PATH}\n"
            "fixture_settings:\n"
            "  composition_strategy: ${FIXTURE_STRATEGY:-merge}\n"
            "  teardown_fail_fast: false\n",
            encoding="utf-8",
        )

        config = parser.load_config(config_file)

        assert config.databases["main"].path == str(tmp_path / "app.db")
        assert config.fixture_settings.composition_strategy == CompositionStrategy.MERGE
        assert config.fixture_settings.teardown_fail_fast is False

    def test_missing_env_var(self, parser, tmp_path, monkeypatch):
        monkeypatch.delenv("FIXTURE_UNSET_VAR", raising=False)
        config_file = tmp_path / "sqlfixture.yaml"
        config_file.write_text(
            "databases:\n  main:\n    driver: sqlite\n    path: ${FIXTURE_UNSET_VAR}\n",
            encoding="utf-8",
        )

        with pytest.raises(ConfigurationError, match="FIXTURE_UNSET_VAR"):
            parser.load_config(config_file)

    def test_includes_are_merged(self, parser, tmp_path):
        """Included files provide defaults that the including file overrides."""
        (tmp_path / "databases.yaml").write_text(
            "databases:\n  main:\n    driver: sqlite\n    path: base.db\n"
            "fixture_settings:\n  teardown_fail_fast: false\n",
            encoding="utf-8",
        )
        config_file = tmp_path / "sqlfixture.yaml"
        config_file.write_text(
            "include: databases.yaml\n"
            "fixture_settings:\n  composition_strategy: merge\n",
            encoding="utf-8",
        )

        config = parser.load_config(config_file)

        assert config.databases["main"].path == "base.db"
        assert config.fixture_settings.teardown_fail_fast is False
        assert config.fixture_settings.composition_strategy == CompositionStrategy.MERGE

    def test_default_location(self, parser, tmp_path, monkeypatch):
        """Without a path the working directory is searched."""
        (tmp_path / "sqlfixture.yml").write_text(
            "databases:\n  main:\n    driver: sqlite\n    path: ':memory:'\n", encoding="utf-8"
        )
        monkeypatch.chdir(tmp_path)

        config = parser.load_config()

        assert config.default_database == "main"

    def test_missing_file(self, parser, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            parser.load_config(tmp_path / "absent.yaml")

    def test_empty_file(self, parser, tmp_path):
        config_file = tmp_path / "sqlfixture.yaml"
        config_file.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="empty"):
            parser.load_config(config_file)

    def test_invalid_config(self, parser):
        """Validation errors surface as configuration errors."""
        with pytest.raises(ConfigurationError, match="validation"):
            parser.load_config_dict({"databases": {"main": {"driver": "oracle"}}})
