"""Unit tests for configuration loading."""

import json

import pytest
from pydantic import ValidationError

from registration_desk.infrastructure.config_manager import ConfigManager, DatabaseConfig, get_database_config
from registration_desk.infrastructure.settings import Settings


class TestDatabaseConfig:
    """Test suite for DatabaseConfig validation."""

    def test_db_type_normalized(self):
        """Test the store type is lower-cased."""
        assert DatabaseConfig(db_type="DuckDB").db_type == "duckdb"

    def test_unsupported_db_type(self):
        """Test unknown store types are rejected."""
        with pytest.raises(ValidationError):
            DatabaseConfig(db_type="postgresql")

    def test_db_path_directory_must_exist(self, tmp_path):
        """Test db_path validation."""
        assert DatabaseConfig(db_type="duckdb", db_path=":memory:").db_path == ":memory:"
        assert DatabaseConfig(db_type="duckdb", db_path=str(tmp_path / "a.duckdb")).db_path == str(tmp_path / "a.duckdb")
        with pytest.raises(ValidationError):
            DatabaseConfig(db_type="duckdb", db_path=str(tmp_path / "nope" / "a.duckdb"))


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_from_environment(self, monkeypatch):
        """Test RD_DB_* variables are read."""
        monkeypatch.setenv("RD_DB_TYPE", "memory")
        monkeypatch.delenv("RD_DB_PATH", raising=False)

        config = get_database_config()

        assert config.db_type == "memory"
        assert config.db_path is None

    def test_defaults_to_duckdb(self, monkeypatch):
        """Test DuckDB is the default store."""
        monkeypatch.delenv("RD_DB_TYPE", raising=False)
        assert ConfigManager.from_environment().get_database_config().db_type == "duckdb"

    def test_from_file(self, tmp_path):
        """Test loading a JSON configuration file."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"database": {"db_type": "memory"}}))

        manager = ConfigManager.from_file(str(config_file))

        assert manager.get_database_config().db_type == "memory"
        assert manager.get("database.db_type") == "memory"
        assert manager.get("database.db_path", "fallback") == "fallback"

    def test_from_file_errors(self, tmp_path):
        """Test missing and malformed configuration files."""
        with pytest.raises(FileNotFoundError):
            ConfigManager.from_file(str(tmp_path / "missing.json"))

        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ValueError):
            ConfigManager.from_file(str(bad))


class TestSettings:
    """Test suite for application settings."""

    def test_logging_settings_from_environment(self, monkeypatch):
        """Test RD_LOG_* variables are read."""
        monkeypatch.setenv("RD_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("RD_LOG_JSON", "true")
        monkeypatch.setenv("RD_APP_NAME", "Front Desk")

        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.log_json is True
        assert settings.app_name == "Front Desk"

    def test_get_db_path(self, monkeypatch):
        """Test the DuckDB path falls back to an in-memory database."""
        monkeypatch.setenv("RD_DB_TYPE", "duckdb")
        monkeypatch.delenv("RD_DB_PATH", raising=False)
        assert Settings().get_db_path() == ":memory:"

        monkeypatch.setenv("RD_DB_TYPE", "memory")
        with pytest.raises(ValueError):
            Settings().get_db_path()
