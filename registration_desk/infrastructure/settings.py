"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from typing import Optional

from registration_desk.infrastructure.config_manager import DatabaseConfig, get_database_config

# Application metadata
APP_NAME = "Registration-Desk"
APP_VERSION = "0.1.0"


class Settings:
    """Application settings loaded from configuration manager and environment."""

    def __init__(self):
        self._db_config: Optional[DatabaseConfig] = None

        self.app_name = os.getenv("RD_APP_NAME", APP_NAME)

        # Logging
        self.log_level = os.getenv("RD_LOG_LEVEL", "INFO")
        self.log_json = os.getenv("RD_LOG_JSON", "false").lower() == "true"

    @property
    def db_config(self) -> DatabaseConfig:
        """Database configuration, loaded lazily on first access."""
        if self._db_config is None:
            self._db_config = get_database_config()
        return self._db_config

    def get_db_path(self) -> str:
        """Get database path for DuckDB.

        Returns:
            Database path or ':memory:' for in-memory database
        """
        if self.db_config.db_type == "duckdb":
            return self.db_config.db_path or ":memory:"
        raise ValueError(f"Database type '{self.db_config.db_type}' does not use db_path")


# Global settings instance
settings = Settings()
