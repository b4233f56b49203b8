"""Configuration management using Pydantic Settings.

This module provides type-safe configuration with automatic environment
variable loading and validation. The configuration is organized into logical
groups:
- DatabaseConfig: Database connection settings
- LoggingConfig: Logging levels and files
- CredentialsConfig: Spotify OAuth application credentials
- APIConfig: Paging and retry behaviour for the Spotify Web API
- SyncConfig: Concurrency and time bounds for a sync pass

Settings are built once at startup with ``load_settings()`` and passed
explicitly to the components that need them.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tunetransfer.domain.errors import ConfigurationError

SPOTIFY_OAUTH_REDIRECT_PATH = "/api/v0/spotify/oauth_callback"


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = "sqlite+aiosqlite:///data/db/tunetransfer.db"
    echo: bool = False
    busy_timeout_ms: int = 30000


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("data/logs/tunetransfer.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """Spotify application credentials and token cache location."""

    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_redirect_uri: str = ""
    spotify_cache_path: Path = Path("data/.spotify_cache")


class APIConfig(BaseModel):
    """Spotify Web API paging and retry configuration."""

    spotify_page_size: int = 50
    spotify_retry_count: int = 3
    spotify_retry_base_delay: float = 0.5
    spotify_retry_max_delay: float = 30.0
    spotify_request_timeout: float = 15.0


class SyncConfig(BaseModel):
    """Bounds for a single sync pass."""

    concurrency: int = 4
    pass_timeout: float = 900.0
    page_timeout: float = 120.0


# Flat environment variable name -> (settings group, field)
_FLAT_ENV_MAPPING: dict[str, tuple[str, str]] = {
    "database_url": ("database", "url"),
    "database_echo": ("database", "echo"),
    "console_log_level": ("logging", "console_level"),
    "file_log_level": ("logging", "file_level"),
    "log_file": ("logging", "log_file"),
    "spotify_client_id": ("credentials", "spotify_client_id"),
    "spotify_client_secret": ("credentials", "spotify_client_secret"),
    "spotify_redirect_uri": ("credentials", "spotify_redirect_uri"),
    "spotify_cache_path": ("credentials", "spotify_cache_path"),
    "sync_concurrency": ("sync", "concurrency"),
}

# Settings that must be present, keyed by the environment variable users set
_REQUIRED_SETTINGS: dict[str, tuple[str, str]] = {
    "SPOTIFY_CLIENT_ID": ("credentials", "spotify_client_id"),
    "SPOTIFY_CLIENT_SECRET": ("credentials", "spotify_client_secret"),
    "SPOTIFY_REDIRECT_URI": ("credentials", "spotify_redirect_uri"),
    "DATABASE_URL": ("database", "url"),
}


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: DATABASE_URL, SPOTIFY_CLIENT_ID, CONSOLE_LOG_LEVEL
    - Nested: DATABASE__URL, CREDENTIALS__SPOTIFY_CLIENT_ID, SYNC__CONCURRENCY

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="allow",
    )

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    sync: SyncConfig = SyncConfig()

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Map flat environment variables (DATABASE_URL) onto nested groups."""
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}
        for env_key, (group, field_key) in _FLAT_ENV_MAPPING.items():
            if env_key in data:
                value = data.pop(env_key)
            elif env_key.upper() in os.environ:
                value = os.environ[env_key.upper()]
            else:
                continue
            transformed.setdefault(group, {})[field_key] = value

        for group, values in transformed.items():
            existing = data.get(group)
            if isinstance(existing, dict):
                data[group] = {**values, **existing}
            elif existing is None:
                data[group] = values

        return data

    def missing_required(self) -> list[str]:
        """Return the names of all required settings that are empty."""
        missing = []
        for env_name, (group, field_key) in _REQUIRED_SETTINGS.items():
            value = getattr(getattr(self, group), field_key)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(env_name)
        return missing

    def validate_required(self) -> "Settings":
        """Fail fast with every missing or invalid required setting at once.

        Raises:
            ConfigurationError: Listing all missing environment variables, or
                describing an invalid OAuth redirect URI.
        """
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                "missing configuration environment variable(s): "
                + ", ".join(missing)
            )

        if SPOTIFY_OAUTH_REDIRECT_PATH not in self.credentials.spotify_redirect_uri:
            raise ConfigurationError(
                f"Spotify OAuth redirect URI must point to {SPOTIFY_OAUTH_REDIRECT_PATH}"
            )

        if self.sync.concurrency < 1:
            raise ConfigurationError("SYNC__CONCURRENCY must be at least 1")

        # Every attempt of a page request must fit inside the page time limit
        attempts_budget = self.api.spotify_request_timeout * (
            self.api.spotify_retry_count + 1
        )
        if self.sync.page_timeout <= attempts_budget:
            raise ConfigurationError(
                f"SYNC__PAGE_TIMEOUT ({self.sync.page_timeout:g}s) must exceed "
                f"the request timeout times attempts ({attempts_budget:g}s)"
            )

        return self


def load_settings(**overrides: Any) -> Settings:
    """Build and validate the settings object used for the whole process.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    return Settings(**overrides).validate_required()
