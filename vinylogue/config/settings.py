"""Configuration management using Pydantic Settings.

Type-safe configuration with automatic environment variable loading and
validation. The configuration is organized into logical groups:
- LoggingConfig: Logging levels, files, and debugging options
- CredentialsConfig: Last.fm API credentials and the default username
- APIConfig: Last.fm rate limiting, timeouts, and fan-out bounds
- ChartsConfig: Weekly chart defaults
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("data/logs/vinylogue.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """API credentials and authentication settings."""

    lastfm_key: str = ""
    lastfm_secret: str = ""
    lastfm_username: str = ""


class APIConfig(BaseModel):
    """External API configuration and rate limiting."""

    # Last.fm allows roughly 5 calls/second per key
    lastfm_rate_limit: float = 5.0
    lastfm_timeout_seconds: float = 15.0
    lastfm_friends_limit: int = 500

    # Concurrent album artwork lookups per chart
    image_lookup_concurrency: int = Field(default=6, ge=1, le=6)


class ChartsConfig(BaseModel):
    """Weekly chart defaults."""

    default_min_play_count: int = Field(default=1, ge=0)
    precache_adjacent_years: bool = True


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: LASTFM_KEY, CONSOLE_LOG_LEVEL, LASTFM_API_TIMEOUT
    - Nested: CREDENTIALS__LASTFM_KEY, LOGGING__CONSOLE_LEVEL, API__LASTFM_TIMEOUT_SECONDS

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    charts: ChartsConfig = ChartsConfig()

    data_dir: Path = Path("data")

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (LASTFM_KEY) and maps them to the nested
        structure expected by the models (credentials.lastfm_key).
        """
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}

        group_mappings = {
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
            "credentials": {
                "lastfm_key": "lastfm_key",
                "lastfm_secret": "lastfm_secret",
                "lastfm_username": "lastfm_username",
            },
            "api": {
                "lastfm_api_rate_limit": "lastfm_rate_limit",
                "lastfm_api_timeout": "lastfm_timeout_seconds",
                "lastfm_friends_limit": "lastfm_friends_limit",
                "image_lookup_concurrency": "image_lookup_concurrency",
            },
            "charts": {
                "default_min_play_count": "default_min_play_count",
                "precache_adjacent_years": "precache_adjacent_years",
            },
        }
        for group, mapping in group_mappings.items():
            for env_key, field_key in mapping.items():
                if env_key in data:
                    transformed.setdefault(group, {})[field_key] = data.pop(env_key)

        for group, values in transformed.items():
            existing = data.get(group)
            if isinstance(existing, dict):
                data[group] = {**existing, **values}
            else:
                data[group] = values

        return data


# Singleton instance for application use
settings = Settings()


# =============================================================================
# FLAT KEY ACCESS
# =============================================================================

_KEY_MAP = {
    # Logging settings
    "CONSOLE_LOG_LEVEL": lambda: settings.logging.console_level,
    "FILE_LOG_LEVEL": lambda: settings.logging.file_level,
    "LOG_FILE": lambda: settings.logging.log_file,
    "LOG_REAL_TIME_DEBUG": lambda: settings.logging.real_time_debug,
    # Application settings
    "DATA_DIR": lambda: settings.data_dir,
    # Credentials
    "LASTFM_KEY": lambda: settings.credentials.lastfm_key,
    "LASTFM_SECRET": lambda: settings.credentials.lastfm_secret,
    "LASTFM_USERNAME": lambda: settings.credentials.lastfm_username,
    # Last.fm API settings
    "LASTFM_API_RATE_LIMIT": lambda: settings.api.lastfm_rate_limit,
    "LASTFM_API_TIMEOUT": lambda: settings.api.lastfm_timeout_seconds,
    "LASTFM_FRIENDS_LIMIT": lambda: settings.api.lastfm_friends_limit,
    "IMAGE_LOOKUP_CONCURRENCY": lambda: settings.api.image_lookup_concurrency,
    # Chart settings
    "DEFAULT_MIN_PLAY_COUNT": lambda: settings.charts.default_min_play_count,
    "PRECACHE_ADJACENT_YEARS": lambda: settings.charts.precache_adjacent_years,
}


def get_config(key: str, default=None):
    """Get configuration value by flat key with optional default.

    Args:
        key: Configuration key to retrieve
        default: Default value if key not found

    Returns:
        Configuration value or default

    Example:
        >>> timeout = get_config("LASTFM_API_TIMEOUT", 15.0)
    """
    if key in _KEY_MAP:
        return _KEY_MAP[key]()

    return default
