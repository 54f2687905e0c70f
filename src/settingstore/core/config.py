"""Configuration management for settingstore.

Uses Pydantic Settings for type-safe, environment-based configuration.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv(override=True)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # App configuration
    app_name: str = Field("settingstore", alias="SETTINGSTORE_APP_NAME")
    environment: str = Field("development", alias="SETTINGSTORE_ENVIRONMENT")
    # Display timezone for last-updated timestamps when none is requested
    app_timezone: str = Field("UTC", alias="SETTINGSTORE_APP_TIMEZONE")

    # Database configuration
    # Required only once an engine is created
    database_url: str | None = Field(None, alias="SETTINGSTORE_DATABASE_URL")
    database_pool_size: int = 20
    database_max_overflow: int = 30
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600

    # Redis configuration
    # Set SETTINGSTORE_REDIS_URL to enable Redis-backed caching; omit for in-memory.
    redis_url: str | None = Field(None, alias="SETTINGSTORE_REDIS_URL")
    redis_connection_timeout: int = Field(5, alias="SETTINGSTORE_REDIS_CONNECTION_TIMEOUT")
    redis_socket_timeout: int = Field(5, alias="SETTINGSTORE_REDIS_SOCKET_TIMEOUT")
    redis_required: bool = Field(False, alias="SETTINGSTORE_REDIS_REQUIRED")
    redis_fallback_enabled: bool = Field(True, alias="SETTINGSTORE_REDIS_FALLBACK_ENABLED")

    # Settings store configuration
    settings_table_name: str = Field("settings", alias="SETTINGSTORE_TABLE_NAME")
    settings_cache_prefix: str = Field("settings", alias="SETTINGSTORE_CACHE_PREFIX")
    # Minutes. None or <= 0 caches forever.
    settings_cache_ttl: int | None = Field(None, alias="SETTINGSTORE_CACHE_TTL")

    # Logging configuration
    log_level: str = Field("INFO", alias="SETTINGSTORE_LOG_LEVEL")
    log_format: str = Field("text", alias="SETTINGSTORE_LOG_FORMAT")  # text or json
    log_dir: str | None = Field(None, alias="SETTINGSTORE_LOG_DIR")

    @property
    def redis_enabled(self) -> bool:
        """Whether Redis should be used, based on SETTINGSTORE_REDIS_URL being set."""
        return bool(self.redis_url)

    @property
    def cache_forever(self) -> bool:
        """True when settings should be cached without expiry."""
        return self.settings_cache_ttl is None or self.settings_cache_ttl <= 0

    @property
    def cache_ttl_seconds(self) -> int | None:
        """The configured cache TTL in seconds, or None when caching forever."""
        if self.cache_forever:
            return None
        return self.settings_cache_ttl * 60

    @field_validator("settings_table_name", "settings_cache_prefix")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value must be a non-empty string")
        return v.strip()

    @field_validator("app_timezone")
    @classmethod
    def validate_app_timezone(cls, v: str) -> str:
        """Validate that the timezone is a known IANA zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = ["text", "json"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra environment variables instead of forbidding them
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """Get a fresh settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance - will be created when first accessed
settings = None


def get_settings_instance() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global settings  # noqa: PLW0603
    if settings is None:
        settings = get_settings()
    return settings


def reset_settings_instance() -> None:
    """Drop the global settings instance (for testing only)."""
    global settings  # noqa: PLW0603
    settings = None
