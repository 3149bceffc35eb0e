"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


def _build_database_settings() -> "DatabaseSettings":
    """Build database settings from environment."""

    return DatabaseSettings()


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field(
        "json",
        description="Log format: 'json' (structured) or 'plain'",
    )
    output: str = Field(
        "stdout",
        description="Log destination: 'stdout' or 'file'",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Relational storage configuration.

    SQLite is used for standalone deployments; any SQLAlchemy URL works.
    """

    url: str = Field(
        "sqlite:///./predictions.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(False, description="Echo SQL statements (debug only)")
    seed_on_startup: bool = Field(
        False,
        description="Insert default tags and sample predictions at startup",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    cors_origins: str = Field(
        "http://localhost:8000,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    max_body_bytes: int = Field(
        50 * 1024,
        description="Maximum accepted request body size in bytes",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on API routes",
    )
    rate_limit_requests: int = Field(
        20,
        description="Maximum API requests allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        300,
        description="API rate limit window size in seconds",
        ge=1,
    )
    rate_limit_suspicious_requests: int = Field(
        100,
        description="API requests per window after which the client is blocked",
        ge=1,
    )
    write_rate_limit_requests: int = Field(
        5,
        description="Maximum submissions allowed per window (per client)",
        ge=1,
    )
    write_rate_limit_window_seconds: int = Field(
        600,
        description="Submission rate limit window size in seconds",
        ge=1,
    )
    write_rate_limit_suspicious_requests: int = Field(
        25,
        description="Submissions per window after which the client is blocked",
        ge=1,
    )
    rate_limit_block_seconds: int = Field(
        3600,
        description="Cooldown applied to clients crossing the suspicious ceiling",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For hop as the client address",
    )

    bot_detection_enabled: bool = Field(
        True,
        description="Reject automated user agents and proxy-chained requests",
    )
    behavior_analysis_enabled: bool = Field(
        True,
        description="Reject repetitive or write-heavy request patterns",
    )
    behavior_window_seconds: int = Field(
        300,
        description="Look-back window for behavior analysis",
        ge=1,
    )
    behavior_max_repetitive_requests: int = Field(
        30,
        description="Requests in the window above which low action variety is rejected",
        ge=1,
    )
    behavior_min_unique_actions: int = Field(
        3,
        description="Minimum distinct actions expected from a busy client",
        ge=1,
    )
    behavior_max_writes: int = Field(
        10,
        description="Maximum write requests per client within the window",
        ge=1,
    )

    honeypot_enabled: bool = Field(True, description="Reject submissions that fill honeypot fields")
    honeypot_fields: str = Field(
        "website,phone,address,email_address,full_name,company",
        description="Comma-separated hidden form fields that must stay empty",
    )
    captcha_enabled: bool = Field(
        True,
        description="Check captcha_answer against the X-Captcha-Token header when present",
    )

    ip_allowlist: str | None = Field(
        None,
        description="Comma-separated client addresses allowed to call the API (empty allows all)",
    )
    ip_denylist: str | None = Field(
        None,
        description="Comma-separated client addresses that are always rejected",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    database: DatabaseSettings = Field(default_factory=_build_database_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def parse_csv_setting(value: str | None) -> set[str]:
    """Parse a comma-separated setting into a set of trimmed values.

    Examples:
        >>> sorted(parse_csv_setting("a, b ,c"))
        ['a', 'b', 'c']
        >>> parse_csv_setting(None)
        set()
    """
    if not value:
        return set()
    return {item.strip() for item in value.split(",") if item.strip()}


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
