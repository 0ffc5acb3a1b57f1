"""
Configuration for the Weather Notify service.

All settings come from environment variables with local-development
defaults, so the service starts without a config file.
"""

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_WEATHER_API_URL = "https://api.weatherapi.com/v1"
HOURLY_INTERVAL_SECONDS = 60 * 60
DAILY_INTERVAL_SECONDS = 24 * 60 * 60


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    database_path: str = "subscriptions.db"

    weather_api_key: str = ""
    weather_api_url: str = DEFAULT_WEATHER_API_URL
    weather_timeout: int = 10

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_email: str = ""
    smtp_use_tls: bool = True
    smtp_timeout: int = 10

    # Base URL used to build confirm/unsubscribe links in emails
    website_url: str = "http://localhost:8000"

    hourly_interval_seconds: int = HOURLY_INTERVAL_SECONDS
    daily_interval_seconds: int = DAILY_INTERVAL_SECONDS
    scheduler_enabled: bool = True


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000),
        debug=_env_bool("DEBUG", False),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        database_path=os.getenv("DATABASE_PATH", "subscriptions.db"),
        weather_api_key=os.getenv("WEATHER_API_KEY", ""),
        weather_api_url=os.getenv("WEATHER_API_URL", DEFAULT_WEATHER_API_URL),
        weather_timeout=_env_int("WEATHER_TIMEOUT", 10),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_username=os.getenv("SMTP_USERNAME", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from_email=os.getenv("SMTP_FROM_EMAIL", ""),
        smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
        smtp_timeout=_env_int("SMTP_TIMEOUT", 10),
        website_url=os.getenv("WEBSITE_URL", "http://localhost:8000").rstrip("/"),
        hourly_interval_seconds=_env_int("HOURLY_INTERVAL_SECONDS", HOURLY_INTERVAL_SECONDS),
        daily_interval_seconds=_env_int("DAILY_INTERVAL_SECONDS", DAILY_INTERVAL_SECONDS),
        scheduler_enabled=_env_bool("SCHEDULER_ENABLED", True),
    )
