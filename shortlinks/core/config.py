"""Application configuration settings."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Aliases accepted for log_level, mapped to stdlib level names
LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHORTLINKS_",
        extra="ignore",
    )

    # Application
    app_title: str = "Shortlinks Service"
    app_version: str = "0.1.0"
    app_description: str = "URL shortener with expiring links and click analytics"
    base_url: Optional[str] = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 3000

    # Shortcodes
    default_validity_minutes: int = 24 * 60
    short_code_length: int = 8
    max_generation_attempts: int = 10

    # Expired records are evicted lazily; a positive interval adds a sweep
    sweep_interval_seconds: float = 0

    # Geolocation: path to a MaxMind GeoLite2/GeoIP2 City database
    geoip_db_path: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_api_url: Optional[str] = None
    log_api_token: Optional[str] = None
    log_stack: str = "backend"
    log_timeout_seconds: float = 5.0
    log_queue_size: int = 1000

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Normalize to a stdlib level name that uvicorn also accepts."""
        level = value.strip().upper()
        level = LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
