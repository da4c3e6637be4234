"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All configuration is loaded from HEALTH_* environment variables (or .env file)."""

    # --- App ---
    app_name: str = "Health Collector"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Platform ---
    platform: str | None = None  # overrides sys.platform detection (android | ios)

    # --- Collector tuning ---
    collector_config_path: str | None = None  # defaults to the bundled YAML

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
