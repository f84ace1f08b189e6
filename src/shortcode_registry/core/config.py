"""Application configuration settings."""

from pathlib import Path
from functools import lru_cache
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHORTCODE_REGISTRY_",
        extra="ignore",
    )

    # Application
    app_title: str = "Shortcode Registry"
    app_version: str = "0.1.0"
    app_description: str = "Short links with expiry and per-visit click analytics"
    log_level: str = "INFO"

    # Storage
    storage_backend: Literal["memory", "json", "sqlite"] = "json"
    storage_path: str = "shortcodes.json"

    # Registry
    default_validity_minutes: int = 30
    max_validity_minutes: int = 60 * 24 * 365
    short_code_length: int = 6
    max_custom_shortcode_length: int = 10
    max_generation_attempts: int = 10

    # Telemetry
    telemetry_url: Optional[str] = None
    telemetry_token: Optional[str] = None
    telemetry_timeout: float = 5.0
    telemetry_stack: str = "backend"

    @property
    def storage_file(self) -> Path:
        """Get storage path as Path object."""
        return Path(self.storage_path)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
