"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Some image hosts reject default client identifiers.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Archive storage
    archive_root: str = "./data/archive"
    archive_default_label: str = "archived"
    # Max images rendered for a search with show=True
    archive_search_display_limit: int = 5

    # Downloads
    archive_download_timeout: float = 30.0
    archive_user_agent: str = DEFAULT_USER_AGENT

    # Inter-service auth (empty = development mode, auth disabled)
    service_auth_token: str = ""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
