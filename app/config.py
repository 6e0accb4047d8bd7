"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from db.config import env_float, env_optional_str, env_str, load_env_files

DEFAULT_FIRECRAWL_BASE_URL = "https://api.firecrawl.dev"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level service settings.
    """

    environment: str
    log_level: str


@dataclass(frozen=True)
class FirecrawlSettings:
    """
    Scrape/extract capability connection settings.
    """

    api_key: str | None = None
    base_url: str = DEFAULT_FIRECRAWL_BASE_URL
    links_timeout_seconds: float = 30.0
    extract_timeout_seconds: float = 60.0


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.
    """

    _load_env_once()
    return AppSettings(
        environment=env_str("ENVIRONMENT", "local").lower(),
        log_level=env_str("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_firecrawl_settings() -> FirecrawlSettings:
    """
    Return Firecrawl connector settings from environment variables.
    """

    _load_env_once()
    return FirecrawlSettings(
        api_key=env_optional_str("FIRECRAWL_API_KEY"),
        base_url=env_str("FIRECRAWL_BASE_URL", DEFAULT_FIRECRAWL_BASE_URL).rstrip("/"),
        links_timeout_seconds=max(1.0, env_float("FIRECRAWL_LINKS_TIMEOUT_SECONDS", 30.0)),
        extract_timeout_seconds=max(1.0, env_float("FIRECRAWL_EXTRACT_TIMEOUT_SECONDS", 60.0)),
    )
