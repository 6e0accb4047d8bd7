"""
Config helpers for the crawl pipeline.
"""

from app.scraping.config.loader import get_crawl_settings
from app.scraping.config.models import CrawlSettings

__all__ = [
    "CrawlSettings",
    "get_crawl_settings",
]
