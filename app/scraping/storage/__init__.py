"""
Storage layer exports.
"""

from app.scraping.storage.base import (
    CompetitorRegistry,
    CrawlJobStore,
    CrawlLogStorage,
    CrawlStores,
    ProductStorage,
    StorageError,
)
from app.scraping.storage.sqlalchemy_storage import build_sqlalchemy_stores, open_sqlalchemy_stores

__all__ = [
    "CompetitorRegistry",
    "CrawlJobStore",
    "CrawlLogStorage",
    "CrawlStores",
    "ProductStorage",
    "StorageError",
    "build_sqlalchemy_stores",
    "open_sqlalchemy_stores",
]
