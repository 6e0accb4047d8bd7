"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.competitor import Competitor
from db.models.crawl_job import CrawlJob, CrawlJobStatus
from db.models.crawl_log import CrawlLog, CrawlLogType
from db.models.product import Product, ProductStatus

__all__ = [
    "Competitor",
    "CrawlJob",
    "CrawlJobStatus",
    "CrawlLog",
    "CrawlLogType",
    "Product",
    "ProductStatus",
]
