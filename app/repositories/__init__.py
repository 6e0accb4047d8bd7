"""
app/repositories package marker.
"""

from app.repositories.competitor_repository import CompetitorRepository
from app.repositories.crawl_log_repository import CrawlLogRepository
from app.repositories.product_repository import ProductRepository

__all__ = [
    "CompetitorRepository",
    "CrawlLogRepository",
    "ProductRepository",
]
