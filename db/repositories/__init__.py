"""
Repository layer exports.
"""

from db.repositories.crawl_job_repository import CrawlJobRepository, ensure_transition
from db.repositories.errors import (
    CrawlJobNotFoundError,
    CrawlRepositoryError,
    InvalidJobTransitionError,
)

__all__ = [
    "CrawlJobRepository",
    "ensure_transition",
    "CrawlRepositoryError",
    "CrawlJobNotFoundError",
    "InvalidJobTransitionError",
]
