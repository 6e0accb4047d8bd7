"""
Repository-layer exceptions for crawl job flows.
"""

from __future__ import annotations

import uuid


class CrawlRepositoryError(Exception):
    """Base exception for crawl repository failures."""


class CrawlJobNotFoundError(CrawlRepositoryError):
    """Raised when a referenced crawl job does not exist."""

    def __init__(self, job_id: uuid.UUID) -> None:
        self.job_id = job_id
        super().__init__(f"Crawl job not found: {job_id}")


class InvalidJobTransitionError(CrawlRepositoryError):
    """Raised when a crawl job status change would move backwards or out of a terminal state."""

    def __init__(self, job_id: uuid.UUID, current: str, target: str) -> None:
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Crawl job {job_id} cannot move from '{current}' to '{target}'.")
