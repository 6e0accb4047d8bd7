"""
Storage layer interfaces for the crawl pipeline.

The pipeline and the orchestrator only see these interfaces, so they run
unchanged against PostgreSQL or against in-memory doubles in tests.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from app.domain.crawl import CompetitorTarget, ExtractedProduct
from app.domain.crawl_job import CrawlJobRecord, CrawlLogEntry


class StorageError(RuntimeError):
    """
    Raised when a storage backend cannot complete a write.
    """


class CompetitorRegistry(ABC):
    """
    Admin-configured competitor targets.
    """

    @abstractmethod
    def get(self, competitor_id: uuid.UUID) -> CompetitorTarget | None:
        """
        Return one competitor by id.
        """

    @abstractmethod
    def get_by_id_or_name(self, identifier: str) -> CompetitorTarget | None:
        """
        Return a competitor by id, falling back to case-insensitive name.
        """

    @abstractmethod
    def list_active(self) -> list[CompetitorTarget]:
        """
        Return every active competitor.
        """

    @abstractmethod
    def touch_last_crawled(self, competitor_id: uuid.UUID, crawled_at: datetime) -> None:
        """
        Record that a crawl run was attempted.
        """


class ProductStorage(ABC):
    """
    Catalog product persistence.
    """

    @abstractmethod
    def existing_canonical_keys(self, competitor_name: str) -> set[str]:
        """
        Return every canonical key already stored for the competitor.
        """

    @abstractmethod
    def store(self, products: Sequence[ExtractedProduct]) -> set[str]:
        """
        Insert products, ignoring conflicts, and return the keys actually inserted.
        """


class CrawlJobStore(ABC):
    """
    Crawl job lifecycle persistence.
    """

    @abstractmethod
    def create(
        self,
        *,
        competitor_id: uuid.UUID,
        request_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        """
        Create a job in `pending`.
        """

    @abstractmethod
    def get(self, job_id: uuid.UUID) -> CrawlJobRecord | None:
        """
        Return one job.
        """

    @abstractmethod
    def list_recent(
        self,
        *,
        competitor_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 20,
    ) -> list[CrawlJobRecord]:
        """
        Return jobs, newest first.
        """

    @abstractmethod
    def mark_processing(self, job_id: uuid.UUID) -> CrawlJobRecord:
        """
        Move a pending job to `processing`.
        """

    @abstractmethod
    def mark_completed(
        self,
        job_id: uuid.UUID,
        *,
        products_found: int,
        products_inserted: int,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        """
        Move a processing job to `completed` with its counts.
        """

    @abstractmethod
    def mark_failed(
        self,
        job_id: uuid.UUID,
        *,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        """
        Move a job to `failed`.
        """


class CrawlLogStorage(ABC):
    """
    Append-only crawl log persistence.
    """

    @abstractmethod
    def write_batch(self, entries: Sequence[CrawlLogEntry]) -> int:
        """
        Persist entries in order and return how many were written.
        """

    @abstractmethod
    def list_for_job(
        self,
        job_id: uuid.UUID,
        *,
        log_type: str | None = None,
    ) -> list[CrawlLogEntry]:
        """
        Return a job's entries in write order.
        """


@dataclass(frozen=True)
class CrawlStores:
    """
    The storage collaborators one crawl run needs.
    """

    competitors: CompetitorRegistry
    products: ProductStorage
    jobs: CrawlJobStore
    logs: CrawlLogStorage
