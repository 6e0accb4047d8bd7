"""
SQLAlchemy-backed storage implementations for the crawl pipeline.

Every write commits its own unit of work so a crash mid-run keeps what was
already persisted.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.crawl import CompetitorTarget, ExtractedProduct
from app.domain.crawl_job import CrawlJobRecord, CrawlLogEntry
from app.repositories.competitor_repository import CompetitorRepository
from app.repositories.crawl_log_repository import CrawlLogRepository
from app.repositories.product_repository import ProductRepository
from app.scraping.storage.base import (
    CompetitorRegistry,
    CrawlJobStore,
    CrawlLogStorage,
    CrawlStores,
    ProductStorage,
    StorageError,
)
from db.models.competitor import Competitor
from db.models.crawl_job import CrawlJob
from db.models.crawl_log import CrawlLog
from db.repositories.crawl_job_repository import CrawlJobRepository
from db.session import SessionLocal


def to_competitor_target(row: Competitor) -> CompetitorTarget:
    return CompetitorTarget(
        id=row.id,
        name=row.name,
        base_scrape_url=row.scrape_url,
        url_patterns=tuple(row.product_url_patterns or ()),
        excluded_category_keywords=tuple(row.excluded_categories or ()),
        last_crawled_at=row.last_crawled_at,
        is_active=bool(row.is_active),
    )


def to_job_record(row: CrawlJob) -> CrawlJobRecord:
    return CrawlJobRecord(
        id=row.id,
        competitor_id=row.competitor_id,
        status=row.status,
        products_found=row.products_found,
        products_inserted=row.products_inserted,
        created_at=row.created_at,
        updated_at=row.updated_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
        error_message=row.error_message,
        request_payload=row.request_payload,
        result_payload=row.result_payload,
    )


def to_log_entry(row: CrawlLog) -> CrawlLogEntry:
    return CrawlLogEntry(
        job_id=row.job_id,
        competitor_id=row.competitor_id,
        log_type=row.log_type,
        message=row.message,
        product_name=row.product_name,
        product_url=row.product_url,
        product_price=row.product_price,
        filter_reason=row.filter_reason,
        details=dict(row.details or {}),
        sequence=row.sequence,
        created_at=row.created_at,
    )


class _SessionBound:
    def __init__(self, session: Session) -> None:
        self._session = session

    def _commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise


class SQLAlchemyCompetitorRegistry(_SessionBound, CompetitorRegistry):
    def get(self, competitor_id: uuid.UUID) -> CompetitorTarget | None:
        row = CompetitorRepository(self._session).get(competitor_id)
        return to_competitor_target(row) if row is not None else None

    def get_by_id_or_name(self, identifier: str) -> CompetitorTarget | None:
        row = CompetitorRepository(self._session).get_by_id_or_name(identifier)
        return to_competitor_target(row) if row is not None else None

    def list_active(self) -> list[CompetitorTarget]:
        return [to_competitor_target(row) for row in CompetitorRepository(self._session).list_active()]

    def touch_last_crawled(self, competitor_id: uuid.UUID, crawled_at: datetime) -> None:
        CompetitorRepository(self._session).touch_last_crawled(competitor_id, crawled_at)
        self._commit()


class SQLAlchemyProductStorage(_SessionBound, ProductStorage):
    """
    Persist products through the repository and DB session.
    """

    def existing_canonical_keys(self, competitor_name: str) -> set[str]:
        return ProductRepository(self._session).existing_canonical_keys(competitor_name)

    def store(self, products: Sequence[ExtractedProduct]) -> set[str]:
        if not products:
            return set()

        try:
            inserted = ProductRepository(self._session).insert_ignoring_conflicts(products)
            self._session.commit()
            return inserted
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Product insert failed: {exc}") from exc


class SQLAlchemyCrawlJobStore(_SessionBound, CrawlJobStore):
    def create(
        self,
        *,
        competitor_id: uuid.UUID,
        request_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        job = CrawlJobRepository(self._session).create_job(
            competitor_id=competitor_id,
            request_payload=request_payload,
        )
        self._commit()
        return to_job_record(job)

    def get(self, job_id: uuid.UUID) -> CrawlJobRecord | None:
        job = CrawlJobRepository(self._session).get_job(job_id)
        return to_job_record(job) if job is not None else None

    def list_recent(
        self,
        *,
        competitor_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 20,
    ) -> list[CrawlJobRecord]:
        jobs = CrawlJobRepository(self._session).list_jobs(
            limit=limit,
            competitor_id=competitor_id,
            status=status,
        )
        return [to_job_record(job) for job in jobs]

    def mark_processing(self, job_id: uuid.UUID) -> CrawlJobRecord:
        job = CrawlJobRepository(self._session).mark_processing(job_id=job_id)
        self._commit()
        return to_job_record(job)

    def mark_completed(
        self,
        job_id: uuid.UUID,
        *,
        products_found: int,
        products_inserted: int,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        job = CrawlJobRepository(self._session).mark_completed(
            job_id=job_id,
            products_found=products_found,
            products_inserted=products_inserted,
            result_payload=result_payload,
        )
        self._commit()
        return to_job_record(job)

    def mark_failed(
        self,
        job_id: uuid.UUID,
        *,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        job = CrawlJobRepository(self._session).mark_failed(
            job_id=job_id,
            error_message=error_message,
            result_payload=result_payload,
        )
        self._commit()
        return to_job_record(job)


class SQLAlchemyCrawlLogStorage(_SessionBound, CrawlLogStorage):
    def write_batch(self, entries: Sequence[CrawlLogEntry]) -> int:
        if not entries:
            return 0
        try:
            written = CrawlLogRepository(self._session).bulk_insert(entries)
            self._session.commit()
            return written
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StorageError(f"Crawl log write failed: {exc}") from exc

    def list_for_job(
        self,
        job_id: uuid.UUID,
        *,
        log_type: str | None = None,
    ) -> list[CrawlLogEntry]:
        rows = CrawlLogRepository(self._session).list_for_job(job_id, log_type=log_type)
        return [to_log_entry(row) for row in rows]


def build_sqlalchemy_stores(session: Session) -> CrawlStores:
    return CrawlStores(
        competitors=SQLAlchemyCompetitorRegistry(session),
        products=SQLAlchemyProductStorage(session),
        jobs=SQLAlchemyCrawlJobStore(session),
        logs=SQLAlchemyCrawlLogStorage(session),
    )


@contextmanager
def open_sqlalchemy_stores(
    session_factory: Callable[[], Session] = SessionLocal,
) -> Iterator[CrawlStores]:
    """
    Yield stores bound to a fresh session, closed on exit.
    """

    session = session_factory()
    try:
        yield build_sqlalchemy_stores(session)
    finally:
        session.close()
