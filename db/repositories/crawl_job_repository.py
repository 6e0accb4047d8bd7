"""
Repository for crawl job lifecycle persistence and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.crawl_job import CrawlJob, CrawlJobStatus
from db.repositories.errors import CrawlJobNotFoundError, InvalidJobTransitionError


def ensure_transition(job_id: uuid.UUID, current: str, target: str) -> None:
    """
    Raise InvalidJobTransitionError unless `current -> target` is allowed.
    """

    if not CrawlJobStatus.can_transition(current, target):
        raise InvalidJobTransitionError(job_id, current, target)


class CrawlJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_job(
        self,
        *,
        competitor_id: uuid.UUID,
        request_payload: dict[str, Any] | None = None,
    ) -> CrawlJob:
        job = CrawlJob(
            competitor_id=competitor_id,
            status=CrawlJobStatus.PENDING,
            products_found=0,
            products_inserted=0,
            request_payload=request_payload,
        )
        self._session.add(job)
        self._session.flush()
        self._session.refresh(job)
        return job

    def get_job(self, job_id: uuid.UUID) -> CrawlJob | None:
        return self._session.get(CrawlJob, job_id)

    def list_jobs(
        self,
        *,
        limit: int = 20,
        competitor_id: uuid.UUID | None = None,
        status: str | None = None,
    ) -> list[CrawlJob]:
        stmt: Select[tuple[CrawlJob]] = select(CrawlJob)

        if competitor_id is not None:
            stmt = stmt.where(CrawlJob.competitor_id == competitor_id)
        if status:
            stmt = stmt.where(CrawlJob.status == status)

        stmt = stmt.order_by(CrawlJob.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def mark_processing(self, *, job_id: uuid.UUID) -> CrawlJob:
        job = self._require(job_id)
        ensure_transition(job_id, job.status, CrawlJobStatus.PROCESSING)
        job.status = CrawlJobStatus.PROCESSING
        job.started_at = datetime.now(timezone.utc)
        job.completed_at = None
        job.error_message = None
        return job

    def mark_completed(
        self,
        *,
        job_id: uuid.UUID,
        products_found: int,
        products_inserted: int,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJob:
        job = self._require(job_id)
        ensure_transition(job_id, job.status, CrawlJobStatus.COMPLETED)
        job.status = CrawlJobStatus.COMPLETED
        job.completed_at = datetime.now(timezone.utc)
        job.products_found = products_found
        job.products_inserted = products_inserted
        job.result_payload = result_payload
        job.error_message = None
        return job

    def mark_failed(
        self,
        *,
        job_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJob:
        job = self._require(job_id)
        ensure_transition(job_id, job.status, CrawlJobStatus.FAILED)
        job.status = CrawlJobStatus.FAILED
        job.completed_at = datetime.now(timezone.utc)
        job.error_message = error_message
        if result_payload is not None:
            job.result_payload = result_payload
        return job

    def _require(self, job_id: uuid.UUID) -> CrawlJob:
        job = self.get_job(job_id)
        if job is None:
            raise CrawlJobNotFoundError(job_id)
        return job
