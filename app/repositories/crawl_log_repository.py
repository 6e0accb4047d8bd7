"""
app/repositories/crawl_log_repository.py

Append-only persistence for crawl log entries.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import Select, insert, select
from sqlalchemy.orm import Session

from app.domain.crawl_job import CrawlLogEntry
from db.models.crawl_log import CrawlLog


class CrawlLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_insert(self, entries: Sequence[CrawlLogEntry]) -> int:
        if not entries:
            return 0

        self._session.execute(
            insert(CrawlLog),
            [
                {
                    "job_id": entry.job_id,
                    "competitor_id": entry.competitor_id,
                    "log_type": entry.log_type,
                    "message": entry.message,
                    "product_name": entry.product_name,
                    "product_url": entry.product_url,
                    "product_price": entry.product_price,
                    "filter_reason": entry.filter_reason,
                    "details": entry.details,
                    "sequence": entry.sequence,
                    "created_at": entry.created_at,
                }
                for entry in entries
            ],
        )
        return len(entries)

    def list_for_job(
        self,
        job_id: uuid.UUID,
        *,
        log_type: str | None = None,
        limit: int = 1000,
    ) -> list[CrawlLog]:
        stmt: Select[tuple[CrawlLog]] = select(CrawlLog).where(CrawlLog.job_id == job_id)
        if log_type:
            stmt = stmt.where(CrawlLog.log_type == log_type)
        stmt = stmt.order_by(CrawlLog.sequence.asc(), CrawlLog.created_at.asc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())
