"""
db/models/crawl_log.py

Append-only trail of per-URL dispositions and milestones within a crawl job.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, CreatedAtMixin


class CrawlLogType:
    INFO = "info"
    ADDED = "added"
    FILTERED = "filtered"
    SKIPPED = "skipped"
    ERROR = "error"

    ALL = frozenset({INFO, ADDED, FILTERED, SKIPPED, ERROR})


class CrawlLog(Base, CreatedAtMixin):
    __tablename__ = "crawl_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crawl_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    competitor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("competitors.id", ondelete="CASCADE"),
        nullable=False,
    )
    log_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="info, added, filtered, skipped, error",
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    product_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_price: Mapped[str | None] = mapped_column(Text, nullable=True)
    filter_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )
    sequence: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Write order within the job",
    )

    __table_args__ = (
        Index("ix_crawl_logs_job_id", "job_id"),
        Index("ix_crawl_logs_competitor_id", "competitor_id"),
        Index("ix_crawl_logs_log_type", "log_type"),
        Index("ix_crawl_logs_created_at", "created_at"),
    )
