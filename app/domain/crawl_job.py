"""
app/domain/crawl_job.py

Storage-independent views of crawl jobs and crawl log entries.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class CrawlJobRecord:
    id: uuid.UUID
    competitor_id: uuid.UUID
    status: str
    products_found: int
    products_inserted: int
    created_at: datetime
    updated_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    request_payload: dict[str, Any] | None = None
    result_payload: dict[str, Any] | None = None


@dataclass(frozen=True)
class CrawlLogEntry:
    """
    One immutable disposition or milestone within a crawl job.
    """

    job_id: uuid.UUID
    competitor_id: uuid.UUID
    log_type: str
    message: str
    product_name: str | None = None
    product_url: str | None = None
    product_price: str | None = None
    filter_reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class CrawlTriggerResult:
    """
    Immediate response for a fire-and-forget crawl trigger.
    """

    job: CrawlJobRecord
    competitor_name: str


@dataclass(frozen=True)
class BulkCrawlOutcome:
    competitor_id: uuid.UUID
    competitor_name: str
    success: bool
    job_id: uuid.UUID | None = None
    error: str | None = None
