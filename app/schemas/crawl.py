"""
Schemas for crawl trigger, job status and crawl log endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class CrawlTriggerRequest(BaseModel):
    competitor: str = Field(min_length=1, description="Competitor id or name")
    limit: int | None = Field(default=None, ge=1, description="Max products to extract")


class BulkCrawlRequest(BaseModel):
    limit: int | None = Field(default=None, ge=1, description="Max products per competitor")


class CrawlJobAcceptedResponse(BaseModel):
    success: bool = True
    job_id: UUID
    competitor_name: str
    status: str
    created_at: datetime


class BulkCrawlOutcomeResponse(BaseModel):
    competitor_id: UUID
    competitor_name: str
    success: bool
    job_id: UUID | None = None
    error: str | None = None


class BulkCrawlAcceptedResponse(BaseModel):
    success: bool
    limit: int
    results: list[BulkCrawlOutcomeResponse] = Field(default_factory=list)


class CrawlJobStatusResponse(BaseModel):
    job_id: UUID
    competitor_id: UUID
    status: str
    products_found: int
    products_inserted: int
    created_at: datetime
    updated_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    request_payload: dict[str, Any] | None = None
    result_payload: dict[str, Any] | None = None
    error_message: str | None = None


class CrawlJobListResponse(BaseModel):
    jobs: list[CrawlJobStatusResponse] = Field(default_factory=list)


class CrawlLogEntryResponse(BaseModel):
    log_type: str
    message: str
    product_name: str | None = None
    product_url: str | None = None
    product_price: str | None = None
    filter_reason: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class CrawlLogListResponse(BaseModel):
    job_id: UUID
    logs: list[CrawlLogEntryResponse] = Field(default_factory=list)
