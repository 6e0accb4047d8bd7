"""
app/schemas package marker.
"""

from app.schemas.crawl import (
    BulkCrawlAcceptedResponse,
    BulkCrawlOutcomeResponse,
    BulkCrawlRequest,
    CrawlJobAcceptedResponse,
    CrawlJobListResponse,
    CrawlJobStatusResponse,
    CrawlLogEntryResponse,
    CrawlLogListResponse,
    CrawlTriggerRequest,
)

__all__ = [
    "BulkCrawlAcceptedResponse",
    "BulkCrawlOutcomeResponse",
    "BulkCrawlRequest",
    "CrawlJobAcceptedResponse",
    "CrawlJobListResponse",
    "CrawlJobStatusResponse",
    "CrawlLogEntryResponse",
    "CrawlLogListResponse",
    "CrawlTriggerRequest",
]
