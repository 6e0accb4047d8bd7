"""
app/domain package marker.
"""

from app.domain.crawl import (
    CandidateUrl,
    ClassifiedUrl,
    CompetitorTarget,
    CrawlRunResult,
    DiscoveryResult,
    DiscoverySource,
    ExtractedProduct,
    ExtractionMethod,
    RawProduct,
    optional_text,
)
from app.domain.crawl_job import (
    BulkCrawlOutcome,
    CrawlJobRecord,
    CrawlLogEntry,
    CrawlTriggerResult,
)

__all__ = [
    "BulkCrawlOutcome",
    "CandidateUrl",
    "ClassifiedUrl",
    "CompetitorTarget",
    "CrawlJobRecord",
    "CrawlLogEntry",
    "CrawlRunResult",
    "CrawlTriggerResult",
    "DiscoveryResult",
    "DiscoverySource",
    "ExtractedProduct",
    "ExtractionMethod",
    "RawProduct",
    "optional_text",
]
