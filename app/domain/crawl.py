"""
app/domain/crawl.py

Domain models flowing through the crawl-and-extraction pipeline.

Optional fields follow one convention: ``None`` means the value is absent
(never returned by the extraction capability, or rejected by validation).
Empty or whitespace-only strings are normalized to ``None`` on the way in via
``optional_text`` so downstream code never has to tell "" from missing.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


class DiscoverySource:
    LISTING_PAGE = "listing_page"
    SITE_MAP = "site_map"
    EXTRACTION_LINKS = "extraction_links"


class ExtractionMethod:
    BULK = "bulk-extract"
    FALLBACK = "fallback-extract"


def optional_text(value: Any) -> str | None:
    """
    Return stripped text, or None when the value is absent, non-text or blank.
    """

    if value is None:
        return None
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class CompetitorTarget:
    """
    Crawl configuration for one competitor, read-only to the pipeline.
    """

    id: uuid.UUID
    name: str
    base_scrape_url: str
    url_patterns: tuple[str, ...] = ()
    excluded_category_keywords: tuple[str, ...] = ()
    last_crawled_at: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CandidateUrl:
    url: str
    source: str = DiscoverySource.LISTING_PAGE


@dataclass(frozen=True)
class ClassifiedUrl:
    candidate: CandidateUrl
    is_product: bool
    canonical_key: str
    rule: str

    @property
    def url(self) -> str:
        return self.candidate.url


@dataclass(frozen=True)
class RawProduct:
    """
    One product as returned by the extraction capability, before normalization.
    """

    name: str | None
    price: str | None
    image_url: str | None
    product_url: str | None

    @classmethod
    def from_payload(cls, payload: Any, *, product_url: str | None = None) -> "RawProduct":
        if not isinstance(payload, dict):
            return cls(name=None, price=None, image_url=None, product_url=product_url)
        return cls(
            name=optional_text(payload.get("name")),
            price=optional_text(payload.get("price")),
            image_url=optional_text(payload.get("image_url")),
            product_url=product_url or optional_text(payload.get("product_url")),
        )


@dataclass(frozen=True)
class ExtractedProduct:
    """
    Normalized product ready for persistence.
    """

    name: str
    raw_price: str | None
    normalized_price: Decimal | None
    image_url: str | None
    source_url: str
    canonical_key: str
    competitor_name: str


@dataclass
class DiscoveryResult:
    """
    Outcome of URL discovery for one listing page.
    """

    candidates: list[CandidateUrl] = field(default_factory=list)
    listing_link_count: int = 0
    site_map_link_count: int = 0
    site_map_used: bool = False
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CrawlRunResult:
    """
    Summary of one completed pipeline run.
    """

    method: str
    products_found: int
    products_inserted: int
    discovered_urls: int
    accepted_urls: int
    error_count: int

    def as_payload(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "products_found": self.products_found,
            "products_inserted": self.products_inserted,
            "discovered_urls": self.discovered_urls,
            "accepted_urls": self.accepted_urls,
            "error_count": self.error_count,
        }
