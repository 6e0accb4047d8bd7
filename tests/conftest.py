"""
tests/conftest.py

Shared in-memory doubles for the crawl pipeline.

No network, no database: the scrape capability is scripted per test and every
store keeps its state in plain dicts and lists.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Sequence
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.connectors.base import ExtractionResponse, ScrapeConnector, ScrapeRequestError
from app.domain.crawl import CompetitorTarget, ExtractedProduct
from app.domain.crawl_job import CrawlJobRecord, CrawlLogEntry
from app.scraping.config.models import CrawlSettings
from app.scraping.storage.base import (
    CompetitorRegistry,
    CrawlJobStore,
    CrawlLogStorage,
    CrawlStores,
    ProductStorage,
)
from db.models.crawl_job import CrawlJobStatus
from db.repositories.crawl_job_repository import ensure_transition
from db.repositories.errors import CrawlJobNotFoundError

BASE_URL = "https://shop.example.com/nl/new-in"


# ---------------------------------------------------------------------------
# Scripted scrape capability
# ---------------------------------------------------------------------------


class FakeScrapeConnector(ScrapeConnector):
    """
    Scripted capability.

    `extraction_script` is consumed one item per bulk call; an exception item
    is raised, an ExtractionResponse is returned. The final item repeats once
    the script runs out.
    """

    def __init__(
        self,
        *,
        links: Sequence[str] | Exception = (),
        site_map_links: Sequence[str] | Exception = (),
        extraction_script: Sequence[ExtractionResponse | Exception] = (),
        products_by_url: dict[str, dict[str, Any] | None | Exception] | None = None,
    ) -> None:
        self.links = links
        self.site_map_links = site_map_links
        self.extraction_script = list(extraction_script) or [ExtractionResponse()]
        self.products_by_url = products_by_url or {}
        self.link_calls: list[str] = []
        self.site_map_calls: list[dict[str, Any]] = []
        self.extraction_calls: list[dict[str, Any]] = []
        self.product_calls: list[str] = []

    def scrape_for_links(self, url: str) -> list[str]:
        self.link_calls.append(url)
        if isinstance(self.links, Exception):
            raise self.links
        return list(self.links)

    def scrape_with_extraction(
        self,
        url: str,
        *,
        prompt: str,
        schema: dict[str, Any],
        wait_for_ms: int,
        timeout_ms: int,
    ) -> ExtractionResponse:
        index = min(len(self.extraction_calls), len(self.extraction_script) - 1)
        self.extraction_calls.append(
            {"url": url, "prompt": prompt, "wait_for_ms": wait_for_ms, "timeout_ms": timeout_ms}
        )
        step = self.extraction_script[index]
        if isinstance(step, Exception):
            raise step
        return step

    def extract_product(self, url: str) -> dict[str, Any] | None:
        self.product_calls.append(url)
        outcome = self.products_by_url.get(url)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def site_map(self, url: str, *, search: str | None, limit: int) -> list[str]:
        self.site_map_calls.append({"url": url, "search": search, "limit": limit})
        if isinstance(self.site_map_links, Exception):
            raise self.site_map_links
        return list(self.site_map_links)


def http_error(status_code: int) -> ScrapeRequestError:
    return ScrapeRequestError(f"HTTP {status_code}: scripted", status_code=status_code)


def product_payload(slug: str, *, price: str = "€ 49,95", name: str | None = None) -> dict[str, Any]:
    return {
        "name": name or slug.replace("-", " ").title(),
        "price": price,
        "image_url": f"https://cdn.shop.example.com/images/{slug}.jpg",
        "product_url": f"https://shop.example.com/products/{slug}",
    }


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------


class InMemoryCompetitorRegistry(CompetitorRegistry):
    def __init__(self, targets: Sequence[CompetitorTarget] = ()) -> None:
        self.targets: dict[uuid.UUID, CompetitorTarget] = {target.id: target for target in targets}
        self.touched: list[uuid.UUID] = []

    def get(self, competitor_id: uuid.UUID) -> CompetitorTarget | None:
        return self.targets.get(competitor_id)

    def get_by_id_or_name(self, identifier: str) -> CompetitorTarget | None:
        try:
            found = self.targets.get(uuid.UUID(identifier))
        except ValueError:
            found = None
        if found is not None:
            return found
        lowered = identifier.strip().lower()
        for target in self.targets.values():
            if target.name.lower() == lowered:
                return target
        return None

    def list_active(self) -> list[CompetitorTarget]:
        return sorted(
            (target for target in self.targets.values() if target.is_active),
            key=lambda target: target.name,
        )

    def touch_last_crawled(self, competitor_id: uuid.UUID, crawled_at: datetime) -> None:
        self.touched.append(competitor_id)
        target = self.targets.get(competitor_id)
        if target is not None:
            self.targets[competitor_id] = dataclasses.replace(target, last_crawled_at=crawled_at)


class InMemoryProductStorage(ProductStorage):
    def __init__(self, existing: dict[str, set[str]] | None = None) -> None:
        self.keys: dict[str, set[str]] = {name: set(keys) for name, keys in (existing or {}).items()}
        self.rows: list[ExtractedProduct] = []
        self.fail_with: Exception | None = None
        self.conflicting_keys: set[str] = set()

    def existing_canonical_keys(self, competitor_name: str) -> set[str]:
        return set(self.keys.get(competitor_name, set()))

    def store(self, products: Sequence[ExtractedProduct]) -> set[str]:
        if self.fail_with is not None:
            raise self.fail_with
        inserted: set[str] = set()
        for product in products:
            stored = self.keys.setdefault(product.competitor_name, set())
            if product.canonical_key in stored or product.canonical_key in self.conflicting_keys:
                continue
            stored.add(product.canonical_key)
            self.rows.append(product)
            inserted.add(product.canonical_key)
        return inserted


class InMemoryCrawlJobStore(CrawlJobStore):
    def __init__(self) -> None:
        self.jobs: dict[uuid.UUID, CrawlJobRecord] = {}
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def create(
        self,
        *,
        competitor_id: uuid.UUID,
        request_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        now = self._tick()
        job = CrawlJobRecord(
            id=uuid.uuid4(),
            competitor_id=competitor_id,
            status=CrawlJobStatus.PENDING,
            products_found=0,
            products_inserted=0,
            created_at=now,
            updated_at=now,
            request_payload=request_payload,
        )
        self.jobs[job.id] = job
        return job

    def get(self, job_id: uuid.UUID) -> CrawlJobRecord | None:
        return self.jobs.get(job_id)

    def list_recent(
        self,
        *,
        competitor_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 20,
    ) -> list[CrawlJobRecord]:
        jobs = [
            job
            for job in self.jobs.values()
            if (competitor_id is None or job.competitor_id == competitor_id)
            and (status is None or job.status == status)
        ]
        jobs.sort(key=lambda job: job.created_at, reverse=True)
        return jobs[:limit]

    def _move(self, job_id: uuid.UUID, target: str, **changes: Any) -> CrawlJobRecord:
        job = self.jobs.get(job_id)
        if job is None:
            raise CrawlJobNotFoundError(job_id)
        ensure_transition(job_id, job.status, target)
        updated = dataclasses.replace(job, status=target, updated_at=self._tick(), **changes)
        self.jobs[job_id] = updated
        return updated

    def mark_processing(self, job_id: uuid.UUID) -> CrawlJobRecord:
        return self._move(job_id, CrawlJobStatus.PROCESSING, started_at=self._clock)

    def mark_completed(
        self,
        job_id: uuid.UUID,
        *,
        products_found: int,
        products_inserted: int,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        return self._move(
            job_id,
            CrawlJobStatus.COMPLETED,
            products_found=products_found,
            products_inserted=products_inserted,
            result_payload=result_payload,
            completed_at=self._clock,
        )

    def mark_failed(
        self,
        job_id: uuid.UUID,
        *,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> CrawlJobRecord:
        return self._move(
            job_id,
            CrawlJobStatus.FAILED,
            error_message=error_message,
            result_payload=result_payload,
            completed_at=self._clock,
        )


class InMemoryCrawlLogStorage(CrawlLogStorage):
    def __init__(self) -> None:
        self.entries: list[CrawlLogEntry] = []
        self.batches: int = 0

    def write_batch(self, entries: Sequence[CrawlLogEntry]) -> int:
        self.batches += 1
        self.entries.extend(entries)
        return len(entries)

    def list_for_job(
        self,
        job_id: uuid.UUID,
        *,
        log_type: str | None = None,
    ) -> list[CrawlLogEntry]:
        return sorted(
            (
                entry
                for entry in self.entries
                if entry.job_id == job_id and (log_type is None or entry.log_type == log_type)
            ),
            key=lambda entry: entry.sequence,
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> CrawlSettings:
    """Defaults with no real waiting."""
    return CrawlSettings(fallback_delay_seconds=0.0)


@pytest.fixture()
def target() -> CompetitorTarget:
    return CompetitorTarget(
        id=uuid.uuid4(),
        name="Example Fashion",
        base_scrape_url=BASE_URL,
        excluded_category_keywords=("earrings", "tassen"),
    )


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def stores(target: CompetitorTarget) -> CrawlStores:
    return CrawlStores(
        competitors=InMemoryCompetitorRegistry([target]),
        products=InMemoryProductStorage(),
        jobs=InMemoryCrawlJobStore(),
        logs=InMemoryCrawlLogStorage(),
    )


@pytest.fixture()
def stores_factory(stores: CrawlStores):
    return lambda: nullcontext(stores)
