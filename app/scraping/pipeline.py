"""
Crawl-and-extraction pipeline for one competitor.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from app.connectors.base import ScrapeConnector
from app.domain.crawl import (
    CandidateUrl,
    ClassifiedUrl,
    CompetitorTarget,
    CrawlRunResult,
    DiscoverySource,
    ExtractedProduct,
    ExtractionMethod,
    RawProduct,
)
from app.scraping.canonical import canonical_key, dedupe_by_canonical_key
from app.scraping.classifier import classify_url
from app.scraping.config.models import CrawlSettings
from app.scraping.discovery import UrlDiscovery
from app.scraping.extraction import ExtractionOrchestrator
from app.scraping.logging_utils import bind_crawl_context
from app.scraping.normalization.field_normalizer import excluded_keyword, normalize_product
from app.scraping.recorder import CrawlLogRecorder
from app.scraping.storage.base import ProductStorage, StorageError
from db.models.crawl_log import CrawlLogType

logger = logging.getLogger(__name__)

DUPLICATE_REASON = "duplicate"


@dataclass
class _RunState:
    """
    Mutable bookkeeping for one run.
    """

    existing_keys: set[str]
    seen_keys: set[str] = field(default_factory=set)
    to_store: list[ExtractedProduct] = field(default_factory=list)


class CrawlPipeline:
    """
    Discover, classify, extract, normalize and persist one competitor's new products.

    Every candidate disposition goes to the recorder; the caller owns the
    recorder and flushes it when the job ends.
    """

    def __init__(
        self,
        *,
        connector: ScrapeConnector,
        products: ProductStorage,
        settings: CrawlSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._products = products
        self._settings = settings
        self._discovery = UrlDiscovery(connector=connector, settings=settings)
        self._extraction = ExtractionOrchestrator(connector=connector, settings=settings, sleep=sleep)

    def run(
        self,
        target: CompetitorTarget,
        *,
        limit: int,
        recorder: CrawlLogRecorder,
    ) -> CrawlRunResult:
        """
        Raises:
            ExtractionFailedError: Tier 1 produced no usable response.
        """

        emit = bind_crawl_context(logger, competitor=target.name, job_id=recorder.job_id)
        limit = self._settings.clamp_limit(limit)
        recorder.info("Crawl started", url=target.base_scrape_url, limit=limit)

        discovery = self._discovery.discover(target)
        for error in discovery.errors:
            recorder.info(error)
        recorder.info(
            f"Discovered {len(discovery.candidates)} candidate URLs",
            listing_links=discovery.listing_link_count,
            site_map_links=discovery.site_map_link_count,
            site_map_used=discovery.site_map_used,
        )

        state = _RunState(existing_keys=self._products.existing_canonical_keys(target.name))
        accepted = self._classify(discovery.candidates, target, recorder)
        new_urls = self._screen_urls(accepted, target, state, recorder)
        recorder.info(
            f"Classified {len(accepted)} product URLs, {len(new_urls)} new",
            candidates=len(discovery.candidates),
        )
        emit(
            logging.INFO,
            "crawl_urls_classified",
            candidates=len(discovery.candidates),
            accepted=len(accepted),
            new=len(new_urls),
        )

        bulk = self._extraction.extract_bulk(
            target,
            limit=limit,
            on_retry=lambda attempt, error, delay: recorder.info(
                f"Bulk extraction attempt {attempt} failed, retrying in {delay:.1f}s",
                attempt=attempt,
                error=str(error),
            ),
        )
        tier1_kept = self._accept_products(bulk.products, target, state, recorder)
        tier1_keys = {product.canonical_key for product in tier1_kept}

        if bulk.succeeded:
            method = ExtractionMethod.BULK
            products_found = len(bulk.products)
            recorder.info(f"Bulk extraction returned {len(bulk.products)} products")
        else:
            method = ExtractionMethod.FALLBACK
            recorder.info(
                f"Bulk extraction returned {len(bulk.products)} products "
                f"(fewer than {bulk.success_threshold}), switching to per-URL extraction",
                response_links=len(bulk.links),
            )
            response_urls = self._classify(
                (CandidateUrl(url=link, source=DiscoverySource.EXTRACTION_LINKS) for link in bulk.links),
                target,
                recorder,
            )
            pool = new_urls + self._screen_urls(response_urls, target, state, recorder)
            pool = [
                item
                for item in dedupe_by_canonical_key(pool, key=lambda item: item.canonical_key)
                if item.canonical_key not in tier1_keys
            ]
            cap = max(0, min(limit - len(tier1_kept), self._settings.fallback_max_urls))
            batch = pool[:cap]
            recorder.info(f"Extracting {len(batch)} product pages individually", pool=len(pool))
            self._run_fallback(batch, target, state, recorder)
            products_found = len(batch) + len(tier1_kept)

        inserted = self._persist(state.to_store, recorder)
        error_count = recorder.count(CrawlLogType.ERROR)
        recorder.info(
            f"Crawl finished: {inserted} inserted of {products_found} found",
            method=method,
            errors=error_count,
        )
        emit(
            logging.INFO,
            "crawl_pipeline_completed",
            method=method,
            products_found=products_found,
            products_inserted=inserted,
            errors=error_count,
        )
        return CrawlRunResult(
            method=method,
            products_found=products_found,
            products_inserted=inserted,
            discovered_urls=len(discovery.candidates),
            accepted_urls=len(accepted),
            error_count=error_count,
        )

    @staticmethod
    def _classify(
        candidates: Iterable[CandidateUrl],
        target: CompetitorTarget,
        recorder: CrawlLogRecorder,
    ) -> list[ClassifiedUrl]:
        """
        Return product URLs in first-seen order, one per canonical key.
        """

        accepted: list[ClassifiedUrl] = []
        for candidate in candidates:
            decision = classify_url(candidate.url, target.base_scrape_url, target.url_patterns)
            if not decision.is_product:
                recorder.filtered(
                    candidate.url,
                    url=candidate.url,
                    reason=decision.reason,
                    rule=decision.rule,
                    source=candidate.source,
                )
                continue
            accepted.append(
                ClassifiedUrl(
                    candidate=candidate,
                    is_product=True,
                    canonical_key=canonical_key(candidate.url),
                    rule=decision.rule,
                )
            )
        return dedupe_by_canonical_key(accepted, key=lambda item: item.canonical_key)

    @staticmethod
    def _screen_urls(
        urls: Iterable[ClassifiedUrl],
        target: CompetitorTarget,
        state: _RunState,
        recorder: CrawlLogRecorder,
    ) -> list[ClassifiedUrl]:
        """
        Drop excluded and already-stored product URLs, logging each.
        """

        fresh: list[ClassifiedUrl] = []
        for item in urls:
            if recorder.has_disposition(item.canonical_key):
                continue
            keyword = excluded_keyword(item.url, None, target.excluded_category_keywords)
            if keyword is not None:
                recorder.filtered(
                    item.canonical_key,
                    url=item.url,
                    reason=f"excluded category: {keyword}",
                )
                continue
            if item.canonical_key in state.existing_keys:
                recorder.skipped(item.canonical_key, url=item.url, reason=DUPLICATE_REASON)
                continue
            fresh.append(item)
        return fresh

    def _accept_products(
        self,
        raw_products: Iterable[RawProduct],
        target: CompetitorTarget,
        state: _RunState,
        recorder: CrawlLogRecorder,
    ) -> list[ExtractedProduct]:
        """
        Normalize extracted entries and queue the new ones for storage.
        """

        kept: list[ExtractedProduct] = []
        for raw in raw_products:
            product = normalize_product(
                raw,
                competitor_name=target.name,
                base_url=target.base_scrape_url,
            )
            if product is None:
                recorder.error(
                    canonical_key(raw.product_url) if raw.product_url else None,
                    "Extracted entry has no usable name or product URL",
                    url=raw.product_url,
                    product_name=raw.name,
                )
                continue
            if product.canonical_key in state.seen_keys:
                continue
            state.seen_keys.add(product.canonical_key)
            kept.append(product)

            keyword = excluded_keyword(product.source_url, product.name, target.excluded_category_keywords)
            if keyword is not None:
                recorder.filtered(
                    product.canonical_key,
                    url=product.source_url,
                    reason=f"excluded category: {keyword}",
                    product_name=product.name,
                    product_price=product.raw_price,
                )
                continue
            if product.canonical_key in state.existing_keys:
                recorder.skipped(
                    product.canonical_key,
                    url=product.source_url,
                    reason=DUPLICATE_REASON,
                    product_name=product.name,
                )
                continue
            state.to_store.append(product)
        return kept

    def _run_fallback(
        self,
        batch: list[ClassifiedUrl],
        target: CompetitorTarget,
        state: _RunState,
        recorder: CrawlLogRecorder,
    ) -> None:
        keys_by_url = {item.url: item.canonical_key for item in batch}
        for outcome in self._extraction.extract_each([item.url for item in batch]):
            key = keys_by_url[outcome.url]
            if outcome.error is not None:
                recorder.error(key, f"Product extraction failed: {outcome.error}", url=outcome.url)
                continue
            if outcome.product is None:
                recorder.error(key, "Product extraction returned no data", url=outcome.url)
                continue
            self._accept_products([outcome.product], target, state, recorder)

    def _persist(self, products: list[ExtractedProduct], recorder: CrawlLogRecorder) -> int:
        if not products:
            return 0

        try:
            inserted_keys = self._products.store(products)
        except StorageError as exc:
            for product in products:
                recorder.error(
                    product.canonical_key,
                    f"Failed to save product: {exc}",
                    url=product.source_url,
                    product_name=product.name,
                )
            return 0

        for product in products:
            if product.canonical_key in inserted_keys:
                recorder.added(product)
            else:
                recorder.skipped(
                    product.canonical_key,
                    url=product.source_url,
                    reason=DUPLICATE_REASON,
                    product_name=product.name,
                )
        return len(inserted_keys)
