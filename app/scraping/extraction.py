"""
Two-tier product extraction.

Tier 1 asks the capability for every product on the listing page in one
schema-constrained call, retried under a RetryPolicy with growing render and
timeout budgets. Tier 2 extracts candidate product pages one at a time when
Tier 1 comes back thin.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from app.connectors.base import ExtractionResponse, ScrapeConnector, ScrapeRequestError
from app.domain.crawl import CompetitorTarget, RawProduct
from app.scraping.config.models import CrawlSettings
from app.scraping.logging_utils import log_event
from app.scraping.prompts import PRODUCT_LIST_SCHEMA, build_listing_prompt
from app.scraping.retry import NonRetryableError, RetryError, RetryPolicy, execute_with_retry

logger = logging.getLogger(__name__)

MIN_PRODUCTS_FOR_SUCCESS = 3


class ExtractionFailedError(RuntimeError):
    """
    Raised when bulk extraction produced no usable response.
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        max_attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.last_error = last_error


@dataclass(frozen=True)
class BulkExtraction:
    products: list[RawProduct] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    attempts: int = 1
    limit: int | None = None

    @property
    def success_threshold(self) -> int:
        """A run asked for fewer products than the usual threshold needs only that many."""
        if self.limit is None:
            return MIN_PRODUCTS_FOR_SUCCESS
        return max(1, min(MIN_PRODUCTS_FOR_SUCCESS, self.limit))

    @property
    def succeeded(self) -> bool:
        return len(self.products) >= self.success_threshold


@dataclass(frozen=True)
class SingleExtraction:
    url: str
    product: RawProduct | None = None
    error: ScrapeRequestError | None = None


def bulk_retry_policy(settings: CrawlSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.bulk_max_attempts,
        base_delay_seconds=settings.bulk_backoff_initial_seconds,
        backoff_multiplier=settings.bulk_backoff_multiplier,
    )


class ExtractionOrchestrator:
    def __init__(
        self,
        *,
        connector: ScrapeConnector,
        settings: CrawlSettings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._connector = connector
        self._settings = settings
        self._sleep = sleep
        self._policy = bulk_retry_policy(settings)

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def extract_bulk(
        self,
        target: CompetitorTarget,
        *,
        limit: int,
        on_retry: Callable[[int, BaseException, float], None] | None = None,
    ) -> BulkExtraction:
        """
        Run Tier 1 against the listing page.

        Raises:
            ExtractionFailedError: every attempt failed, or the capability
                rejected the request with a non-retryable status.
        """

        prompt = build_listing_prompt(
            listing_url=target.base_scrape_url,
            limit=limit,
            excluded_keywords=target.excluded_category_keywords,
        )
        attempts_made = 0

        def attempt_once(attempt: int) -> ExtractionResponse:
            nonlocal attempts_made
            attempts_made = attempt
            log_event(
                logger,
                logging.INFO,
                "bulk_extraction_attempt",
                competitor=target.name,
                attempt=attempt,
                max_attempts=self._policy.max_attempts,
                wait_for_ms=self._settings.wait_for_ms(attempt),
                timeout_ms=self._settings.timeout_ms(attempt),
            )
            return self._connector.scrape_with_extraction(
                target.base_scrape_url,
                prompt=prompt,
                schema=PRODUCT_LIST_SCHEMA,
                wait_for_ms=self._settings.wait_for_ms(attempt),
                timeout_ms=self._settings.timeout_ms(attempt),
            )

        try:
            response = execute_with_retry(
                self._policy,
                attempt_once,
                description="Bulk extraction",
                sleep=self._sleep,
                on_retry=on_retry,
            )
        except RetryError as exc:
            verb = "rejected" if isinstance(exc, NonRetryableError) else "failed"
            raise ExtractionFailedError(
                f"Bulk extraction {verb} after {exc.attempts} of {exc.max_attempts} attempts: "
                f"{exc.last_error}",
                attempts=exc.attempts,
                max_attempts=exc.max_attempts,
                last_error=exc.last_error,
            ) from exc

        products = [RawProduct.from_payload(item) for item in response.products][: max(0, limit)]
        log_event(
            logger,
            logging.INFO,
            "bulk_extraction_completed",
            competitor=target.name,
            attempts=attempts_made,
            products=len(products),
            links=len(response.links),
        )
        return BulkExtraction(
            products=products,
            links=list(response.links),
            attempts=attempts_made,
            limit=limit,
        )

    def extract_each(self, urls: Sequence[str]) -> Iterator[SingleExtraction]:
        """
        Run Tier 2: one extraction per URL with a fixed delay between calls.

        Per-URL failures are yielded, never raised.
        """

        for index, url in enumerate(urls):
            if index > 0 and self._settings.fallback_delay_seconds > 0:
                self._sleep(self._settings.fallback_delay_seconds)
            try:
                payload = self._connector.extract_product(url)
            except ScrapeRequestError as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "single_extraction_failed",
                    url=url,
                    status_code=exc.status_code,
                    error=str(exc),
                )
                yield SingleExtraction(url=url, error=exc)
                continue
            if payload is None:
                yield SingleExtraction(url=url)
                continue
            yield SingleExtraction(url=url, product=RawProduct.from_payload(payload, product_url=url))
