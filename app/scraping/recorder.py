"""
Buffered crawl log recorder.

Entries accumulate in memory for the lifetime of one job and are written in a
single batch when the job ends. Each candidate reaches at most one terminal
disposition (added, filtered, skipped or error); informational milestones are
unrestricted.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from app.domain.crawl import ExtractedProduct
from app.domain.crawl_job import CrawlLogEntry
from app.scraping.logging_utils import log_event
from app.scraping.storage.base import CrawlLogStorage
from db.models.crawl_log import CrawlLogType

logger = logging.getLogger(__name__)


class CrawlLogRecorder:
    def __init__(self, *, job_id: uuid.UUID, competitor_id: uuid.UUID) -> None:
        self.job_id = job_id
        self.competitor_id = competitor_id
        self._entries: list[CrawlLogEntry] = []
        self._dispositions: dict[str, str] = {}
        self._flushed = False

    @property
    def entries(self) -> list[CrawlLogEntry]:
        return list(self._entries)

    def count(self, log_type: str) -> int:
        return sum(1 for entry in self._entries if entry.log_type == log_type)

    def has_disposition(self, key: str) -> bool:
        return key in self._dispositions

    def info(self, message: str, **details: Any) -> None:
        self._append(CrawlLogType.INFO, message, details=details)

    def added(self, product: ExtractedProduct) -> bool:
        return self._terminal(
            product.canonical_key,
            CrawlLogType.ADDED,
            f"Added product: {product.name}",
            product_name=product.name,
            product_url=product.source_url,
            product_price=product.raw_price,
            details={"canonical_key": product.canonical_key},
        )

    def filtered(
        self,
        key: str,
        *,
        url: str | None,
        reason: str,
        product_name: str | None = None,
        product_price: str | None = None,
        **details: Any,
    ) -> bool:
        return self._terminal(
            key,
            CrawlLogType.FILTERED,
            f"Filtered: {reason}",
            product_name=product_name,
            product_url=url,
            product_price=product_price,
            filter_reason=reason,
            details=details,
        )

    def skipped(
        self,
        key: str,
        *,
        url: str | None,
        reason: str,
        product_name: str | None = None,
        **details: Any,
    ) -> bool:
        return self._terminal(
            key,
            CrawlLogType.SKIPPED,
            f"Skipped: {reason}",
            product_name=product_name,
            product_url=url,
            filter_reason=reason,
            details=details,
        )

    def error(
        self,
        key: str | None,
        message: str,
        *,
        url: str | None = None,
        product_name: str | None = None,
        **details: Any,
    ) -> bool:
        """
        Record a failure; keyed errors are terminal for that key.
        """

        if key is None:
            self._append(CrawlLogType.ERROR, message, product_url=url, details=details)
            return True
        return self._terminal(
            key,
            CrawlLogType.ERROR,
            message,
            product_name=product_name,
            product_url=url,
            details=details,
        )

    def flush(self, storage: CrawlLogStorage) -> int:
        """
        Write every buffered entry once; later calls write nothing.
        """

        if self._flushed:
            return 0
        written = storage.write_batch(self._entries)
        self._flushed = True
        log_event(
            logger,
            logging.INFO,
            "crawl_logs_flushed",
            job_id=str(self.job_id),
            entries=written,
        )
        return written

    def _terminal(
        self,
        key: str,
        log_type: str,
        message: str,
        **fields: Any,
    ) -> bool:
        previous = self._dispositions.get(key)
        if previous is not None:
            logger.debug(
                "Ignoring second disposition key=%s previous=%s attempted=%s",
                key,
                previous,
                log_type,
            )
            return False
        self._dispositions[key] = log_type
        self._append(log_type, message, **fields)
        return True

    def _append(
        self,
        log_type: str,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        **fields: Any,
    ) -> None:
        self._entries.append(
            CrawlLogEntry(
                job_id=self.job_id,
                competitor_id=self.competitor_id,
                log_type=log_type,
                message=message,
                details=dict(details or {}),
                sequence=len(self._entries),
                **fields,
            )
        )
