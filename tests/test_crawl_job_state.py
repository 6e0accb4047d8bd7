"""
tests/test_crawl_job_state.py

Pytest unit tests for the crawl job state machine and the log recorder.

Coverage
--------
- Allowed and forbidden status transitions
- Terminal states are final
- Recorder: one terminal disposition per key, info unrestricted
- Recorder: single batched flush
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from app.domain.crawl import ExtractedProduct
from app.scraping.recorder import CrawlLogRecorder
from db.models.crawl_job import CrawlJobStatus
from db.models.crawl_log import CrawlLogType
from db.repositories.crawl_job_repository import ensure_transition
from db.repositories.errors import CrawlJobNotFoundError, InvalidJobTransitionError
from tests.conftest import InMemoryCrawlJobStore, InMemoryCrawlLogStorage


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (CrawlJobStatus.PENDING, CrawlJobStatus.PROCESSING),
            (CrawlJobStatus.PENDING, CrawlJobStatus.FAILED),
            (CrawlJobStatus.PROCESSING, CrawlJobStatus.COMPLETED),
            (CrawlJobStatus.PROCESSING, CrawlJobStatus.FAILED),
        ],
    )
    def test_allowed(self, current: str, target: str) -> None:
        assert CrawlJobStatus.can_transition(current, target) is True
        ensure_transition(uuid.uuid4(), current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (CrawlJobStatus.PENDING, CrawlJobStatus.COMPLETED),
            (CrawlJobStatus.PROCESSING, CrawlJobStatus.PENDING),
            (CrawlJobStatus.COMPLETED, CrawlJobStatus.FAILED),
            (CrawlJobStatus.COMPLETED, CrawlJobStatus.PROCESSING),
            (CrawlJobStatus.FAILED, CrawlJobStatus.PROCESSING),
            (CrawlJobStatus.FAILED, CrawlJobStatus.COMPLETED),
            ("unknown", CrawlJobStatus.PROCESSING),
        ],
    )
    def test_forbidden(self, current: str, target: str) -> None:
        job_id = uuid.uuid4()
        with pytest.raises(InvalidJobTransitionError) as exc_info:
            ensure_transition(job_id, current, target)
        assert exc_info.value.current == current
        assert exc_info.value.target == target

    def test_terminal_states_have_no_exits(self) -> None:
        for status in CrawlJobStatus.TERMINAL:
            assert CrawlJobStatus.TRANSITIONS[status] == frozenset()


class TestJobStoreLifecycle:
    def test_happy_path(self) -> None:
        store = InMemoryCrawlJobStore()
        job = store.create(competitor_id=uuid.uuid4(), request_payload={"limit": 5})
        assert job.status == CrawlJobStatus.PENDING

        store.mark_processing(job.id)
        done = store.mark_completed(job.id, products_found=3, products_inserted=2, result_payload={"method": "bulk-extract"})

        assert done.status == CrawlJobStatus.COMPLETED
        assert (done.products_found, done.products_inserted) == (3, 2)
        assert done.completed_at is not None

    def test_completed_job_cannot_fail(self) -> None:
        store = InMemoryCrawlJobStore()
        job = store.create(competitor_id=uuid.uuid4())
        store.mark_processing(job.id)
        store.mark_completed(job.id, products_found=0, products_inserted=0)

        with pytest.raises(InvalidJobTransitionError):
            store.mark_failed(job.id, error_message="late failure")

    def test_unknown_job(self) -> None:
        with pytest.raises(CrawlJobNotFoundError):
            InMemoryCrawlJobStore().mark_processing(uuid.uuid4())

    def test_list_recent_newest_first(self) -> None:
        store = InMemoryCrawlJobStore()
        competitor_id = uuid.uuid4()
        first = store.create(competitor_id=competitor_id)
        second = store.create(competitor_id=competitor_id)
        store.create(competitor_id=uuid.uuid4())

        assert [job.id for job in store.list_recent(competitor_id=competitor_id)] == [second.id, first.id]
        assert [job.id for job in store.list_recent(competitor_id=competitor_id, limit=1)] == [second.id]


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------


def _product(key: str = "handle:linen-blazer") -> ExtractedProduct:
    return ExtractedProduct(
        name="Linen Blazer",
        raw_price="€ 89,95",
        normalized_price=Decimal("89.95"),
        image_url=None,
        source_url="https://shop.example.com/products/linen-blazer",
        canonical_key=key,
        competitor_name="Example Fashion",
    )


class TestCrawlLogRecorder:
    def test_second_disposition_for_key_is_ignored(self) -> None:
        recorder = CrawlLogRecorder(job_id=uuid.uuid4(), competitor_id=uuid.uuid4())

        assert recorder.added(_product()) is True
        assert recorder.skipped("handle:linen-blazer", url=None, reason="duplicate") is False
        assert recorder.error("handle:linen-blazer", "boom") is False

        assert [entry.log_type for entry in recorder.entries] == [CrawlLogType.ADDED]

    def test_unkeyed_errors_and_info_are_unrestricted(self) -> None:
        recorder = CrawlLogRecorder(job_id=uuid.uuid4(), competitor_id=uuid.uuid4())
        recorder.info("one")
        recorder.info("one")
        recorder.error(None, "job level")
        recorder.error(None, "job level")

        assert recorder.count(CrawlLogType.INFO) == 2
        assert recorder.count(CrawlLogType.ERROR) == 2

    def test_added_entry_carries_product_fields(self) -> None:
        recorder = CrawlLogRecorder(job_id=uuid.uuid4(), competitor_id=uuid.uuid4())
        recorder.added(_product())
        entry = recorder.entries[0]

        assert entry.product_name == "Linen Blazer"
        assert entry.product_price == "€ 89,95"
        assert entry.product_url == "https://shop.example.com/products/linen-blazer"
        assert entry.details == {"canonical_key": "handle:linen-blazer"}

    def test_filtered_entry_carries_reason(self) -> None:
        recorder = CrawlLogRecorder(job_id=uuid.uuid4(), competitor_id=uuid.uuid4())
        recorder.filtered("https://shop.example.com/nl/cart", url="https://shop.example.com/nl/cart", reason="utility or navigation page")
        entry = recorder.entries[0]

        assert entry.filter_reason == "utility or navigation page"
        assert entry.message == "Filtered: utility or navigation page"

    def test_flush_writes_once_in_one_batch(self) -> None:
        storage = InMemoryCrawlLogStorage()
        job_id = uuid.uuid4()
        recorder = CrawlLogRecorder(job_id=job_id, competitor_id=uuid.uuid4())
        recorder.info("start")
        recorder.added(_product())

        assert recorder.flush(storage) == 2
        assert recorder.flush(storage) == 0
        assert storage.batches == 1
        assert [entry.sequence for entry in storage.list_for_job(job_id)] == [0, 1]
