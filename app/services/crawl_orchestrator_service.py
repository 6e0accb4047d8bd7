"""
Orchestrator service for async crawl job dispatch and lifecycle tracking.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks

from app.connectors.base import ScrapeConnector
from app.domain.crawl import CompetitorTarget
from app.domain.crawl_job import BulkCrawlOutcome, CrawlJobRecord, CrawlLogEntry, CrawlTriggerResult
from app.scraping.config import CrawlSettings, get_crawl_settings
from app.scraping.extraction import ExtractionFailedError
from app.scraping.logging_utils import log_event
from app.scraping.pipeline import CrawlPipeline
from app.scraping.recorder import CrawlLogRecorder
from app.scraping.storage.base import CrawlStores
from db.repositories.errors import CrawlJobNotFoundError

logger = logging.getLogger(__name__)

_MAX_ERROR_MESSAGE_LENGTH = 2000

StoresFactory = Callable[[], AbstractContextManager[CrawlStores]]


class CompetitorNotFoundError(LookupError):
    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Competitor not found: {identifier}")


class CompetitorInactiveError(RuntimeError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Competitor is inactive: {name}")


class TaskHandle:
    """
    Handle for a detached task. Background-task hosts that give no completion
    signal produce a handle without a future.
    """

    def __init__(self, future: Future[Any] | None = None) -> None:
        self._future = future

    @property
    def trackable(self) -> bool:
        return self._future is not None

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def wait(self, timeout: float | None = None) -> None:
        if self._future is not None:
            self._future.result(timeout=timeout)


class CrawlTaskExecutor(Protocol):
    def detach(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> TaskHandle:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def detach(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> TaskHandle:
        self._background_tasks.add_task(task, *args, **kwargs)
        return TaskHandle()


class ThreadPoolTaskExecutor:
    """
    Run detached tasks on a process-wide thread pool, outliving the request.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="crawl-job")

    def detach(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> TaskHandle:
        return TaskHandle(self._pool.submit(task, *args, **kwargs))

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class InlineTaskExecutor:
    """
    Run the task before returning; used by the CLI.
    """

    def detach(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> TaskHandle:
        future: Future[Any] = Future()
        try:
            future.set_result(task(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return TaskHandle(future)


class CrawlOrchestratorService:
    """
    Coordinates job creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        stores_factory: StoresFactory | None = None,
        connector_factory: Callable[[], ScrapeConnector] | None = None,
        settings: CrawlSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if stores_factory is None:
            from app.scraping.storage.sqlalchemy_storage import open_sqlalchemy_stores

            self._stores_factory: StoresFactory = open_sqlalchemy_stores
        else:
            self._stores_factory = stores_factory

        if connector_factory is None:
            from app.connectors.firecrawl_connector import get_scrape_connector

            self._connector_factory = get_scrape_connector
        else:
            self._connector_factory = connector_factory

        self._settings = settings or get_crawl_settings()
        self._sleep = sleep

    @property
    def settings(self) -> CrawlSettings:
        return self._settings

    def trigger_crawl(
        self,
        *,
        competitor: str,
        executor: CrawlTaskExecutor,
        limit: int | None = None,
    ) -> CrawlTriggerResult:
        """
        Create a pending job and detach its run; returns before any scraping.

        Raises:
            CompetitorNotFoundError: no competitor matches the id or name.
            CompetitorInactiveError: the competitor is disabled.
        """

        crawl_limit = self._settings.clamp_limit(limit)
        with self._stores_factory() as stores:
            target = stores.competitors.get_by_id_or_name(competitor)
            if target is None:
                raise CompetitorNotFoundError(competitor)
            if not target.is_active:
                raise CompetitorInactiveError(target.name)
            job = self._create_and_detach(stores, target, crawl_limit, executor)

        return CrawlTriggerResult(job=job, competitor_name=target.name)

    def trigger_bulk_crawl(
        self,
        *,
        executor: CrawlTaskExecutor,
        limit: int | None = None,
    ) -> list[BulkCrawlOutcome]:
        """
        Create and detach one job per active competitor.

        A scheduling failure for one competitor is reported in its outcome and
        does not stop the others.
        """

        crawl_limit = self._settings.clamp_limit(limit)
        outcomes: list[BulkCrawlOutcome] = []
        with self._stores_factory() as stores:
            for target in stores.competitors.list_active():
                try:
                    job = self._create_and_detach(stores, target, crawl_limit, executor)
                except Exception as exc:
                    logger.exception("Bulk crawl scheduling failed competitor=%s", target.name)
                    outcomes.append(
                        BulkCrawlOutcome(
                            competitor_id=target.id,
                            competitor_name=target.name,
                            success=False,
                            error=f"{type(exc).__name__}: {exc}"[:_MAX_ERROR_MESSAGE_LENGTH],
                        )
                    )
                    continue
                outcomes.append(
                    BulkCrawlOutcome(
                        competitor_id=target.id,
                        competitor_name=target.name,
                        success=True,
                        job_id=job.id,
                    )
                )

        log_event(
            logger,
            logging.INFO,
            "bulk_crawl_scheduled",
            competitors=len(outcomes),
            scheduled=sum(1 for outcome in outcomes if outcome.success),
            limit=crawl_limit,
        )
        return outcomes

    def get_job_status(self, *, job_id: uuid.UUID) -> CrawlJobRecord | None:
        with self._stores_factory() as stores:
            return stores.jobs.get(job_id)

    def list_jobs(
        self,
        *,
        competitor_id: uuid.UUID | None = None,
        status: str | None = None,
        limit: int = 20,
    ) -> list[CrawlJobRecord]:
        with self._stores_factory() as stores:
            return stores.jobs.list_recent(competitor_id=competitor_id, status=status, limit=limit)

    def latest_job(self, *, competitor_id: uuid.UUID) -> CrawlJobRecord | None:
        jobs = self.list_jobs(competitor_id=competitor_id, limit=1)
        return jobs[0] if jobs else None

    def list_job_logs(
        self,
        *,
        job_id: uuid.UUID,
        log_type: str | None = None,
    ) -> list[CrawlLogEntry]:
        with self._stores_factory() as stores:
            if stores.jobs.get(job_id) is None:
                raise CrawlJobNotFoundError(job_id)
            return stores.logs.list_for_job(job_id, log_type=log_type)

    def _create_and_detach(
        self,
        stores: CrawlStores,
        target: CompetitorTarget,
        limit: int,
        executor: CrawlTaskExecutor,
    ) -> CrawlJobRecord:
        job = stores.jobs.create(
            competitor_id=target.id,
            request_payload={
                "competitor": target.name,
                "competitor_id": str(target.id),
                "limit": limit,
            },
        )

        try:
            executor.detach(self.run_crawl_job, job.id, target.id, limit)
        except Exception:
            stores.jobs.mark_failed(job.id, error_message="Failed to schedule crawl job.")
            raise

        log_event(
            logger,
            logging.INFO,
            "crawl_job_scheduled",
            job_id=str(job.id),
            competitor=target.name,
            limit=limit,
        )
        return job

    def run_crawl_job(self, job_id: uuid.UUID, competitor_id: uuid.UUID, limit: int) -> None:
        """
        Background body of one crawl job. Never raises; failures land on the job.
        """

        with self._stores_factory() as stores:
            target: CompetitorTarget | None = None
            recorder: CrawlLogRecorder | None = None
            try:
                target = stores.competitors.get(competitor_id)
                if target is None:
                    raise CompetitorNotFoundError(str(competitor_id))
                stores.jobs.mark_processing(job_id)
                recorder = CrawlLogRecorder(job_id=job_id, competitor_id=competitor_id)

                pipeline = CrawlPipeline(
                    connector=self._connector_factory(),
                    products=stores.products,
                    settings=self._settings,
                    sleep=self._sleep,
                )
                result = pipeline.run(target, limit=limit, recorder=recorder)

                recorder.flush(stores.logs)
                stores.jobs.mark_completed(
                    job_id,
                    products_found=result.products_found,
                    products_inserted=result.products_inserted,
                    result_payload=result.as_payload(),
                )
                log_event(
                    logger,
                    logging.INFO,
                    "crawl_job_completed",
                    job_id=str(job_id),
                    competitor=target.name,
                    **result.as_payload(),
                )
            except Exception as exc:
                self._mark_job_failed(stores=stores, job_id=job_id, exc=exc, recorder=recorder)
            finally:
                if target is not None:
                    self._touch_last_crawled(stores, target)

    def _mark_job_failed(
        self,
        *,
        stores: CrawlStores,
        job_id: uuid.UUID,
        exc: Exception,
        recorder: CrawlLogRecorder | None,
    ) -> None:
        error_message = f"{type(exc).__name__}: {exc}"[:_MAX_ERROR_MESSAGE_LENGTH]
        logger.exception("Crawl job failed id=%s error=%s", job_id, error_message)

        result_payload: dict[str, Any] | None = None
        if isinstance(exc, ExtractionFailedError):
            result_payload = {"attempts": exc.attempts, "max_attempts": exc.max_attempts}

        if recorder is not None:
            recorder.error(None, error_message)
            try:
                recorder.flush(stores.logs)
            except Exception:
                logger.exception("Failed to persist crawl logs for failed job id=%s", job_id)

        try:
            stores.jobs.mark_failed(job_id, error_message=error_message, result_payload=result_payload)
        except Exception:
            logger.exception("Failed to persist failed crawl job state id=%s", job_id)

    @staticmethod
    def _touch_last_crawled(stores: CrawlStores, target: CompetitorTarget) -> None:
        try:
            stores.competitors.touch_last_crawled(target.id, datetime.now(timezone.utc))
        except Exception:
            logger.exception("Failed to update last_crawled_at competitor=%s", target.name)


@lru_cache(maxsize=1)
def get_crawl_orchestrator_service() -> CrawlOrchestratorService:
    return CrawlOrchestratorService()


@lru_cache(maxsize=1)
def get_thread_pool_executor() -> ThreadPoolTaskExecutor:
    return ThreadPoolTaskExecutor(max_workers=get_crawl_settings().worker_threads)
