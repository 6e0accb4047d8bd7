"""
Async crawl job endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_task_executor
from app.domain.crawl_job import CrawlJobRecord, CrawlLogEntry
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
from app.services.crawl_orchestrator_service import (
    CompetitorInactiveError,
    CompetitorNotFoundError,
    CrawlOrchestratorService,
    CrawlTaskExecutor,
    get_crawl_orchestrator_service,
)
from db.models.crawl_job import CrawlJobStatus
from db.models.crawl_log import CrawlLogType
from db.repositories.errors import CrawlJobNotFoundError

router = APIRouter(tags=["crawl-jobs"])

_JOB_STATUSES = {
    CrawlJobStatus.PENDING,
    CrawlJobStatus.PROCESSING,
    CrawlJobStatus.COMPLETED,
    CrawlJobStatus.FAILED,
}


@router.post(
    "/crawl-jobs",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=CrawlJobAcceptedResponse,
)
def trigger_crawl(
    payload: CrawlTriggerRequest,
    executor: CrawlTaskExecutor = Depends(get_task_executor),
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> CrawlJobAcceptedResponse:
    try:
        triggered = orchestrator.trigger_crawl(
            competitor=payload.competitor,
            limit=payload.limit,
            executor=executor,
        )
    except CompetitorNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CompetitorInactiveError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return CrawlJobAcceptedResponse(
        success=True,
        job_id=triggered.job.id,
        competitor_name=triggered.competitor_name,
        status=triggered.job.status,
        created_at=triggered.job.created_at,
    )


@router.post(
    "/crawl-jobs/bulk",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BulkCrawlAcceptedResponse,
)
def trigger_bulk_crawl(
    payload: BulkCrawlRequest,
    executor: CrawlTaskExecutor = Depends(get_task_executor),
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> BulkCrawlAcceptedResponse:
    outcomes = orchestrator.trigger_bulk_crawl(limit=payload.limit, executor=executor)
    return BulkCrawlAcceptedResponse(
        success=all(outcome.success for outcome in outcomes),
        limit=orchestrator.settings.clamp_limit(payload.limit),
        results=[
            BulkCrawlOutcomeResponse(
                competitor_id=outcome.competitor_id,
                competitor_name=outcome.competitor_name,
                success=outcome.success,
                job_id=outcome.job_id,
                error=outcome.error,
            )
            for outcome in outcomes
        ],
    )


@router.get("/crawl-jobs", response_model=CrawlJobListResponse)
def list_crawl_jobs(
    competitor_id: UUID | None = Query(default=None, description="Optional competitor filter"),
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    limit: int = Query(default=20, ge=1, le=200, description="Max jobs returned, newest first"),
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> CrawlJobListResponse:
    if status_filter is not None and status_filter not in _JOB_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown job status '{status_filter}'. Allowed: {sorted(_JOB_STATUSES)}.",
        )
    jobs = orchestrator.list_jobs(competitor_id=competitor_id, status=status_filter, limit=limit)
    return CrawlJobListResponse(jobs=[_to_status_response(job) for job in jobs])


@router.get("/crawl-jobs/{job_id}", response_model=CrawlJobStatusResponse)
def get_crawl_job(
    job_id: UUID,
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> CrawlJobStatusResponse:
    job = orchestrator.get_job_status(job_id=job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Crawl job not found: {job_id}",
        )
    return _to_status_response(job)


@router.get("/crawl-jobs/{job_id}/logs", response_model=CrawlLogListResponse)
def list_crawl_job_logs(
    job_id: UUID,
    log_type: str | None = Query(default=None, description="Optional log type filter"),
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> CrawlLogListResponse:
    if log_type is not None and log_type not in CrawlLogType.ALL:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown log type '{log_type}'. Allowed: {sorted(CrawlLogType.ALL)}.",
        )
    try:
        entries = orchestrator.list_job_logs(job_id=job_id, log_type=log_type)
    except CrawlJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CrawlLogListResponse(job_id=job_id, logs=[_to_log_response(entry) for entry in entries])


def _to_status_response(job: CrawlJobRecord) -> CrawlJobStatusResponse:
    return CrawlJobStatusResponse(
        job_id=job.id,
        competitor_id=job.competitor_id,
        status=job.status,
        products_found=job.products_found,
        products_inserted=job.products_inserted,
        created_at=job.created_at,
        updated_at=job.updated_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        request_payload=job.request_payload,
        result_payload=job.result_payload,
        error_message=job.error_message,
    )


def _to_log_response(entry: CrawlLogEntry) -> CrawlLogEntryResponse:
    return CrawlLogEntryResponse(
        log_type=entry.log_type,
        message=entry.message,
        product_name=entry.product_name,
        product_url=entry.product_url,
        product_price=entry.product_price,
        filter_reason=entry.filter_reason,
        details=entry.details,
        created_at=entry.created_at,
    )
