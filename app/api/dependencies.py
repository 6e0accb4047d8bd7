"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import BackgroundTasks, Depends

from app.services.crawl_orchestrator_service import (
    CrawlOrchestratorService,
    CrawlTaskExecutor,
    FastAPIBackgroundTaskExecutor,
    get_crawl_orchestrator_service,
    get_thread_pool_executor,
)


def get_task_executor(
    background_tasks: BackgroundTasks,
    orchestrator: CrawlOrchestratorService = Depends(get_crawl_orchestrator_service),
) -> CrawlTaskExecutor:
    """
    Pick where detached crawl jobs run: the request's background tasks or the shared thread pool.
    """

    if orchestrator.settings.executor == "thread":
        return get_thread_pool_executor()
    return FastAPIBackgroundTaskExecutor(background_tasks)
