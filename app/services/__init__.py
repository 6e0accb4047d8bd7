"""
app/services package marker.
"""

from app.services.crawl_orchestrator_service import (
    CompetitorInactiveError,
    CompetitorNotFoundError,
    CrawlOrchestratorService,
    CrawlTaskExecutor,
    FastAPIBackgroundTaskExecutor,
    InlineTaskExecutor,
    TaskHandle,
    ThreadPoolTaskExecutor,
    get_crawl_orchestrator_service,
)

__all__ = [
    "CompetitorInactiveError",
    "CompetitorNotFoundError",
    "CrawlOrchestratorService",
    "CrawlTaskExecutor",
    "FastAPIBackgroundTaskExecutor",
    "InlineTaskExecutor",
    "TaskHandle",
    "ThreadPoolTaskExecutor",
    "get_crawl_orchestrator_service",
]
