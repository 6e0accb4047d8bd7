"""
Crawl pipeline configuration models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CrawlSettings:
    """
    Runtime settings for the crawl-and-extraction pipeline.
    """

    default_limit: int = 50
    max_limit: int = 100
    min_accepted_links: int = 10
    site_map_limit: int = 200
    fallback_max_urls: int = 25
    fallback_delay_seconds: float = 0.5
    bulk_max_attempts: int = 3
    bulk_backoff_initial_seconds: float = 2.0
    bulk_backoff_multiplier: float = 2.0
    bulk_wait_base_ms: int = 5000
    bulk_wait_step_ms: int = 3000
    bulk_timeout_base_ms: int = 60000
    bulk_timeout_step_ms: int = 30000
    single_product_wait_ms: int = 2000
    worker_threads: int = 4
    executor: str = "background"

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None or limit < 1:
            return self.default_limit
        return min(limit, self.max_limit)

    def wait_for_ms(self, attempt: int) -> int:
        """
        Render wait for a 1-based bulk extraction attempt.
        """

        return self.bulk_wait_base_ms + (attempt - 1) * self.bulk_wait_step_ms

    def timeout_ms(self, attempt: int) -> int:
        return self.bulk_timeout_base_ms + (attempt - 1) * self.bulk_timeout_step_ms
