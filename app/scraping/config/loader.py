"""
Environment loader for crawl pipeline settings.
"""

from __future__ import annotations

from functools import lru_cache

from db.config import env_float, env_int, env_str, load_env_files

from app.scraping.config.models import CrawlSettings


@lru_cache(maxsize=1)
def get_crawl_settings() -> CrawlSettings:
    """
    Return cached crawl settings from environment variables.
    """

    load_env_files()
    max_limit = max(1, env_int("CRAWL_MAX_LIMIT", 100))
    return CrawlSettings(
        default_limit=min(max_limit, max(1, env_int("CRAWL_DEFAULT_LIMIT", 50))),
        max_limit=max_limit,
        min_accepted_links=max(0, env_int("CRAWL_MIN_ACCEPTED_LINKS", 10)),
        site_map_limit=max(1, env_int("CRAWL_SITE_MAP_LIMIT", 200)),
        fallback_max_urls=max(1, env_int("CRAWL_FALLBACK_MAX_URLS", 25)),
        fallback_delay_seconds=max(0.0, env_float("CRAWL_FALLBACK_DELAY_SECONDS", 0.5)),
        bulk_max_attempts=max(1, env_int("CRAWL_BULK_MAX_ATTEMPTS", 3)),
        bulk_backoff_initial_seconds=max(0.0, env_float("CRAWL_BULK_BACKOFF_INITIAL_SECONDS", 2.0)),
        bulk_backoff_multiplier=max(1.0, env_float("CRAWL_BULK_BACKOFF_MULTIPLIER", 2.0)),
        bulk_wait_base_ms=max(0, env_int("CRAWL_BULK_WAIT_BASE_MS", 5000)),
        bulk_wait_step_ms=max(0, env_int("CRAWL_BULK_WAIT_STEP_MS", 3000)),
        bulk_timeout_base_ms=max(1000, env_int("CRAWL_BULK_TIMEOUT_BASE_MS", 60000)),
        bulk_timeout_step_ms=max(0, env_int("CRAWL_BULK_TIMEOUT_STEP_MS", 30000)),
        single_product_wait_ms=max(0, env_int("CRAWL_SINGLE_PRODUCT_WAIT_MS", 2000)),
        worker_threads=max(1, env_int("CRAWL_WORKER_THREADS", 4)),
        executor=env_str("CRAWL_EXECUTOR", "background").lower(),
    )
