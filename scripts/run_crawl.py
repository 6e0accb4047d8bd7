"""
Run one competitor crawl synchronously from the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.services.crawl_orchestrator_service import (
    CompetitorInactiveError,
    CompetitorNotFoundError,
    CrawlOrchestratorService,
    InlineTaskExecutor,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Crawl one competitor listing for new products.")
    parser.add_argument(
        "--competitor",
        dest="competitor",
        required=True,
        help="Competitor id or name (case-insensitive).",
    )
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=None,
        help="Max products to extract (clamped to CRAWL_MAX_LIMIT).",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    service = CrawlOrchestratorService()
    try:
        triggered = service.trigger_crawl(
            competitor=args.competitor,
            limit=args.limit,
            executor=InlineTaskExecutor(),
        )
    except (CompetitorNotFoundError, CompetitorInactiveError) as exc:
        print(json.dumps({"success": False, "error": str(exc)}, indent=2))
        return 1

    job = service.get_job_status(job_id=triggered.job.id)
    if job is None:
        print(json.dumps({"success": False, "error": f"Crawl job not found: {triggered.job.id}"}, indent=2))
        return 1

    payload = {
        "success": job.status == "completed",
        "job_id": str(job.id),
        "competitor_name": triggered.competitor_name,
        "status": job.status,
        "products_found": job.products_found,
        "products_inserted": job.products_inserted,
        "result": job.result_payload,
        "error_message": job.error_message,
    }
    print(json.dumps(payload, indent=2, default=str))
    return 0 if payload["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
