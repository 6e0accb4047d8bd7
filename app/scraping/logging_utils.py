"""
Structured logging helpers for crawl workflows.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def bind_crawl_context(
    logger: logging.Logger,
    *,
    competitor: str,
    job_id: Any = None,
) -> Callable[..., None]:
    """
    Return a `log_event` variant with competitor and job id pre-bound.
    """

    context: dict[str, Any] = {"competitor": competitor}
    if job_id is not None:
        context["job_id"] = str(job_id)
    return functools.partial(_log_with_context, logger, context)


def _log_with_context(
    logger: logging.Logger,
    context: dict[str, Any],
    level: int,
    event: str,
    **fields: Any,
) -> None:
    log_event(logger, level, event, **{**context, **fields})
