"""
Retry policy for capability calls.

The policy is a value object so the retry decisions (which failures are worth
another attempt, how long to wait) can be tested without any network access.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import requests

from app.connectors.base import ScrapeRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

_HANDLED_ERRORS = (ScrapeRequestError, requests.RequestException)


class RetryError(RuntimeError):
    """
    Base error for a retried operation that did not succeed.

    Attributes:
        attempts: Attempts actually made.
        max_attempts: Attempts the policy allowed.
        last_error: Error raised by the final attempt.
        history: Errors from every failed attempt, oldest first.
    """

    def __init__(
        self,
        *,
        description: str,
        attempts: int,
        max_attempts: int,
        last_error: BaseException,
        history: list[BaseException],
    ) -> None:
        self.description = description
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.last_error = last_error
        self.history = history
        super().__init__(
            f"{description} failed after {attempts} attempt(s) "
            f"(max {max_attempts}). Last error: {last_error}"
        )


class RetryExhaustedError(RetryError):
    """
    Raised when every allowed attempt failed with a retryable error.
    """


class NonRetryableError(RetryError):
    """
    Raised when an attempt failed with an error the policy does not retry.
    """


@dataclass(frozen=True)
class RetryPolicy:
    """
    Attempt budget, backoff and retryability rules for one operation.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 2.0
    backoff_multiplier: float = 2.0
    retryable_status_codes: frozenset[int] = RETRYABLE_STATUS_CODES
    retry_on_server_errors: bool = True
    retry_on_timeout: bool = True

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, ScrapeRequestError):
            if error.timed_out or error.status_code is None:
                return self.retry_on_timeout
            return self.is_retryable_status(error.status_code)
        if isinstance(error, (requests.Timeout, requests.ConnectionError)):
            return self.retry_on_timeout
        if isinstance(error, requests.HTTPError) and error.response is not None:
            return self.is_retryable_status(error.response.status_code)
        return False

    def is_retryable_status(self, status_code: int) -> bool:
        if status_code in self.retryable_status_codes:
            return True
        return self.retry_on_server_errors and 500 <= status_code < 600

    def delay_for(self, attempt: int) -> float:
        """
        Backoff before the attempt following 1-based `attempt`.
        """

        return self.base_delay_seconds * (self.backoff_multiplier ** (attempt - 1))


def execute_with_retry(
    policy: RetryPolicy,
    operation: Callable[[int], T],
    *,
    description: str = "Request",
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Callable[[int, BaseException, float], None] | None = None,
) -> T:
    """
    Run `operation(attempt)` under `policy`.

    `attempt` is 1-based so callers can grow per-attempt budgets. Errors the
    policy does not know about propagate unchanged.

    Raises:
        NonRetryableError: an attempt failed with a non-retryable error.
        RetryExhaustedError: all attempts failed with retryable errors.
    """

    history: list[BaseException] = []
    max_attempts = max(1, policy.max_attempts)

    for attempt in range(1, max_attempts + 1):
        try:
            return operation(attempt)
        except _HANDLED_ERRORS as exc:
            history.append(exc)
            if not policy.is_retryable(exc):
                raise NonRetryableError(
                    description=description,
                    attempts=attempt,
                    max_attempts=max_attempts,
                    last_error=exc,
                    history=history,
                ) from exc

            if attempt >= max_attempts:
                break

            delay = policy.delay_for(attempt)
            logger.warning(
                "%s retry attempt=%s/%s wait_seconds=%.2f error=%s",
                description,
                attempt,
                max_attempts,
                delay,
                exc,
            )
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            sleep(delay)

    raise RetryExhaustedError(
        description=description,
        attempts=len(history),
        max_attempts=max_attempts,
        last_error=history[-1],
        history=history,
    ) from history[-1]
