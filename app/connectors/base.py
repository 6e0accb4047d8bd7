"""
app/connectors/base.py

Scrape/extract capability abstraction and shared response types.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ScrapeRequestError(RuntimeError):
    """
    Raised when one capability call fails.

    `status_code` is the HTTP status when the capability answered, None for
    transport failures and unreadable bodies. `timed_out` marks request
    timeouts.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


@dataclass(frozen=True)
class ExtractionResponse:
    """
    Parsed result of a schema-constrained listing extraction.
    """

    products: list[dict[str, Any]] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


class ScrapeConnector(ABC):
    """
    Interface to the external scrape/extract capability.
    """

    @abstractmethod
    def scrape_for_links(self, url: str) -> list[str]:
        """
        Return every link found on the rendered page.
        """

    @abstractmethod
    def scrape_with_extraction(
        self,
        url: str,
        *,
        prompt: str,
        schema: dict[str, Any],
        wait_for_ms: int,
        timeout_ms: int,
    ) -> ExtractionResponse:
        """
        Run schema-constrained extraction against a listing page.
        """

    @abstractmethod
    def extract_product(self, url: str) -> dict[str, Any] | None:
        """
        Extract a single product from its detail page; None when nothing usable came back.
        """

    @abstractmethod
    def site_map(self, url: str, *, search: str | None, limit: int) -> list[str]:
        """
        Return URLs the capability knows for the site, scoped by `search`.
        """
