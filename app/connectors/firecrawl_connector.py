"""
app/connectors/firecrawl_connector.py

Firecrawl v1 implementation of the scrape/extract capability.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from app.config import FirecrawlSettings, get_firecrawl_settings
from app.connectors.base import ExtractionResponse, ScrapeConnector, ScrapeRequestError
from app.scraping.prompts import SINGLE_PRODUCT_PROMPT, SINGLE_PRODUCT_SCHEMA

logger = logging.getLogger(__name__)

_ERROR_BODY_PREVIEW = 200
_TIMEOUT_GRACE_SECONDS = 10.0


def _payload_field(payload: Any, name: str) -> Any:
    """
    Read `name` from `payload["data"]`, falling back to the top level.
    """

    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get(name) is not None:
        return data.get(name)
    return payload.get(name)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


class FirecrawlConnector(ScrapeConnector):
    """
    Thin client over the Firecrawl `/v1/scrape` and `/v1/map` endpoints.

    Every call makes exactly one HTTP request; retrying is left to the caller.
    """

    def __init__(
        self,
        *,
        settings: FirecrawlSettings,
        session: requests.Session | None = None,
        single_product_wait_ms: int = 2000,
    ) -> None:
        if not settings.api_key:
            raise RuntimeError("FIRECRAWL_API_KEY is not configured.")
        self._settings = settings
        self._session = session or requests.Session()
        self._single_product_wait_ms = single_product_wait_ms

    def scrape_for_links(self, url: str) -> list[str]:
        payload = self._post(
            "/v1/scrape",
            {"url": url, "formats": ["links"], "onlyMainContent": False},
            timeout_seconds=self._settings.links_timeout_seconds,
        )
        return _string_list(_payload_field(payload, "links"))

    def scrape_with_extraction(
        self,
        url: str,
        *,
        prompt: str,
        schema: dict[str, Any],
        wait_for_ms: int,
        timeout_ms: int,
    ) -> ExtractionResponse:
        payload = self._post(
            "/v1/scrape",
            {
                "url": url,
                "formats": ["extract", "links"],
                "extract": {"prompt": prompt, "schema": schema},
                "onlyMainContent": False,
                "waitFor": wait_for_ms,
                "timeout": timeout_ms,
            },
            timeout_seconds=timeout_ms / 1000.0 + _TIMEOUT_GRACE_SECONDS,
        )
        extracted = _payload_field(payload, "extract")
        products = extracted.get("products") if isinstance(extracted, dict) else None
        return ExtractionResponse(
            products=[item for item in products if isinstance(item, dict)] if isinstance(products, list) else [],
            links=_string_list(_payload_field(payload, "links")),
        )

    def extract_product(self, url: str) -> dict[str, Any] | None:
        payload = self._post(
            "/v1/scrape",
            {
                "url": url,
                "formats": ["extract"],
                "extract": {"prompt": SINGLE_PRODUCT_PROMPT, "schema": SINGLE_PRODUCT_SCHEMA},
                "onlyMainContent": True,
                "waitFor": self._single_product_wait_ms,
            },
            timeout_seconds=self._settings.extract_timeout_seconds,
        )
        extracted = _payload_field(payload, "extract")
        if not isinstance(extracted, dict) or not extracted.get("name"):
            return None
        return extracted

    def site_map(self, url: str, *, search: str | None, limit: int) -> list[str]:
        body: dict[str, Any] = {"url": url, "limit": limit, "includeSubdomains": False}
        if search:
            body["search"] = search
        payload = self._post("/v1/map", body, timeout_seconds=self._settings.links_timeout_seconds)
        return _string_list(_payload_field(payload, "links"))

    def _post(self, path: str, body: dict[str, Any], *, timeout_seconds: float) -> Any:
        """
        POST one JSON request and return the parsed body.
        """

        url = f"{self._settings.base_url}{path}"
        try:
            response = self._session.post(
                url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self._settings.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=timeout_seconds,
            )
        except requests.Timeout as exc:
            raise ScrapeRequestError(f"Request to {path} timed out.", timed_out=True) from exc
        except requests.RequestException as exc:
            raise ScrapeRequestError(f"Request to {path} failed: {exc}") from exc

        if not response.ok:
            preview = response.text[:_ERROR_BODY_PREVIEW]
            logger.warning(
                "Firecrawl request failed path=%s status=%s target=%s",
                path,
                response.status_code,
                body.get("url"),
            )
            raise ScrapeRequestError(
                f"HTTP {response.status_code}: {preview}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ScrapeRequestError(f"Response from {path} was not valid JSON.") from exc


def get_scrape_connector() -> ScrapeConnector:
    """
    Build the default capability connector from environment settings.
    """

    from app.scraping.config import get_crawl_settings

    return FirecrawlConnector(
        settings=get_firecrawl_settings(),
        single_product_wait_ms=get_crawl_settings().single_product_wait_ms,
    )
