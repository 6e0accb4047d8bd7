"""
Candidate URL discovery for one competitor listing page.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from urllib.parse import urljoin, urlparse

from app.connectors.base import ScrapeConnector, ScrapeRequestError
from app.domain.crawl import CandidateUrl, CompetitorTarget, DiscoveryResult, DiscoverySource
from app.scraping.classifier import is_product_url
from app.scraping.config.models import CrawlSettings
from app.scraping.logging_utils import log_event

logger = logging.getLogger(__name__)

NEW_ARRIVAL_TERMS = ("new", "nieuw", "neu", "nouveau", "nuevo")


def site_map_search_term(listing_url: str) -> str | None:
    """
    Return the listing path segment that names a new-arrivals section, if any.
    """

    try:
        path = urlparse(listing_url).path.lower()
    except ValueError:
        return None
    for segment in path.split("/"):
        if segment and any(term in segment for term in NEW_ARRIVAL_TERMS):
            return segment
    return None


class UrlDiscovery:
    """
    Collect candidate URLs from the listing page, topping up from the site map.

    The site map is consulted only when the listing page surfaces fewer than
    `min_accepted_links` product-looking links. Capability failures are
    recorded on the result and never raised.
    """

    def __init__(self, *, connector: ScrapeConnector, settings: CrawlSettings) -> None:
        self._connector = connector
        self._settings = settings

    def discover(self, target: CompetitorTarget) -> DiscoveryResult:
        result = DiscoveryResult()
        seen: set[str] = set()
        listing_url = target.base_scrape_url

        try:
            links = self._connector.scrape_for_links(listing_url)
        except ScrapeRequestError as exc:
            links = []
            result.errors.append(f"Listing link scrape failed: {exc}")
            log_event(
                logger,
                logging.WARNING,
                "discovery_listing_failed",
                competitor=target.name,
                url=listing_url,
                error=str(exc),
            )

        result.listing_link_count = len(links)
        self._merge(result, links, DiscoverySource.LISTING_PAGE, seen, listing_url)

        accepted = self.count_accepted(result.candidates, target)
        if accepted >= self._settings.min_accepted_links:
            return result

        search = site_map_search_term(listing_url)
        result.site_map_used = True
        try:
            mapped = self._connector.site_map(
                listing_url,
                search=search,
                limit=self._settings.site_map_limit,
            )
        except ScrapeRequestError as exc:
            mapped = []
            result.errors.append(f"Site map lookup failed: {exc}")
            log_event(
                logger,
                logging.WARNING,
                "discovery_site_map_failed",
                competitor=target.name,
                url=listing_url,
                search=search,
                error=str(exc),
            )

        result.site_map_link_count = len(mapped)
        self._merge(result, mapped, DiscoverySource.SITE_MAP, seen, listing_url)
        log_event(
            logger,
            logging.INFO,
            "discovery_site_map_merged",
            competitor=target.name,
            accepted_before=accepted,
            site_map_links=len(mapped),
            search=search,
        )
        return result

    @staticmethod
    def count_accepted(candidates: Iterable[CandidateUrl], target: CompetitorTarget) -> int:
        return sum(
            1
            for candidate in candidates
            if is_product_url(candidate.url, target.base_scrape_url, target.url_patterns)
        )

    @staticmethod
    def _merge(
        result: DiscoveryResult,
        links: Iterable[str],
        source: str,
        seen: set[str],
        base_url: str,
    ) -> None:
        for link in links:
            if not isinstance(link, str) or not link.strip():
                continue
            url = link.strip()
            if not url.lower().startswith(("http://", "https://")):
                url = urljoin(base_url, url)
            if url in seen:
                continue
            seen.add(url)
            result.candidates.append(CandidateUrl(url=url, source=source))
