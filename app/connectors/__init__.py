"""
app/connectors package marker.
"""

from app.connectors.base import ExtractionResponse, ScrapeConnector, ScrapeRequestError
from app.connectors.firecrawl_connector import FirecrawlConnector, get_scrape_connector

__all__ = [
    "ExtractionResponse",
    "FirecrawlConnector",
    "ScrapeConnector",
    "ScrapeRequestError",
    "get_scrape_connector",
]
