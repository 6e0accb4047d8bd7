"""
Extraction prompts and JSON schemas sent to the scrape/extract capability.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

PRODUCT_LIST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "products": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Product name without brand suffix"},
                    "price": {"type": "string", "description": "Price with currency symbol (e.g., €49.95)"},
                    "image_url": {"type": "string", "description": "Main product image URL"},
                    "product_url": {"type": "string", "description": "Full URL to the product page"},
                },
                "required": ["name", "product_url"],
            },
        },
    },
    "required": ["products"],
}

SINGLE_PRODUCT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "price": {"type": "string"},
        "image_url": {"type": "string"},
    },
    "required": ["name"],
}

SINGLE_PRODUCT_PROMPT = (
    "Extract the product name (without brand suffix), price with currency, "
    "and main product image URL."
)


def build_listing_prompt(
    *,
    listing_url: str,
    limit: int,
    excluded_keywords: Sequence[str] = (),
) -> str:
    """
    Instruction for bulk extraction of a new-arrivals listing page.
    """

    lines = [
        "You are scraping an e-commerce website to find new/recent products.",
        "",
        f"Starting from the page: {listing_url}",
        "",
        "Your task:",
        '1. Find all product listings on this page (usually a "new arrivals" section).',
        "2. For each product found, extract:",
        "   - Product name (without the brand name suffix)",
        "   - Price with currency symbol (e.g., €49.95)",
        "   - Main product image URL (the primary product photo, not thumbnails or icons)",
        "   - Product page URL",
    ]
    keywords = [keyword.strip() for keyword in excluded_keywords if keyword and keyword.strip()]
    if keywords:
        lines.extend(
            [
                "",
                "IMPORTANT: Exclude any products that contain these words in their name or URL: "
                + ", ".join(keywords),
            ]
        )
    lines.extend(
        [
            "",
            f"Return up to {limit} products, prioritizing the newest/most recently added items.",
        ]
    )
    return "\n".join(lines)
