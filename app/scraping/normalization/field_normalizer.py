"""
Field normalization for extracted products.

Every helper is total: bad input yields None, never an exception.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from urllib.parse import urljoin, urlparse

from app.domain.crawl import ExtractedProduct, RawProduct, optional_text
from app.scraping.canonical import canonical_key
from db.models.product import PRICE_PRECISION, PRICE_SCALE

MAX_NAME_LENGTH = 255

_CURRENCY = re.compile(r"(?i)\b(?:eur|usd|gbp|chf|sek|nok|dkk|pln)\b|[€$£¥]")
_NUMBER = re.compile(r"\d[\d.,]*")
_COMMA_DECIMAL = re.compile(r",\d{2}$")
_CENTS = Decimal("0.01")

# Largest value the products.price column holds.
MAX_PRICE = Decimal(10) ** (PRICE_PRECISION - PRICE_SCALE) - _CENTS

_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".avif", ".svg")
_IMAGE_SIGNALS = ("cdn", "media", "image", "img", "asset", "static")
_PAGE_SEGMENTS = frozenset(
    {"product", "products", "category", "categories", "collection", "collections", "shop"}
)
_EMBEDDED_URL = re.compile(r"https?://", re.IGNORECASE)

_NAME_SEPARATOR = re.compile(r"\s*\|\s*|\s+[-–—]\s+")
_WHITESPACE = re.compile(r"\s+")


def parse_price(value: object) -> Decimal | None:
    """
    Parse a display price such as "€ 1.234,56" or "$1,299.00".

    Values above MAX_PRICE do not fit the price column and yield None.
    """

    text = optional_text(value)
    if text is None:
        return None

    cleaned = _WHITESPACE.sub("", _CURRENCY.sub("", text))
    match = _NUMBER.search(cleaned)
    if not match:
        return None

    number = match.group(0).rstrip(".,")
    if _COMMA_DECIMAL.search(number):
        number = number.replace(".", "").replace(",", ".")
    else:
        number = number.replace(",", "")

    try:
        price = Decimal(number).quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if price > MAX_PRICE:
        return None
    return price


def _repair_concatenated(url: str) -> str:
    matches = list(_EMBEDDED_URL.finditer(url))
    if len(matches) > 1:
        return url[matches[-1].start():]
    return url


def _origin(base_url: str) -> str | None:
    try:
        parsed = urlparse(base_url)
    except ValueError:
        return None
    if not parsed.netloc:
        return None
    return f"{parsed.scheme or 'https'}://{parsed.netloc}"


def clean_image_url(value: object, base_url: str = "") -> str | None:
    """
    Return an absolute image URL, or None when the value does not look like one.
    """

    text = optional_text(value)
    if text is None:
        return None

    candidate = _repair_concatenated(text)
    if candidate.startswith("//"):
        candidate = f"https:{candidate}"
    elif candidate.startswith("/"):
        origin = _origin(base_url)
        if origin is None:
            return None
        candidate = f"{origin}{candidate}"
    elif not _EMBEDDED_URL.match(candidate):
        if not base_url:
            return None
        candidate = urljoin(base_url, candidate)

    try:
        parsed = urlparse(candidate)
    except ValueError:
        return None
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None

    path = parsed.path.lower()
    if path.endswith(".html"):
        return None

    has_extension = path.endswith(_IMAGE_EXTENSIONS)
    if has_extension:
        return candidate

    segments = {segment for segment in path.split("/") if segment}
    if segments & _PAGE_SEGMENTS:
        return None

    haystack = f"{parsed.netloc}{path}".lower()
    if any(signal in haystack for signal in _IMAGE_SIGNALS):
        return candidate
    return None


def clean_product_name(value: object) -> str | None:
    """
    Drop a trailing brand/site suffix and tidy whitespace.
    """

    text = optional_text(value)
    if text is None:
        return None

    separators = list(_NAME_SEPARATOR.finditer(text))
    cleaned = text[: separators[-1].start()] if separators else text
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    if not cleaned:
        cleaned = _WHITESPACE.sub(" ", text).strip()
    return cleaned[:MAX_NAME_LENGTH] or None


def excluded_keyword(
    url: str | None,
    name: str | None,
    keywords: Sequence[str],
) -> str | None:
    """
    Return the first exclusion keyword found in the URL or name.
    """

    haystack = f"{url or ''} {name or ''}".lower()
    for keyword in keywords:
        needle = (keyword or "").strip().lower()
        if needle and needle in haystack:
            return keyword
    return None


def resolve_product_url(value: object, base_url: str) -> str | None:
    text = optional_text(value)
    if text is None:
        return None
    try:
        absolute = urljoin(base_url, text) if base_url else text
        parsed = urlparse(absolute)
    except ValueError:
        return None
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return absolute


def normalize_product(
    raw: RawProduct,
    *,
    competitor_name: str,
    base_url: str,
) -> ExtractedProduct | None:
    """
    Turn one raw extraction entry into a persistable product.

    Returns None when the entry has no usable name or product URL.
    """

    name = clean_product_name(raw.name)
    source_url = resolve_product_url(raw.product_url, base_url)
    if name is None or source_url is None:
        return None

    return ExtractedProduct(
        name=name,
        raw_price=raw.price,
        normalized_price=parse_price(raw.price),
        image_url=clean_image_url(raw.image_url, base_url),
        source_url=source_url,
        canonical_key=canonical_key(source_url),
        competitor_name=competitor_name,
    )
