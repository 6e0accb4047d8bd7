"""
Canonical product keys.

Two URLs that point at the same product (tracking parameters, variant
suffixes, trailing slashes) map to the same key so a product is stored once
per competitor.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import TypeVar
from urllib.parse import urlparse

T = TypeVar("T")

_NUMERIC_ID_HTML = re.compile(r"/(\d{5,})-[^/]+\.html$")
_PRODUCTS_HANDLE = re.compile(r"/products/([^/]+)")
_LEADING_ID = re.compile(r"^(\d{5,})")

_SIZE_TOKENS = (
    "xxxs",
    "xxs",
    "xs",
    "s",
    "m",
    "l",
    "xl",
    "xxl",
    "xxxl",
    "2xl",
    "3xl",
    "4xl",
    "small",
    "medium",
    "large",
    "one-size",
    "onesize",
)
_COLOUR_TOKENS = (
    "black",
    "white",
    "red",
    "blue",
    "green",
    "yellow",
    "pink",
    "purple",
    "orange",
    "brown",
    "grey",
    "gray",
    "beige",
    "navy",
    "zwart",
    "wit",
    "rood",
    "blauw",
    "groen",
    "geel",
    "roze",
    "paars",
    "bruin",
    "grijs",
)
_TRAILING_VARIANT = re.compile(
    r"-(?:" + "|".join(re.escape(token) for token in _SIZE_TOKENS + _COLOUR_TOKENS) + r"|\d{2,3})$"
)


def _strip_variant_suffixes(leaf: str) -> str:
    while True:
        stripped = _TRAILING_VARIANT.sub("", leaf)
        if stripped == leaf or not stripped:
            return leaf
        leaf = stripped


def _normalized_path(path: str) -> str:
    path = path.lower().rstrip("/")
    if path.endswith(".html"):
        path = path[: -len(".html")]
    head, _, leaf = path.rpartition("/")
    return f"{head}/{_strip_variant_suffixes(leaf)}" if leaf else path or "/"


def canonical_key(url: str) -> str:
    """
    Return the stable product key for `url`.

    Priority: numeric id from a `/{id}-slug.html` page, then the Shopify-style
    `/products/{handle}`, then a leading numeric id on the final segment, then
    the normalized path.
    """

    try:
        path = urlparse(url.strip()).path
    except (AttributeError, ValueError):
        return f"path:{str(url).strip().lower()}"

    lowered = path.lower()
    match = _NUMERIC_ID_HTML.search(lowered)
    if match:
        return f"id:{match.group(1)}"

    match = _PRODUCTS_HANDLE.search(lowered)
    if match:
        return f"handle:{match.group(1)}"

    segments = [segment for segment in lowered.split("/") if segment]
    if segments:
        match = _LEADING_ID.match(segments[-1])
        if match:
            return f"id:{match.group(1)}"

    return f"path:{_normalized_path(path)}"


def dedupe_by_canonical_key(
    items: Iterable[T],
    key: Callable[[T], str] | None = None,
) -> list[T]:
    """
    Keep the first item per canonical key, preserving input order.
    """

    key_for = key or canonical_key
    seen: set[str] = set()
    unique: list[T] = []
    for item in items:
        item_key = key_for(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        unique.append(item)
    return unique
