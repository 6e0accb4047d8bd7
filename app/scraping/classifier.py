"""
Heuristic product-URL classifier.

Classification is an ordered tuple of rules evaluated first-match-wins. Each
rule carries a verdict and a human-readable reason so every decision can be
explained in the crawl log.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import urljoin, urlparse

MIN_PATH_LENGTH = 5
MIN_HTML_LEAF_LENGTH = 10
MIN_SLUG_LEAF_LENGTH = 20
MIN_SLUG_DEPTH = 2

_LOCALE_SEGMENT = re.compile(r"^[a-z]{2}(?:[-_][a-z]{2})?$")
_NUMERIC_CATEGORY_LEAF = re.compile(r"^\d{1,3}-[a-z]")
_NUMERIC_ID_HTML = re.compile(r"/\d{5,}-[^/]+\.html$")
_NUMERIC_LEAF_PREFIX = re.compile(r"^\d{5,}")

_DENYLIST_SEGMENTS = frozenset(
    {
        "cart",
        "winkelwagen",
        "checkout",
        "account",
        "accounts",
        "login",
        "logout",
        "register",
        "wishlist",
        "verlanglijst",
        "search",
        "zoeken",
        "returns",
        "retourneren",
        "shipping",
        "verzending",
        "privacy",
        "privacy-policy",
        "terms",
        "terms-and-conditions",
        "voorwaarden",
        "faq",
        "klantenservice",
        "customer",
        "customer-service",
        "contact",
        "about",
        "about-us",
        "over-ons",
        "info",
        "blog",
        "blogs",
        "news",
        "nieuws",
        "magazine",
        "brand",
        "brands",
        "merken",
        "stores",
        "store-locator",
        "winkels",
        "page",
        "pagina",
        "giftcard",
        "gift-card",
    }
)
_DENYLIST_FRAGMENTS = ("size-guide", "sizeguide", "maattabel", "affiliate")
_DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".zip", ".csv", ".xml")

_COLLECTION_SEGMENTS = frozenset(
    {"collections", "collection", "category", "categories", "categorie", "c", "shop"}
)
_PRODUCT_SEGMENTS = frozenset({"products", "product"})
_ITEM_SEGMENTS = frozenset({"p", "item", "artikel"})


@dataclass(frozen=True)
class UrlFacts:
    """
    Pre-parsed view of one URL that rule predicates inspect.
    """

    url: str
    host: str
    base_host: str
    path: str
    segments: tuple[str, ...]
    custom_patterns: tuple[str, ...]

    @property
    def leaf(self) -> str:
        return self.segments[-1] if self.segments else ""


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    predicate: Callable[[UrlFacts], bool]
    verdict: bool
    reason: str


@dataclass(frozen=True)
class ClassificationDecision:
    is_product: bool
    rule: str
    reason: str


def _normalize_host(host: str | None) -> str:
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def _is_off_site(facts: UrlFacts) -> bool:
    return bool(facts.base_host) and facts.host != facts.base_host


def _is_root(facts: UrlFacts) -> bool:
    return not facts.segments


def _is_near_root(facts: UrlFacts) -> bool:
    return len(facts.segments) == 1 and bool(_LOCALE_SEGMENT.match(facts.segments[0]))


def _is_too_short(facts: UrlFacts) -> bool:
    return len(facts.path) < MIN_PATH_LENGTH


def _has_denylisted_segment(facts: UrlFacts) -> bool:
    for segment in facts.segments:
        if segment in _DENYLIST_SEGMENTS:
            return True
        if any(fragment in segment for fragment in _DENYLIST_FRAGMENTS):
            return True
    return False


def _is_document(facts: UrlFacts) -> bool:
    return facts.leaf.endswith(_DOCUMENT_EXTENSIONS)


def _is_numeric_category(facts: UrlFacts) -> bool:
    return bool(_NUMERIC_CATEGORY_LEAF.match(facts.leaf))


def _has_product_marker(facts: UrlFacts) -> bool:
    return (
        any(segment in _PRODUCT_SEGMENTS or segment in _ITEM_SEGMENTS for segment in facts.segments)
        or bool(_NUMERIC_LEAF_PREFIX.match(facts.leaf))
        or facts.leaf.endswith(".html")
    )


def _is_pure_collection(facts: UrlFacts) -> bool:
    has_collection = any(segment in _COLLECTION_SEGMENTS for segment in facts.segments)
    return has_collection and not _has_product_marker(facts)


def matches_custom_pattern(path: str, pattern: str) -> bool:
    """
    Match one admin-configured pattern: `^`-prefixed regex or literal substring.
    """

    pattern = pattern.strip()
    if not pattern:
        return False
    if pattern.startswith("^"):
        try:
            return re.search(pattern, path, re.IGNORECASE) is not None
        except re.error:
            return False
    return pattern.lower() in path


def _custom_pattern_hit(facts: UrlFacts) -> bool:
    return bool(facts.custom_patterns) and any(
        matches_custom_pattern(facts.path, pattern) for pattern in facts.custom_patterns
    )


def _custom_pattern_miss(facts: UrlFacts) -> bool:
    return bool(facts.custom_patterns)


def _has_product_segment(facts: UrlFacts) -> bool:
    last_index = len(facts.segments) - 1
    return any(
        segment in _PRODUCT_SEGMENTS and index < last_index
        for index, segment in enumerate(facts.segments)
    )


def _has_numeric_id_html(facts: UrlFacts) -> bool:
    return bool(_NUMERIC_ID_HTML.search(facts.path))


def _has_html_leaf(facts: UrlFacts) -> bool:
    return facts.leaf.endswith(".html") and len(facts.leaf) > MIN_HTML_LEAF_LENGTH


def _has_numeric_leaf_prefix(facts: UrlFacts) -> bool:
    return bool(_NUMERIC_LEAF_PREFIX.match(facts.leaf))


def _has_item_segment(facts: UrlFacts) -> bool:
    last_index = len(facts.segments) - 1
    return any(
        segment in _ITEM_SEGMENTS and index < last_index
        for index, segment in enumerate(facts.segments)
    )


def _has_long_slug(facts: UrlFacts) -> bool:
    return (
        len(facts.segments) >= MIN_SLUG_DEPTH
        and len(facts.leaf) >= MIN_SLUG_LEAF_LENGTH
        and "-" in facts.leaf
    )


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("off_site", _is_off_site, False, "link points to another site"),
    ClassificationRule("root_path", _is_root, False, "root page"),
    ClassificationRule("near_root", _is_near_root, False, "locale landing page"),
    ClassificationRule("too_short", _is_too_short, False, "path too short"),
    ClassificationRule("denylisted", _has_denylisted_segment, False, "utility or navigation page"),
    ClassificationRule("document", _is_document, False, "document download"),
    ClassificationRule("numeric_category", _is_numeric_category, False, "numbered category page"),
    ClassificationRule("collection", _is_pure_collection, False, "collection or category page"),
    ClassificationRule("custom_pattern", _custom_pattern_hit, True, "matches custom product pattern"),
    ClassificationRule("custom_pattern_miss", _custom_pattern_miss, False, "no custom product pattern matched"),
    ClassificationRule("product_segment", _has_product_segment, True, "product path segment"),
    ClassificationRule("numeric_id_html", _has_numeric_id_html, True, "numeric product id page"),
    ClassificationRule("html_leaf", _has_html_leaf, True, "product detail page"),
    ClassificationRule("numeric_leaf", _has_numeric_leaf_prefix, True, "numeric product id"),
    ClassificationRule("item_segment", _has_item_segment, True, "item path segment"),
    ClassificationRule("long_slug", _has_long_slug, True, "descriptive product slug"),
)

_MALFORMED = ClassificationDecision(False, "malformed", "malformed URL")
_DEFAULT_REJECT = ClassificationDecision(False, "default", "no product signal")


def build_url_facts(
    url: object,
    base_url: object = "",
    custom_patterns: Sequence[str] | None = None,
) -> UrlFacts | None:
    """
    Parse a raw link into UrlFacts; None when the link is not a usable http(s) URL.
    """

    if not isinstance(url, str) or not url.strip():
        return None
    base = base_url.strip() if isinstance(base_url, str) else ""
    try:
        absolute = urljoin(base, url.strip()) if base else url.strip()
        parsed = urlparse(absolute)
        base_parsed = urlparse(base)
        host = _normalize_host(parsed.hostname)
        base_host = _normalize_host(base_parsed.hostname)
    except ValueError:
        return None

    if parsed.scheme not in {"http", "https"} or not host:
        return None

    path = parsed.path.lower() or "/"
    patterns = tuple(
        pattern for pattern in (custom_patterns or ()) if isinstance(pattern, str) and pattern.strip()
    )
    return UrlFacts(
        url=absolute,
        host=host,
        base_host=base_host,
        path=path,
        segments=tuple(segment for segment in path.split("/") if segment),
        custom_patterns=patterns,
    )


def classify_url(
    url: object,
    base_url: object = "",
    custom_patterns: Sequence[str] | None = None,
    *,
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> ClassificationDecision:
    """
    Return the first matching rule's verdict for `url`.
    """

    facts = build_url_facts(url, base_url, custom_patterns)
    if facts is None:
        return _MALFORMED

    for rule in rules:
        if rule.predicate(facts):
            return ClassificationDecision(rule.verdict, rule.name, rule.reason)
    return _DEFAULT_REJECT


def is_product_url(
    url: object,
    base_url: object = "",
    custom_patterns: Sequence[str] | None = None,
) -> bool:
    return classify_url(url, base_url, custom_patterns).is_product
