"""
tests/test_classifier.py

Pytest unit tests for the ordered product-URL rule list.

Coverage
--------
- Structural rejects (off-site, root, locale landing, short path)
- Utility/navigation denylist and document downloads
- Collection and numbered category pages
- Custom admin patterns (literal and regex, invalid regex)
- Positive product heuristics
- Rule order is first-match-wins and rules are swappable
- Malformed input never raises
"""

from __future__ import annotations

import pytest

from app.scraping.classifier import (
    DEFAULT_RULES,
    ClassificationRule,
    classify_url,
    is_product_url,
    matches_custom_pattern,
)

BASE = "https://www.shop.example.com/nl/new-in"


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


class TestRejections:
    @pytest.mark.parametrize(
        ("url", "rule"),
        [
            ("https://other.example.org/products/linen-blazer", "off_site"),
            ("https://shop.example.com/", "root_path"),
            ("https://shop.example.com/nl", "near_root"),
            ("https://shop.example.com/en-gb/", "near_root"),
            ("https://shop.example.com/abc", "too_short"),
            ("https://shop.example.com/nl/cart", "denylisted"),
            ("https://shop.example.com/pages/size-guide-dresses", "denylisted"),
            ("https://shop.example.com/nl/klantenservice/retourneren", "denylisted"),
            ("https://shop.example.com/files/lookbook-summer.pdf", "document"),
            ("https://shop.example.com/nl/12-jurken", "numeric_category"),
            ("https://shop.example.com/collections/summer-dresses", "collection"),
        ],
    )
    def test_rejected_by_expected_rule(self, url: str, rule: str) -> None:
        decision = classify_url(url, BASE)
        assert decision.is_product is False
        assert decision.rule == rule

    def test_www_prefix_is_same_site(self) -> None:
        decision = classify_url("https://shop.example.com/products/linen-blazer", BASE)
        assert decision.is_product is True

    def test_collection_with_product_marker_is_not_rejected(self) -> None:
        decision = classify_url(
            "https://shop.example.com/collections/dresses/products/linen-midi-dress", BASE
        )
        assert decision.is_product is True
        assert decision.rule == "product_segment"

    def test_no_signal_falls_through_to_default(self) -> None:
        decision = classify_url("https://shop.example.com/nl/lookbook", BASE)
        assert decision.is_product is False
        assert decision.rule == "default"


# ---------------------------------------------------------------------------
# Positive heuristics
# ---------------------------------------------------------------------------


class TestProductSignals:
    @pytest.mark.parametrize(
        ("url", "rule"),
        [
            ("https://shop.example.com/products/linen-blazer", "product_segment"),
            ("https://shop.example.com/nl/123456-linnen-blazer.html", "numeric_id_html"),
            ("https://shop.example.com/nl/dames/linnen-blazer.html", "html_leaf"),
            ("https://shop.example.com/nl/dames/1234567", "numeric_leaf"),
            ("https://shop.example.com/nl/p/linnen-blazer", "item_segment"),
            ("https://shop.example.com/nl/dames/oversized-linnen-blazer-zand", "long_slug"),
        ],
    )
    def test_accepted_by_expected_rule(self, url: str, rule: str) -> None:
        decision = classify_url(url, BASE)
        assert decision.is_product is True
        assert decision.rule == rule

    def test_relative_link_resolved_against_base(self) -> None:
        assert is_product_url("/products/linen-blazer", BASE) is True

    def test_products_index_without_handle_is_not_a_product(self) -> None:
        assert is_product_url("https://shop.example.com/products", BASE) is False


# ---------------------------------------------------------------------------
# Custom patterns
# ---------------------------------------------------------------------------


class TestCustomPatterns:
    def test_literal_substring_match_accepts(self) -> None:
        decision = classify_url("https://shop.example.com/nl/kleding/artikel-99", BASE, ["/kleding/"])
        assert decision.is_product is True
        assert decision.rule == "custom_pattern"

    def test_custom_patterns_replace_heuristics_on_miss(self) -> None:
        decision = classify_url("https://shop.example.com/products/linen-blazer", BASE, ["/kleding/"])
        assert decision.is_product is False
        assert decision.rule == "custom_pattern_miss"

    def test_regex_pattern_is_case_insensitive(self) -> None:
        assert matches_custom_pattern("/nl/art/abc-123", r"^/NL/ART/") is True

    def test_invalid_regex_never_matches(self) -> None:
        assert matches_custom_pattern("/nl/art/abc-123", r"^/nl/(art") is False

    def test_blank_patterns_are_ignored(self) -> None:
        decision = classify_url("https://shop.example.com/products/linen-blazer", BASE, ["", "  "])
        assert decision.rule == "product_segment"

    def test_denylist_still_wins_over_custom_pattern(self) -> None:
        decision = classify_url("https://shop.example.com/nl/cart/kleding", BASE, ["/kleding"])
        assert decision.is_product is False
        assert decision.rule == "denylisted"


# ---------------------------------------------------------------------------
# Rule list mechanics
# ---------------------------------------------------------------------------


class TestRuleOrder:
    def test_rejections_precede_acceptances(self) -> None:
        names = [rule.name for rule in DEFAULT_RULES]
        first_accept = next(index for index, rule in enumerate(DEFAULT_RULES) if rule.verdict)
        assert all(not rule.verdict for rule in DEFAULT_RULES[:first_accept])
        assert names.index("custom_pattern") < names.index("product_segment")

    def test_first_match_wins(self) -> None:
        always = ClassificationRule("always", lambda facts: True, True, "always")
        never = ClassificationRule("never", lambda facts: True, False, "never")
        decision = classify_url("https://shop.example.com/anything-here", BASE, rules=[always, never])
        assert decision.rule == "always"

    def test_empty_rule_list_rejects_by_default(self) -> None:
        decision = classify_url("https://shop.example.com/products/linen-blazer", BASE, rules=[])
        assert decision.is_product is False
        assert decision.rule == "default"

    @pytest.mark.parametrize("url", [None, "", "   ", 42, "mailto:info@example.com", "javascript:void(0)"])
    def test_malformed_input_is_rejected(self, url: object) -> None:
        decision = classify_url(url, BASE)
        assert decision.is_product is False
        assert decision.rule == "malformed"
