"""
tests/test_field_normalizer.py

Pytest unit tests for product field normalization.

All helpers are total, so every test also documents what "bad input"
collapses to.

Coverage
--------
- Price parsing: currency symbols/codes, comma and dot decimals, thousands,
  values beyond the price column range
- Image URL cleanup: protocol-relative, root-relative, concatenated, page links
- Product name cleanup: brand suffixes, whitespace, length cap
- Exclusion keyword matching
- normalize_product end to end
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.crawl import RawProduct, optional_text
from app.scraping.normalization.field_normalizer import (
    MAX_NAME_LENGTH,
    MAX_PRICE,
    clean_image_url,
    clean_product_name,
    excluded_keyword,
    normalize_product,
    parse_price,
)

BASE = "https://shop.example.com/nl/new-in"


# ---------------------------------------------------------------------------
# optional_text
# ---------------------------------------------------------------------------


class TestOptionalText:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}, True])
    def test_absent_values_become_none(self, value: object) -> None:
        assert optional_text(value) is None

    def test_numbers_become_text(self) -> None:
        assert optional_text(49.95) == "49.95"

    def test_strips_whitespace(self) -> None:
        assert optional_text("  Linen blazer ") == "Linen blazer"


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


class TestParsePrice:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("€ 49,95", Decimal("49.95")),
            ("€49,95", Decimal("49.95")),
            ("€1.234,56", Decimal("1234.56")),
            ("$1,299.00", Decimal("1299.00")),
            ("EUR 59.99", Decimal("59.99")),
            ("£ 20", Decimal("20.00")),
            ("Now 39,- ", Decimal("39.00")),
            ("1,299", Decimal("1299.00")),
            ("49.955", Decimal("49.96")),
        ],
    )
    def test_parses_display_prices(self, raw: str, expected: Decimal) -> None:
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "N/A", "Sold out", "€", "prijs op aanvraag"])
    def test_unparseable_is_none(self, raw: object) -> None:
        assert parse_price(raw) is None

    def test_largest_column_value_is_kept(self) -> None:
        assert parse_price("€ 9.999.999.999,99") == MAX_PRICE

    @pytest.mark.parametrize("raw", ["€ 123.456.789.012,00", "+31 20 123 4567 89", "9999999999.995"])
    def test_values_beyond_column_range_are_none(self, raw: str) -> None:
        assert parse_price(raw) is None


# ---------------------------------------------------------------------------
# Image URLs
# ---------------------------------------------------------------------------


class TestCleanImageUrl:
    def test_absolute_image_kept(self) -> None:
        url = "https://cdn.shop.example.com/images/blazer.jpg"
        assert clean_image_url(url, BASE) == url

    def test_protocol_relative_gets_https(self) -> None:
        assert clean_image_url("//cdn.shop.example.com/blazer.webp", BASE) == "https://cdn.shop.example.com/blazer.webp"

    def test_root_relative_joined_to_origin(self) -> None:
        assert clean_image_url("/media/blazer.png", BASE) == "https://shop.example.com/media/blazer.png"

    def test_concatenated_urls_keep_last(self) -> None:
        value = "https://shop.example.comhttps://cdn.shop.example.com/blazer.jpg"
        assert clean_image_url(value, BASE) == "https://cdn.shop.example.com/blazer.jpg"

    def test_html_page_rejected(self) -> None:
        assert clean_image_url("https://shop.example.com/nl/linnen-blazer.html", BASE) is None

    def test_product_page_without_extension_rejected(self) -> None:
        assert clean_image_url("https://shop.example.com/products/linen-blazer", BASE) is None

    def test_cdn_url_without_extension_accepted(self) -> None:
        url = "https://cdn.shop.example.com/assets/9f8e7d?width=800"
        assert clean_image_url(url, BASE) == url

    def test_image_under_product_path_with_extension_accepted(self) -> None:
        url = "https://shop.example.com/products/linen-blazer/front.jpg"
        assert clean_image_url(url, BASE) == url

    @pytest.mark.parametrize("value", [None, "", "data:image/png;base64,AAAA", "https://shop.example.com/about"])
    def test_unusable_values_rejected(self, value: object) -> None:
        assert clean_image_url(value, BASE) is None


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


class TestCleanProductName:
    def test_pipe_brand_suffix_removed(self) -> None:
        assert clean_product_name("Linen Blazer | Example Fashion") == "Linen Blazer"

    def test_dash_brand_suffix_removed(self) -> None:
        assert clean_product_name("Linen Blazer - Example Fashion") == "Linen Blazer"

    def test_only_last_separator_removed(self) -> None:
        assert clean_product_name("Blazer - Linen | Example") == "Blazer - Linen"

    def test_hyphenated_words_kept(self) -> None:
        assert clean_product_name("Off-white  linen\tblazer") == "Off-white linen blazer"

    def test_name_that_is_only_a_suffix_falls_back_to_raw(self) -> None:
        assert clean_product_name("| Example") == "| Example"

    def test_long_names_are_capped(self) -> None:
        assert len(clean_product_name("x" * 400)) == MAX_NAME_LENGTH

    def test_blank_is_none(self) -> None:
        assert clean_product_name("   ") is None


# ---------------------------------------------------------------------------
# Exclusion keywords
# ---------------------------------------------------------------------------


class TestExcludedKeyword:
    def test_matches_url(self) -> None:
        assert excluded_keyword("https://shop.example.com/products/gold-earrings", None, ["earrings"]) == "earrings"

    def test_matches_name_case_insensitively(self) -> None:
        assert excluded_keyword(None, "Leren Tassen Set", ["tassen"]) == "tassen"

    def test_no_match(self) -> None:
        assert excluded_keyword("https://shop.example.com/products/linen-blazer", "Linen Blazer", ["earrings"]) is None

    def test_blank_keywords_ignored(self) -> None:
        assert excluded_keyword("https://shop.example.com/products/linen-blazer", None, ["", " "]) is None


# ---------------------------------------------------------------------------
# normalize_product
# ---------------------------------------------------------------------------


class TestNormalizeProduct:
    def test_full_entry(self) -> None:
        raw = RawProduct(
            name="Linen Blazer | Example Fashion",
            price="€ 89,95",
            image_url="//cdn.shop.example.com/blazer.jpg",
            product_url="/products/linen-blazer?variant=2",
        )
        product = normalize_product(raw, competitor_name="Example Fashion", base_url=BASE)
        assert product is not None
        assert product.name == "Linen Blazer"
        assert product.raw_price == "€ 89,95"
        assert product.normalized_price == Decimal("89.95")
        assert product.image_url == "https://cdn.shop.example.com/blazer.jpg"
        assert product.source_url == "https://shop.example.com/products/linen-blazer?variant=2"
        assert product.canonical_key == "handle:linen-blazer"
        assert product.competitor_name == "Example Fashion"

    def test_optional_fields_absent(self) -> None:
        raw = RawProduct(name="Linen Blazer", price=None, image_url=None, product_url="/products/linen-blazer")
        product = normalize_product(raw, competitor_name="Example Fashion", base_url=BASE)
        assert product is not None
        assert product.normalized_price is None
        assert product.image_url is None

    def test_garbled_price_keeps_product_without_price(self) -> None:
        raw = RawProduct(
            name="Linen Blazer",
            price="SKU 8719327123456",
            image_url=None,
            product_url="/products/linen-blazer",
        )
        product = normalize_product(raw, competitor_name="Example Fashion", base_url=BASE)
        assert product is not None
        assert product.raw_price == "SKU 8719327123456"
        assert product.normalized_price is None

    def test_missing_name_is_rejected(self) -> None:
        raw = RawProduct(name=None, price="10", image_url=None, product_url="/products/linen-blazer")
        assert normalize_product(raw, competitor_name="Example Fashion", base_url=BASE) is None

    def test_missing_url_is_rejected(self) -> None:
        raw = RawProduct(name="Linen Blazer", price="10", image_url=None, product_url=None)
        assert normalize_product(raw, competitor_name="Example Fashion", base_url=BASE) is None

    def test_from_payload_blanks_become_none(self) -> None:
        raw = RawProduct.from_payload({"name": " ", "price": "", "image_url": None, "product_url": "/p/x"})
        assert raw.name is None
        assert raw.price is None
        assert raw.product_url == "/p/x"
