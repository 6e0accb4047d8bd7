"""
tests/test_sqlalchemy_storage.py

Pytest unit tests for the SQLAlchemy storage adapters.

The session is a MagicMock: these tests cover row conversion, commit and
rollback handling, and error wrapping. SQL itself is exercised against
PostgreSQL only.

Coverage
--------
- ORM row -> domain record conversion
- Product insert returns inserted keys, writes every undefaulted column and commits
- Database errors surface as StorageError after rollback
- Session lifecycle of open_sqlalchemy_stores
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from app.domain.crawl import ExtractedProduct
from app.scraping.storage.base import StorageError
from app.scraping.storage.sqlalchemy_storage import (
    SQLAlchemyCrawlLogStorage,
    SQLAlchemyProductStorage,
    open_sqlalchemy_stores,
    to_competitor_target,
    to_job_record,
)
from db.models.competitor import Competitor
from db.models.crawl_job import CrawlJob, CrawlJobStatus
from db.models.product import Product


def _product(slug: str) -> ExtractedProduct:
    return ExtractedProduct(
        name=slug,
        raw_price="€ 10,00",
        normalized_price=Decimal("10.00"),
        image_url=None,
        source_url=f"https://shop.example.com/products/{slug}",
        canonical_key=f"handle:{slug}",
        competitor_name="Example Fashion",
    )


class TestRowConversion:
    def test_competitor_row(self) -> None:
        row = Competitor(
            id=uuid.uuid4(),
            name="Example Fashion",
            scrape_url="https://shop.example.com/nl/new-in",
            product_url_patterns=["/products/"],
            excluded_categories=["earrings"],
            is_active=True,
            last_crawled_at=None,
        )
        target = to_competitor_target(row)

        assert target.base_scrape_url == "https://shop.example.com/nl/new-in"
        assert target.url_patterns == ("/products/",)
        assert target.excluded_category_keywords == ("earrings",)
        assert target.is_active is True

    def test_competitor_row_with_null_arrays(self) -> None:
        row = Competitor(id=uuid.uuid4(), name="Bare", scrape_url="https://bare.example.com", is_active=False)
        row.product_url_patterns = None
        row.excluded_categories = None
        target = to_competitor_target(row)

        assert target.url_patterns == ()
        assert target.excluded_category_keywords == ()
        assert target.is_active is False

    def test_job_row(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        row = CrawlJob(
            id=uuid.uuid4(),
            competitor_id=uuid.uuid4(),
            status=CrawlJobStatus.COMPLETED,
            products_found=4,
            products_inserted=3,
            result_payload={"method": "bulk-extract"},
        )
        row.created_at = now
        record = to_job_record(row)

        assert record.status == CrawlJobStatus.COMPLETED
        assert (record.products_found, record.products_inserted) == (4, 3)
        assert record.created_at == now
        assert record.result_payload == {"method": "bulk-extract"}


class TestProductStorage:
    def test_store_returns_inserted_keys_and_commits(self) -> None:
        session = MagicMock()
        session.scalars.return_value.all.return_value = ["handle:a"]

        inserted = SQLAlchemyProductStorage(session).store([_product("a"), _product("a"), _product("b")])

        assert inserted == {"handle:a"}
        assert session.scalars.call_count == 1
        session.commit.assert_called_once()

    def test_insert_writes_every_column_without_default(self) -> None:
        session = MagicMock()
        session.scalars.return_value.all.return_value = []

        SQLAlchemyProductStorage(session).store([_product("a")])

        sql = str(session.scalars.call_args.args[0].compile(dialect=postgresql.dialect()))
        written = {column.strip() for column in sql[sql.index("(") + 1 : sql.index(")")].split(",")}
        required = {
            column.name
            for column in Product.__table__.columns
            if column.default is None and column.server_default is None
        }
        assert required <= written

    def test_empty_store_touches_nothing(self) -> None:
        session = MagicMock()
        assert SQLAlchemyProductStorage(session).store([]) == set()
        session.scalars.assert_not_called()
        session.commit.assert_not_called()

    def test_database_error_becomes_storage_error(self) -> None:
        session = MagicMock()
        session.scalars.side_effect = OperationalError("INSERT", {}, Exception("server closed the connection"))

        with pytest.raises(StorageError, match="Product insert failed"):
            SQLAlchemyProductStorage(session).store([_product("a")])

        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestLogStorage:
    def test_empty_batch_is_noop(self) -> None:
        session = MagicMock()
        assert SQLAlchemyCrawlLogStorage(session).write_batch([]) == 0
        session.commit.assert_not_called()


class TestOpenStores:
    def test_session_closed_on_exit(self) -> None:
        session = MagicMock()
        with open_sqlalchemy_stores(lambda: session) as stores:
            assert stores.products is not None
        session.close.assert_called_once()

    def test_session_closed_on_error(self) -> None:
        session = MagicMock()
        with pytest.raises(RuntimeError):
            with open_sqlalchemy_stores(lambda: session):
                raise RuntimeError("boom")
        session.close.assert_called_once()
