"""
app/repositories/product_repository.py

Persistence layer for crawled catalog products.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.crawl import ExtractedProduct
from db.models.product import PRODUCT_DEDUPE_CONSTRAINT, Product, ProductStatus

_DEFAULT_BATCH_SIZE = 500


class ProductRepository:
    """
    Repository for conflict-ignoring product inserts and dedupe lookups.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def existing_canonical_keys(self, competitor: str) -> set[str]:
        stmt = select(Product.canonical_key).where(Product.competitor == competitor)
        return set(self._session.scalars(stmt).all())

    def insert_ignoring_conflicts(
        self,
        products: Sequence[ExtractedProduct],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> set[str]:
        """
        Insert products with ON CONFLICT DO NOTHING and return the keys actually inserted.
        """

        if not products:
            return set()

        payloads = self._deduplicate_payloads(
            [
                {
                    "competitor": product.competitor_name,
                    "name": product.name,
                    "price": product.normalized_price,
                    "raw_price": product.raw_price,
                    "image_url": product.image_url,
                    "product_url": product.source_url,
                    "canonical_key": product.canonical_key,
                    "status": ProductStatus.PENDING,
                }
                for product in products
            ]
        )

        inserted: set[str] = set()
        size = max(1, batch_size)
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = (
                insert(Product)
                .values(chunk)
                .on_conflict_do_nothing(constraint=PRODUCT_DEDUPE_CONSTRAINT)
                .returning(Product.canonical_key)
            )
            inserted.update(self._session.scalars(stmt).all())
        return inserted

    def _deduplicate_payloads(
        self,
        payloads: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        seen: set[tuple[str, str]] = set()
        deduped_payloads: list[dict[str, Any]] = []

        for payload in payloads:
            key = (payload["competitor"], payload["canonical_key"])
            if key in seen:
                continue
            seen.add(key)
            deduped_payloads.append(payload)

        return deduped_payloads
