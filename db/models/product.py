"""
db/models/product.py

Catalog product discovered on a competitor site.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

PRODUCT_DEDUPE_CONSTRAINT = "uq_products_competitor_canonical_key"
PRICE_PRECISION = 12
PRICE_SCALE = 2


class ProductStatus:
    PENDING = "pending"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    REQUESTED = "requested"
    TRASH = "trash"


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    competitor: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Competitor name the product was crawled from",
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(PRICE_PRECISION, PRICE_SCALE), nullable=True)
    raw_price: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Price text as extracted, before normalization",
    )
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_url: Mapped[str] = mapped_column(Text, nullable=False)
    canonical_key: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Variant-insensitive product identity within a competitor",
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ProductStatus.PENDING,
    )

    __table_args__ = (
        UniqueConstraint("competitor", "canonical_key", name=PRODUCT_DEDUPE_CONSTRAINT),
        Index("ix_products_competitor", "competitor"),
        Index("ix_products_status", "status"),
        Index("ix_products_created_at", "created_at"),
    )
