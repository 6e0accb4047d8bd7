"""
db/models/competitor.py

Competitor registry entry describing where and how to crawl a site.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

DEFAULT_EXCLUDED_CATEGORIES: tuple[str, ...] = (
    "accessories",
    "bags",
    "belts",
    "earrings",
    "jewelry",
    "jewellery",
    "sieraden",
    "tassen",
    "riemen",
    "oorbellen",
    "necklaces",
    "bracelets",
    "rings",
    "watches",
    "sunglasses",
    "hats",
    "scarves",
    "shoes",
    "boots",
    "sneakers",
    "sandals",
    "heels",
)


class Competitor(Base, TimestampMixin):
    __tablename__ = "competitors"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    scrape_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Listing page crawled for new products",
    )
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_url_patterns: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
        comment="Literal substrings or ^-prefixed regexes identifying product URLs",
    )
    excluded_categories: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=lambda: list(DEFAULT_EXCLUDED_CATEGORIES),
        comment="Keywords that exclude a product by URL or name",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    last_crawled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
