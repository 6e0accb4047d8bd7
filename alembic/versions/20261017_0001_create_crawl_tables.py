"""create competitors, products, crawl_jobs and crawl_logs tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "competitors",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("scrape_url", sa.Text(), nullable=False, comment="Listing page crawled for new products"),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "product_url_patterns",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
            comment="Literal substrings or ^-prefixed regexes identifying product URLs",
        ),
        sa.Column(
            "excluded_categories",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
            comment="Keywords that exclude a product by URL or name",
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("last_crawled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("competitor", sa.String(length=255), nullable=False, comment="Competitor name the product was crawled from"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("raw_price", sa.Text(), nullable=True, comment="Price text as extracted, before normalization"),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("product_url", sa.Text(), nullable=False),
        sa.Column(
            "canonical_key",
            sa.Text(),
            nullable=False,
            comment="Variant-insensitive product identity within a competitor",
        ),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("competitor", "canonical_key", name="uq_products_competitor_canonical_key"),
    )
    op.create_index("ix_products_competitor", "products", ["competitor"], unique=False)
    op.create_index("ix_products_status", "products", ["status"], unique=False)
    op.create_index("ix_products_created_at", "products", ["created_at"], unique=False)

    op.create_table(
        "crawl_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("competitor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, comment="pending, processing, completed, failed"),
        sa.Column("products_found", sa.Integer(), nullable=False),
        sa.Column("products_inserted", sa.Integer(), nullable=False),
        sa.Column(
            "request_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Trigger parameters",
        ),
        sa.Column(
            "result_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Run summary (method, URL counts, error count)",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["competitor_id"], ["competitors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_crawl_jobs_competitor_id", "crawl_jobs", ["competitor_id"], unique=False)
    op.create_index("ix_crawl_jobs_status", "crawl_jobs", ["status"], unique=False)
    op.create_index("ix_crawl_jobs_created_at", "crawl_jobs", ["created_at"], unique=False)

    op.create_table(
        "crawl_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("competitor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("log_type", sa.String(length=16), nullable=False, comment="info, added, filtered, skipped, error"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=True),
        sa.Column("product_url", sa.Text(), nullable=True),
        sa.Column("product_price", sa.Text(), nullable=True),
        sa.Column("filter_reason", sa.Text(), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, comment="Write order within the job"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["crawl_jobs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["competitor_id"], ["competitors.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_crawl_logs_job_id", "crawl_logs", ["job_id"], unique=False)
    op.create_index("ix_crawl_logs_competitor_id", "crawl_logs", ["competitor_id"], unique=False)
    op.create_index("ix_crawl_logs_log_type", "crawl_logs", ["log_type"], unique=False)
    op.create_index("ix_crawl_logs_created_at", "crawl_logs", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_crawl_logs_created_at", table_name="crawl_logs")
    op.drop_index("ix_crawl_logs_log_type", table_name="crawl_logs")
    op.drop_index("ix_crawl_logs_competitor_id", table_name="crawl_logs")
    op.drop_index("ix_crawl_logs_job_id", table_name="crawl_logs")
    op.drop_table("crawl_logs")

    op.drop_index("ix_crawl_jobs_created_at", table_name="crawl_jobs")
    op.drop_index("ix_crawl_jobs_status", table_name="crawl_jobs")
    op.drop_index("ix_crawl_jobs_competitor_id", table_name="crawl_jobs")
    op.drop_table("crawl_jobs")

    op.drop_index("ix_products_created_at", table_name="products")
    op.drop_index("ix_products_status", table_name="products")
    op.drop_index("ix_products_competitor", table_name="products")
    op.drop_table("products")

    op.drop_table("competitors")
