"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per item brought to market through the wizard
    op.create_table(
        "item_records",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        # Descriptive fields
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("brand", sa.String(128), nullable=True),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("size", sa.String(64), nullable=True),
        sa.Column("condition", sa.String(64), nullable=True),
        sa.Column("colour", sa.String(64), nullable=True),
        sa.Column("material", sa.String(128), nullable=True),
        # Commercial fields
        sa.Column("current_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("recommended_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("purchase_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("shipping_cost", sa.Numeric(10, 2), nullable=True),
        # Photos
        sa.Column("photo_urls", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("primary_photo_url", sa.String(2048), nullable=True),
        # Optimisation
        sa.Column("optimised_title", sa.String(512), nullable=True),
        sa.Column("optimised_description", sa.Text(), nullable=True),
        sa.Column("health_score", sa.SmallInteger(), nullable=True),
        # Progress markers
        sa.Column("last_price_check_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_optimised_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_photo_edit_at", sa.DateTime(timezone=True), nullable=True),
        # Provenance
        sa.Column("source_type", sa.String(32), nullable=False),
        sa.Column("source_url", sa.String(2048), nullable=True),
        sa.Column("seller_notes", sa.Text(), nullable=True),
        sa.Column("external_listing_url", sa.String(2048), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index("ix_item_records_owner_id", "item_records", ["owner_id"])
    op.create_index("ix_item_records_owner_created", "item_records", ["owner_id", "created_at"])

    # Pending photo studio hand-offs, at most one per owner
    op.create_table(
        "wizard_continuations",
        sa.Column("owner_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("item_id", UUID(as_uuid=True), nullable=False),
        sa.Column("step", sa.Integer(), nullable=False),
        sa.Column("photo_edit_baseline", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )


def downgrade() -> None:
    op.drop_table("wizard_continuations")
    op.drop_table("item_records")
