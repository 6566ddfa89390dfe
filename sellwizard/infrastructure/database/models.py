"""
SQLAlchemy ORM models.

Infrastructure only: domain entities are mapped to/from these models inside
the repository implementations.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, Numeric, SmallInteger, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from sellwizard.infrastructure.database.connection import Base


class ItemRecordModel(Base):
    __tablename__ = "item_records"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)

    # Descriptive fields
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(64), nullable=True)
    colour: Mapped[str | None] = mapped_column(String(64), nullable=True)
    material: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Commercial fields
    current_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    recommended_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    purchase_price: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)
    shipping_cost: Mapped[float | None] = mapped_column(Numeric(10, 2), nullable=True)

    # Photos
    photo_urls: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # type: ignore[type-arg]
    primary_photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # Optimisation
    optimised_title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    optimised_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    health_score: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    # Progress markers
    last_price_check_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_optimised_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Written by the photo studio, never by the wizard itself
    last_photo_edit_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Provenance
    source_type: Mapped[str] = mapped_column(String(32), nullable=False)
    source_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    seller_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_listing_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_item_records_owner_created", "owner_id", "created_at"),
    )


class ContinuationTokenModel(Base):
    """At most one pending photo-studio hand-off per owner."""

    __tablename__ = "wizard_continuations"

    owner_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    item_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    photo_edit_baseline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
