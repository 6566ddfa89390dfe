from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sellwizard.application.interfaces.item_repository import (
    ItemNotFoundError,
    ItemRepository,
    RepositoryError,
)
from sellwizard.domain.entities.item_record import ItemRecord, ItemUpdate
from sellwizard.domain.enums.entry_method import SourceType
from sellwizard.infrastructure.database.models import ItemRecordModel

logger = structlog.get_logger(__name__)


def _dec(value: float | Decimal | None) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _to_domain(model: ItemRecordModel) -> ItemRecord:
    return ItemRecord(
        id=model.id,
        owner_id=model.owner_id,
        title=model.title,
        description=model.description,
        brand=model.brand,
        category=model.category,
        size=model.size,
        condition=model.condition,
        colour=model.colour,
        material=model.material,
        current_price=_dec(model.current_price),
        recommended_price=_dec(model.recommended_price),
        purchase_price=_dec(model.purchase_price),
        shipping_cost=_dec(model.shipping_cost),
        photo_urls=list(model.photo_urls or []),
        primary_photo_url=model.primary_photo_url,
        optimised_title=model.optimised_title,
        optimised_description=model.optimised_description,
        health_score=model.health_score,
        last_price_check_at=model.last_price_check_at,
        last_optimised_at=model.last_optimised_at,
        last_photo_edit_at=model.last_photo_edit_at,
        source_type=SourceType(model.source_type),
        source_url=model.source_url,
        seller_notes=model.seller_notes,
        external_listing_url=model.external_listing_url,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_model(item: ItemRecord) -> ItemRecordModel:
    return ItemRecordModel(
        id=item.id,
        owner_id=item.owner_id,
        title=item.title,
        description=item.description,
        brand=item.brand,
        category=item.category,
        size=item.size,
        condition=item.condition,
        colour=item.colour,
        material=item.material,
        current_price=item.current_price,
        recommended_price=item.recommended_price,
        purchase_price=item.purchase_price,
        shipping_cost=item.shipping_cost,
        photo_urls=list(item.photo_urls),
        primary_photo_url=item.primary_photo_url,
        optimised_title=item.optimised_title,
        optimised_description=item.optimised_description,
        health_score=item.health_score,
        last_price_check_at=item.last_price_check_at,
        last_optimised_at=item.last_optimised_at,
        last_photo_edit_at=item.last_photo_edit_at,
        source_type=item.source_type.value,
        source_url=item.source_url,
        seller_notes=item.seller_notes,
        external_listing_url=item.external_listing_url,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


class SqlAlchemyItemRepository(ItemRepository):
    """SQLAlchemy implementation of item record persistence."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, item: ItemRecord) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                session.add(_to_model(item))
        except SQLAlchemyError as exc:
            logger.error("item_insert_failed", item_id=str(item.id), error=str(exc))
            raise RepositoryError(f"Could not create item {item.id}") from exc

    async def get_by_id(self, item_id: UUID) -> ItemRecord | None:
        try:
            async with self._session_factory() as session:
                model = await session.get(ItemRecordModel, item_id)
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Could not load item {item_id}") from exc
        return _to_domain(model) if model is not None else None

    async def get_last_photo_edit_at(self, item_id: UUID) -> datetime | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ItemRecordModel.last_photo_edit_at).where(ItemRecordModel.id == item_id)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Could not load photo edit marker for {item_id}") from exc

    async def update(self, item_id: UUID, owner_id: UUID, item_update: ItemUpdate) -> None:
        values = item_update.fields()
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    update(ItemRecordModel)
                    .where(ItemRecordModel.id == item_id, ItemRecordModel.owner_id == owner_id)
                    .values(**values)
                )
        except SQLAlchemyError as exc:
            logger.error("item_update_failed", item_id=str(item_id), error=str(exc))
            raise RepositoryError(f"Could not update item {item_id}") from exc

        if result.rowcount == 0:
            raise ItemNotFoundError(item_id)
        logger.debug("item_updated", item_id=str(item_id), columns=sorted(values))
