"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, keeping the route handlers thin.
"""
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from sellwizard.application.interfaces.event_publisher import EventPublisher
from sellwizard.application.sell_wizard import SellWizard
from sellwizard.application.session import WizardSession
from sellwizard.application.session_registry import SessionNotFoundError, WizardSessionRegistry
from sellwizard.config import settings
from sellwizard.infrastructure.database.connection import AsyncSessionLocal
from sellwizard.infrastructure.database.repositories.continuation_store import (
    SqlAlchemyContinuationStore,
)
from sellwizard.infrastructure.database.repositories.item_repository import (
    SqlAlchemyItemRepository,
)
from sellwizard.infrastructure.external_services.listing_import_client import ListingImportClient
from sellwizard.infrastructure.external_services.optimisation_client import OptimisationClient
from sellwizard.infrastructure.external_services.photo_storage_client import PhotoStorageClient
from sellwizard.infrastructure.external_services.pricing_client import PricingClient
from sellwizard.infrastructure.messaging.noop_publisher import NoOpEventPublisher
from sellwizard.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher

# ---- Low-level dependencies ------------------------------------------------


def get_event_publisher() -> EventPublisher:
    return RabbitMQPublisher() if settings.publish_events else NoOpEventPublisher()


def build_wizard(session: WizardSession) -> SellWizard:
    return SellWizard(
        session,
        item_repo=SqlAlchemyItemRepository(AsyncSessionLocal),
        continuation_store=SqlAlchemyContinuationStore(AsyncSessionLocal),
        pricing_service=PricingClient(),
        optimisation_service=OptimisationClient(),
        listing_importer=ListingImportClient(),
        photo_storage=PhotoStorageClient(),
        event_publisher=get_event_publisher(),
    )


@lru_cache
def get_registry() -> WizardSessionRegistry:
    return WizardSessionRegistry(build_wizard)


# ---- Request-scoped dependencies -------------------------------------------


def get_owner_id(x_owner_id: UUID = Header(...)) -> UUID:
    return x_owner_id


def get_wizard(
    session_id: UUID,
    owner_id: UUID = Depends(get_owner_id),
    registry: WizardSessionRegistry = Depends(get_registry),
) -> SellWizard:
    try:
        return registry.get(session_id, owner_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
