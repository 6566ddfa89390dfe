from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sellwizard.domain.enums.wizard_step import WizardStep


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ItemCreatedEvent(DomainEvent):
    """Published once per wizard session, when the item record is first inserted."""

    item_id: UUID = field(default_factory=uuid4)
    owner_id: UUID = field(default_factory=uuid4)
    source_type: str = ""
    photo_count: int = 0


@dataclass(frozen=True)
class PriceAcceptedEvent(DomainEvent):
    item_id: UUID = field(default_factory=uuid4)
    accepted_price: Decimal = Decimal("0")
    recommended_price: Decimal | None = None
    custom: bool = False


@dataclass(frozen=True)
class ListingOptimisedEvent(DomainEvent):
    item_id: UUID = field(default_factory=uuid4)
    health_score: int = 0


@dataclass(frozen=True)
class PhotoEditDetectedEvent(DomainEvent):
    """Published when a photo edit made outside the wizard is noticed."""

    item_id: UUID = field(default_factory=uuid4)
    last_photo_edit_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class WizardStepChangedEvent(DomainEvent):
    item_id: UUID | None = None
    from_step: WizardStep = WizardStep.ADD_ITEM
    to_step: WizardStep = WizardStep.ADD_ITEM
    triggered_by: str = ""
