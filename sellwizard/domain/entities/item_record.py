from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sellwizard.domain.enums.entry_method import EntryMethod, SourceType
from sellwizard.domain.events.domain_events import (
    DomainEvent,
    ItemCreatedEvent,
    ListingOptimisedEvent,
    PhotoEditDetectedEvent,
    PriceAcceptedEvent,
)
from sellwizard.domain.value_objects.item_draft import ItemDraft, clean


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -----------------------------------------------------------------------------
# Narrow updates: each wizard step only ever writes the columns it owns.
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemUpdate:
    def fields(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_event(self, item_id: UUID) -> DomainEvent | None:
        return None


@dataclass(frozen=True)
class PriceUpdate(ItemUpdate):
    current_price: Decimal
    last_price_check_at: datetime
    # None leaves any earlier recommendation in place
    recommended_price: Decimal | None = None
    custom: bool = False

    def fields(self) -> dict[str, Any]:
        values = super().fields()
        values.pop("custom")
        return values

    def to_event(self, item_id: UUID) -> DomainEvent:
        return PriceAcceptedEvent(
            item_id=item_id,
            accepted_price=self.current_price,
            recommended_price=self.recommended_price,
            custom=self.custom,
        )


@dataclass(frozen=True)
class OptimisationUpdate(ItemUpdate):
    optimised_title: str
    optimised_description: str
    health_score: int
    last_optimised_at: datetime

    def to_event(self, item_id: UUID) -> DomainEvent:
        return ListingOptimisedEvent(item_id=item_id, health_score=self.health_score)


@dataclass(frozen=True)
class ExternalListingUpdate(ItemUpdate):
    external_listing_url: str


@dataclass
class ItemRecord:
    """
    The one persisted entity every wizard step converges on.

    Created once at the end of the Add Item step and only ever updated
    afterwards. Progress markers (``last_*_at``) are the sole signal that a
    step's work happened.
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    owner_id: UUID = field(default_factory=uuid4)

    # Descriptive fields
    title: str = ""
    description: str | None = None
    brand: str | None = None
    category: str | None = None
    size: str | None = None
    condition: str | None = None
    colour: str | None = None
    material: str | None = None

    # Commercial fields
    current_price: Decimal | None = None
    recommended_price: Decimal | None = None
    purchase_price: Decimal | None = None
    shipping_cost: Decimal | None = None

    # Photos
    photo_urls: list[str] = field(default_factory=list)
    primary_photo_url: str | None = None

    # Optimisation
    optimised_title: str | None = None
    optimised_description: str | None = None
    health_score: int | None = None

    # Progress markers
    last_price_check_at: datetime | None = None
    last_optimised_at: datetime | None = None
    last_photo_edit_at: datetime | None = None

    # Provenance
    source_type: SourceType = SourceType.MANUAL
    source_url: str | None = None
    seller_notes: str | None = None
    external_listing_url: str | None = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create_from_draft(
        cls,
        *,
        owner_id: UUID,
        draft: ItemDraft,
        entry_method: EntryMethod,
        photo_urls: list[str],
    ) -> "ItemRecord":
        item = cls(
            owner_id=owner_id,
            title=draft.title.strip() or entry_method.default_title,
            description=clean(draft.description),
            brand=clean(draft.brand),
            category=clean(draft.category),
            size=clean(draft.size),
            condition=clean(draft.condition),
            colour=clean(draft.colour),
            material=clean(draft.material),
            current_price=draft.current_price,
            purchase_price=draft.purchase_price,
            shipping_cost=draft.shipping_cost,
            photo_urls=list(photo_urls),
            primary_photo_url=photo_urls[0] if photo_urls else None,
            source_type=entry_method.source_type,
            source_url=clean(draft.source_url) if entry_method is EntryMethod.URL else None,
            seller_notes=clean(draft.seller_notes),
        )
        item._events.append(
            ItemCreatedEvent(
                item_id=item.id,
                owner_id=owner_id,
                source_type=item.source_type.value,
                photo_count=len(photo_urls),
            )
        )
        return item

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def apply(self, update: ItemUpdate) -> None:
        """Mirror a persisted update onto this in-memory copy."""
        for name, value in update.fields().items():
            setattr(self, name, value)
        self.updated_at = _utcnow()
        event = update.to_event(self.id)
        if event is not None:
            self._events.append(event)

    def record_photo_edit(self, edited_at: datetime) -> None:
        self.last_photo_edit_at = edited_at
        self._events.append(PhotoEditDetectedEvent(item_id=self.id, last_photo_edit_at=edited_at))

    def is_owned_by(self, owner_id: UUID) -> bool:
        return self.owner_id == owner_id

    # -------------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------------

    @property
    def best_title(self) -> str:
        return self.optimised_title or self.title

    @property
    def best_description(self) -> str:
        return self.optimised_description or self.description or ""

    def all_photos(self) -> list[str]:
        """Primary photo first, then the rest, without duplicates."""
        photos: list[str] = []
        for url in [self.primary_photo_url, *self.photo_urls]:
            if url and url not in photos:
                photos.append(url)
        return photos

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
