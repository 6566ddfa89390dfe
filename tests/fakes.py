"""In-memory stand-ins for the application ports, for end-to-end wizard tests."""
import asyncio
import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sellwizard.application.interfaces.continuation_store import ContinuationStore
from sellwizard.application.interfaces.event_publisher import EventPublisher
from sellwizard.application.interfaces.item_repository import (
    ItemNotFoundError,
    ItemRepository,
    RepositoryError,
)
from sellwizard.application.interfaces.market_services import (
    ExternalServiceError,
    ListingImporter,
    ListingImportError,
    ListingOptimisationService,
    MarketPricingService,
    OptimisationRequest,
    PhotoStorage,
    PhotoStorageError,
    PriceCheckRequest,
)
from sellwizard.application.sell_wizard import SellWizard
from sellwizard.application.session import WizardSession
from sellwizard.domain.entities.item_record import ItemRecord, ItemUpdate
from sellwizard.domain.events.domain_events import DomainEvent
from sellwizard.domain.value_objects.continuation_token import ContinuationToken
from sellwizard.domain.value_objects.item_draft import ImportedListing, StagedPhoto
from sellwizard.domain.value_objects.optimisation_result import HealthScore, OptimisationResult
from sellwizard.domain.value_objects.price_assessment import PriceAssessment


class InMemoryItemRepository(ItemRepository):
    def __init__(self) -> None:
        self.items: dict[UUID, ItemRecord] = {}
        self.create_calls = 0
        self.marker_fetches = 0
        self.fail_writes = False
        self.fail_marker_fetches = 0

    async def create(self, item: ItemRecord) -> None:
        self.create_calls += 1
        if self.fail_writes:
            raise RepositoryError("database unavailable")
        self.items[item.id] = copy.deepcopy(item)

    async def get_by_id(self, item_id: UUID) -> ItemRecord | None:
        item = self.items.get(item_id)
        return copy.deepcopy(item) if item is not None else None

    async def get_last_photo_edit_at(self, item_id: UUID) -> datetime | None:
        self.marker_fetches += 1
        if self.fail_marker_fetches:
            self.fail_marker_fetches -= 1
            raise RepositoryError("connection reset")
        item = self.items.get(item_id)
        return item.last_photo_edit_at if item is not None else None

    async def update(self, item_id: UUID, owner_id: UUID, update: ItemUpdate) -> None:
        if self.fail_writes:
            raise RepositoryError("database unavailable")
        item = self.items.get(item_id)
        if item is None or item.owner_id != owner_id:
            raise ItemNotFoundError(item_id)
        for name, value in update.fields().items():
            setattr(item, name, value)

    def edit_photos(self, item_id: UUID, edited_at: datetime) -> None:
        """What the photo studio does behind the wizard's back."""
        self.items[item_id].last_photo_edit_at = edited_at


class InMemoryContinuationStore(ContinuationStore):
    def __init__(self) -> None:
        self.tokens: dict[UUID, ContinuationToken] = {}
        self.fail_consume = False

    async def save(self, owner_id: UUID, token: ContinuationToken) -> None:
        self.tokens[owner_id] = token

    async def consume(self, owner_id: UUID) -> ContinuationToken | None:
        if self.fail_consume:
            self.tokens.pop(owner_id, None)
            raise RepositoryError("store unavailable")
        return self.tokens.pop(owner_id, None)

    async def discard(self, owner_id: UUID) -> None:
        self.tokens.pop(owner_id, None)


def make_assessment(recommended: str = "24.00") -> PriceAssessment:
    return PriceAssessment(
        recommended_price=Decimal(recommended),
        price_range_low=Decimal("18.00"),
        price_range_high=Decimal("30.00"),
        confidence_score=82,
        ai_insights="Similar jackets sell within a week at this price.",
    )


def make_optimisation(overall: int = 78, disclosed: bool = True) -> OptimisationResult:
    return OptimisationResult(
        optimised_title="Levi's Denim Trucker Jacket Blue M",
        optimised_description="Classic Levi's trucker jacket.\nSmall mark on cuff.\n#levis #denim",
        health_score=HealthScore(
            overall=overall,
            title_score=80,
            description_score=75,
            photo_score=70,
            completeness_score=85,
        ),
        seller_notes_disclosed=disclosed,
    )


class FakePricingService(MarketPricingService):
    def __init__(self, assessment: PriceAssessment | None = None) -> None:
        self.assessment = assessment or make_assessment()
        self.error: ExternalServiceError | None = None
        self.requests: list[PriceCheckRequest] = []
        # When set, calls wait until the test releases them
        self.gate: asyncio.Event | None = None

    async def price_check(self, request: PriceCheckRequest) -> PriceAssessment:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.assessment


class FakeOptimisationService(ListingOptimisationService):
    def __init__(self, result: OptimisationResult | None = None) -> None:
        self.result = result or make_optimisation()
        self.error: ExternalServiceError | None = None
        self.requests: list[OptimisationRequest] = []

    async def optimise(self, request: OptimisationRequest) -> OptimisationResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


class FakeListingImporter(ListingImporter):
    def __init__(self, listing: ImportedListing | None = None) -> None:
        self.listing = listing or ImportedListing(
            title="Levi's trucker jacket",
            brand="Levi's",
            condition="Very good",
            price=Decimal("25"),
            photos=("https://images.vinted.net/a.jpg", "data:image/png;base64,xyz"),
        )
        self.fail = False

    async def import_listing(self, url: str) -> ImportedListing:
        if self.fail:
            raise ListingImportError("scrape failed")
        return self.listing


class FakePhotoStorage(PhotoStorage):
    def __init__(self) -> None:
        self.uploaded: list[str] = []
        self.fail_for: set[str] = set()

    async def upload(self, owner_id: UUID, photo: StagedPhoto) -> str:
        if photo.filename in self.fail_for:
            raise PhotoStorageError(f"upload of {photo.filename} failed")
        url = f"https://cdn.test/{owner_id}/{photo.filename}"
        self.uploaded.append(url)
        return url


class RecordingPublisher(EventPublisher):
    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: type) -> list[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


@dataclass
class WizardHarness:
    owner_id: UUID = field(default_factory=uuid4)
    repo: InMemoryItemRepository = field(default_factory=InMemoryItemRepository)
    store: InMemoryContinuationStore = field(default_factory=InMemoryContinuationStore)
    pricing: FakePricingService = field(default_factory=FakePricingService)
    optimiser: FakeOptimisationService = field(default_factory=FakeOptimisationService)
    importer: FakeListingImporter = field(default_factory=FakeListingImporter)
    storage: FakePhotoStorage = field(default_factory=FakePhotoStorage)
    publisher: RecordingPublisher = field(default_factory=RecordingPublisher)

    def build(self, session: WizardSession | None = None) -> SellWizard:
        return SellWizard(
            session or WizardSession(owner_id=self.owner_id),
            item_repo=self.repo,
            continuation_store=self.store,
            pricing_service=self.pricing,
            optimisation_service=self.optimiser,
            listing_importer=self.importer,
            photo_storage=self.storage,
            event_publisher=self.publisher,
            poll_interval_seconds=0.01,
            auto_advance_delay_seconds=0.01,
        )


async def wait_for(predicate, timeout: float = 1.0) -> None:
    """Yield to the event loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)
