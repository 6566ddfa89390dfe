from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sellwizard.domain.value_objects.item_draft import ImportedListing, StagedPhoto
from sellwizard.domain.value_objects.optimisation_result import OptimisationResult
from sellwizard.domain.value_objects.price_assessment import PriceAssessment


class ExternalServiceError(Exception):
    """A transient failure talking to one of the AI or storage services."""


class CreditLimitReachedError(ExternalServiceError):
    """The seller has used this month's credits."""


class PricingServiceError(ExternalServiceError):
    pass


class OptimisationServiceError(ExternalServiceError):
    pass


class ListingImportError(ExternalServiceError):
    pass


class PhotoStorageError(ExternalServiceError):
    pass


@dataclass
class PriceCheckRequest:
    item_id: UUID
    brand: str | None = None
    category: str | None = None
    condition: str | None = None
    title: str | None = None
    size: str | None = None
    current_price: Decimal | None = None


@dataclass
class OptimisationRequest:
    item_id: UUID
    current_title: str | None = None
    current_description: str | None = None
    brand: str | None = None
    category: str | None = None
    size: str | None = None
    condition: str | None = None
    colour: str | None = None
    material: str | None = None
    seller_notes: str | None = None


class MarketPricingService(ABC):
    """Port for the AI market pricing service."""

    @abstractmethod
    async def price_check(self, request: PriceCheckRequest) -> PriceAssessment:
        ...


class ListingOptimisationService(ABC):
    """Port for the AI listing copywriter."""

    @abstractmethod
    async def optimise(self, request: OptimisationRequest) -> OptimisationResult:
        ...


class ListingImporter(ABC):
    """Port for scraping an existing marketplace listing by URL."""

    @abstractmethod
    async def import_listing(self, url: str) -> ImportedListing:
        ...


class PhotoStorage(ABC):
    """Port for the public photo bucket."""

    @abstractmethod
    async def upload(self, owner_id: UUID, photo: StagedPhoto) -> str:
        """Returns the photo's public URL."""
        ...
