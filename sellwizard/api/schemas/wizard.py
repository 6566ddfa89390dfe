from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Base64Bytes, BaseModel, Field

from sellwizard.application.notifications import NotificationLevel
from sellwizard.domain.enums.coordinator_phase import CoordinatorPhase
from sellwizard.domain.enums.entry_method import EntryMethod, SourceType
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep

# ---- Requests ---------------------------------------------------------------


class EntryMethodRequest(BaseModel):
    method: EntryMethod


class ImportListingRequest(BaseModel):
    url: str


class StagedPhotoPayload(BaseModel):
    filename: str
    content_type: str
    data: Base64Bytes


class CreateItemRequest(BaseModel):
    title: str = ""
    description: str = ""
    brand: str = ""
    category: str = ""
    size: str = ""
    condition: str = ""
    colour: str = ""
    material: str = ""
    current_price: Decimal | None = None
    purchase_price: Decimal | None = None
    shipping_cost: Decimal | None = None
    seller_notes: str = ""
    source_url: str = ""
    # Omitted means "keep whatever the URL import found"
    imported_photo_urls: list[str] | None = None
    photos: list[StagedPhotoPayload] = Field(default_factory=list)


class ReturnToRequest(BaseModel):
    step: WizardStep


class CustomPriceRequest(BaseModel):
    price: str


class ExternalListingRequest(BaseModel):
    url: str


# ---- Responses --------------------------------------------------------------


class StepResponse(BaseModel):
    step: WizardStep
    label: str
    status: StepStatus


class ItemResponse(BaseModel):
    id: UUID
    title: str
    description: str | None = None
    brand: str | None = None
    category: str | None = None
    size: str | None = None
    condition: str | None = None
    colour: str | None = None
    material: str | None = None
    current_price: Decimal | None = None
    recommended_price: Decimal | None = None
    photo_urls: list[str]
    primary_photo_url: str | None = None
    optimised_title: str | None = None
    optimised_description: str | None = None
    health_score: int | None = None
    last_price_check_at: datetime | None = None
    last_optimised_at: datetime | None = None
    last_photo_edit_at: datetime | None = None
    source_type: SourceType
    source_url: str | None = None
    external_listing_url: str | None = None


class PriceResponse(BaseModel):
    phase: CoordinatorPhase
    accepted: bool
    recommended_price: Decimal | None = None
    price_range_low: Decimal | None = None
    price_range_high: Decimal | None = None
    confidence_score: int | None = None
    ai_insights: str | None = None
    range_position: float | None = None


class HealthScoreResponse(BaseModel):
    overall: int
    title_score: int
    description_score: int
    photo_score: int
    completeness_score: int
    rating: str


class OptimisationResponse(BaseModel):
    phase: CoordinatorPhase
    saved: bool
    optimised_title: str | None = None
    optimised_description: str | None = None
    health_score: HealthScoreResponse | None = None
    disclosure_missing: bool = False


class PhotosResponse(BaseModel):
    visited_photo_studio: bool
    polling: bool
    edit_detected: bool
    photo_edit_baseline: datetime | None = None


class NotificationResponse(BaseModel):
    id: UUID
    level: NotificationLevel
    message: str
    step: WizardStep | None = None
    created_at: datetime


class DraftResponse(BaseModel):
    title: str
    description: str
    brand: str
    category: str
    size: str
    condition: str
    colour: str
    material: str
    current_price: Decimal | None = None
    seller_notes: str
    source_url: str
    imported_photo_urls: list[str]
    staged_photo_count: int


class WizardSnapshot(BaseModel):
    session_id: UUID
    current_step: WizardStep
    steps: list[StepResponse]
    can_advance: bool
    blocked_reason: str | None = None
    entry_method: EntryMethod | None = None
    draft: DraftResponse
    item: ItemResponse | None = None
    price: PriceResponse
    optimisation: OptimisationResponse
    photos: PhotosResponse
    notifications: list[NotificationResponse]


class PhotoStudioHandoffResponse(BaseModel):
    url: str
    note: str | None = None


class ListingPackResponse(BaseModel):
    item_id: UUID
    title: str
    description: str
    hashtags: list[str]
    full_text: str
    photos: list[str]
    price: Decimal | None = None
    health_score: int | None = None
    health_rating: str | None = None
    optimised: bool
    photos_enhanced: bool
    suggest_optimise: bool
    suggest_photo_studio: bool
    external_listing_url: str | None = None
