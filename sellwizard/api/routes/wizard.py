from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status

from sellwizard.api.dependencies import get_owner_id, get_registry, get_wizard
from sellwizard.api.schemas.wizard import (
    CreateItemRequest,
    CustomPriceRequest,
    DraftResponse,
    EntryMethodRequest,
    ExternalListingRequest,
    HealthScoreResponse,
    ImportListingRequest,
    ItemResponse,
    ListingPackResponse,
    NotificationResponse,
    OptimisationResponse,
    PhotosResponse,
    PhotoStudioHandoffResponse,
    PriceResponse,
    ReturnToRequest,
    StepResponse,
    WizardSnapshot,
)
from sellwizard.application.coordinators.photo_completion_detector import HANDOFF_FAILED_MESSAGE
from sellwizard.application.sell_wizard import SellWizard
from sellwizard.application.session import WizardActionError
from sellwizard.application.session_registry import SessionNotFoundError, WizardSessionRegistry
from sellwizard.application.use_cases.record_external_listing import InvalidListingUrlError
from sellwizard.config import settings
from sellwizard.domain.enums.wizard_step import WizardStep
from sellwizard.domain.state_machine.wizard_state_machine import InvalidStepTransitionError
from sellwizard.domain.value_objects.item_draft import IncompleteDraftError, ItemDraft, StagedPhoto
from sellwizard.domain.value_objects.price_assessment import InvalidPriceError

router = APIRouter(prefix="/wizard/sessions", tags=["wizard"])


@contextmanager
def _wizard_errors() -> Iterator[None]:
    try:
        yield
    except (InvalidPriceError, IncompleteDraftError, InvalidListingUrlError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except (InvalidStepTransitionError, WizardActionError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _draft_to_response(draft: ItemDraft) -> DraftResponse:
    return DraftResponse(
        title=draft.title,
        description=draft.description,
        brand=draft.brand,
        category=draft.category,
        size=draft.size,
        condition=draft.condition,
        colour=draft.colour,
        material=draft.material,
        current_price=draft.current_price,
        seller_notes=draft.seller_notes,
        source_url=draft.source_url,
        imported_photo_urls=list(draft.imported_photo_urls),
        staged_photo_count=len(draft.staged_photos),
    )


def _snapshot(wizard: SellWizard) -> WizardSnapshot:
    session = wizard.session
    state = session.state
    item = session.item

    assessment = wizard.price.assessment
    price = PriceResponse(phase=wizard.price.phase, accepted=state.price_accepted)
    if assessment is not None:
        price = PriceResponse(
            phase=wizard.price.phase,
            accepted=state.price_accepted,
            recommended_price=assessment.recommended_price,
            price_range_low=assessment.price_range_low,
            price_range_high=assessment.price_range_high,
            confidence_score=assessment.confidence_score,
            ai_insights=assessment.ai_insights,
            range_position=assessment.range_position(),
        )

    result = wizard.optimisation.result
    optimisation = OptimisationResponse(phase=wizard.optimisation.phase, saved=state.optimisation_saved)
    if result is not None:
        score = result.health_score
        optimisation = OptimisationResponse(
            phase=wizard.optimisation.phase,
            saved=state.optimisation_saved,
            optimised_title=result.optimised_title,
            optimised_description=result.optimised_description,
            health_score=HealthScoreResponse(
                overall=score.overall,
                title_score=score.title_score,
                description_score=score.description_score,
                photo_score=score.photo_score,
                completeness_score=score.completeness_score,
                rating=score.rating(settings.health_score_threshold, settings.health_score_excellent),
            ),
            disclosure_missing=wizard.optimisation.disclosure_missing,
        )

    return WizardSnapshot(
        session_id=session.id,
        current_step=state.current_step,
        steps=[
            StepResponse(step=step, label=step.label, status=state.status_of(step))
            for step in WizardStep
        ],
        can_advance=wizard.can_advance(),
        blocked_reason=wizard.blocked_reason(),
        entry_method=state.entry_method,
        draft=_draft_to_response(wizard.draft),
        item=(
            ItemResponse(
                id=item.id,
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
                photo_urls=list(item.photo_urls),
                primary_photo_url=item.primary_photo_url,
                optimised_title=item.optimised_title,
                optimised_description=item.optimised_description,
                health_score=item.health_score,
                last_price_check_at=item.last_price_check_at,
                last_optimised_at=item.last_optimised_at,
                last_photo_edit_at=item.last_photo_edit_at,
                source_type=item.source_type,
                source_url=item.source_url,
                external_listing_url=item.external_listing_url,
            )
            if item is not None
            else None
        ),
        price=price,
        optimisation=optimisation,
        photos=PhotosResponse(
            visited_photo_studio=state.visited_photo_studio,
            polling=wizard.photos.is_polling,
            edit_detected=state.photo_edit_detected,
            photo_edit_baseline=state.photo_edit_baseline,
        ),
        notifications=[
            NotificationResponse(
                id=n.id,
                level=n.level,
                message=n.message,
                step=n.step,
                created_at=n.created_at,
            )
            for n in session.notifications.items
        ],
    )


# ---- Session lifecycle -----------------------------------------------------


@router.post("", response_model=WizardSnapshot, status_code=status.HTTP_201_CREATED)
async def open_session(
    owner_id: UUID = Depends(get_owner_id),
    registry: WizardSessionRegistry = Depends(get_registry),
) -> WizardSnapshot:
    """Mount a wizard. Resumes at the Photos step when a hand-off token is waiting."""
    wizard = await registry.open(owner_id)
    return _snapshot(wizard)


@router.get("/{session_id}", response_model=WizardSnapshot)
async def get_session(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    return _snapshot(wizard)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: UUID,
    owner_id: UUID = Depends(get_owner_id),
    registry: WizardSessionRegistry = Depends(get_registry),
) -> Response:
    try:
        await registry.close(session_id, owner_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---- Step 1: Add Item ------------------------------------------------------


@router.post("/{session_id}/entry-method", response_model=WizardSnapshot)
async def choose_entry_method(
    body: EntryMethodRequest, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    with _wizard_errors():
        wizard.choose_entry_method(body.method)
    return _snapshot(wizard)


@router.post("/{session_id}/import", response_model=WizardSnapshot)
async def import_listing(
    body: ImportListingRequest, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.import_listing(body.url)
    return _snapshot(wizard)


@router.post("/{session_id}/item", response_model=WizardSnapshot)
async def create_item(
    body: CreateItemRequest, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    """Add Item completion. Fields left out of the body keep their imported values."""
    changes = body.model_dump(exclude_unset=True, exclude={"photos", "imported_photo_urls"})
    draft = replace(wizard.draft, **changes)
    if body.imported_photo_urls is not None:
        draft = replace(draft, imported_photo_urls=tuple(body.imported_photo_urls))
    if body.photos:
        draft = replace(
            draft,
            staged_photos=tuple(
                StagedPhoto(filename=p.filename, content_type=p.content_type, data=p.data)
                for p in body.photos
            ),
        )

    with _wizard_errors():
        await wizard.create_item(draft)
    return _snapshot(wizard)


# ---- Navigation ------------------------------------------------------------


@router.post("/{session_id}/advance", response_model=WizardSnapshot)
async def advance(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.advance()
    return _snapshot(wizard)


@router.post("/{session_id}/back", response_model=WizardSnapshot)
async def back(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.back()
    return _snapshot(wizard)


@router.post("/{session_id}/return-to", response_model=WizardSnapshot)
async def return_to(body: ReturnToRequest, wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.return_to(body.step)
    return _snapshot(wizard)


@router.post("/{session_id}/reset", response_model=WizardSnapshot)
async def reset(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    await wizard.reset()
    return _snapshot(wizard)


# ---- Step 2: Price ---------------------------------------------------------


@router.post("/{session_id}/price/run", response_model=WizardSnapshot)
async def run_price_check(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.run_price_check()
    return _snapshot(wizard)


@router.post("/{session_id}/price/accept", response_model=WizardSnapshot)
async def accept_suggested_price(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.accept_suggested_price()
    return _snapshot(wizard)


@router.post("/{session_id}/price/accept-custom", response_model=WizardSnapshot)
async def accept_custom_price(
    body: CustomPriceRequest, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.accept_custom_price(body.price)
    return _snapshot(wizard)


# ---- Step 3: Optimise ------------------------------------------------------


@router.post("/{session_id}/optimisation/run", response_model=WizardSnapshot)
async def run_optimisation(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.run_optimisation()
    return _snapshot(wizard)


@router.post("/{session_id}/optimisation/save", response_model=WizardSnapshot)
async def save_optimisation(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.save_optimisation()
    return _snapshot(wizard)


# ---- Step 4: Photos --------------------------------------------------------


@router.post("/{session_id}/photos/handoff", response_model=PhotoStudioHandoffResponse)
async def open_photo_studio(wizard: SellWizard = Depends(get_wizard)) -> PhotoStudioHandoffResponse:
    """Writes the continuation token; the client then navigates to ``url``."""
    with _wizard_errors():
        handoff = await wizard.open_photo_studio()
    if handoff is None:
        # The error notification is already on the session
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=HANDOFF_FAILED_MESSAGE)
    return PhotoStudioHandoffResponse(url=handoff.url, note=handoff.note)


@router.post("/{session_id}/photos/poll", response_model=WizardSnapshot)
async def start_photo_polling(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        wizard.start_photo_polling()
    return _snapshot(wizard)


@router.post("/{session_id}/photos/cancel", response_model=WizardSnapshot)
async def cancel_photo_polling(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    wizard.cancel_photo_polling()
    return _snapshot(wizard)


@router.post("/{session_id}/photos/skip", response_model=WizardSnapshot)
async def skip_photos(wizard: SellWizard = Depends(get_wizard)) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.skip_photos()
    return _snapshot(wizard)


# ---- Step 5: Pack ----------------------------------------------------------


@router.get("/{session_id}/pack", response_model=ListingPackResponse)
async def get_pack(wizard: SellWizard = Depends(get_wizard)) -> ListingPackResponse:
    with _wizard_errors():
        pack = wizard.build_pack()
    return ListingPackResponse(
        item_id=pack.item_id,
        title=pack.title,
        description=pack.description,
        hashtags=pack.hashtags,
        full_text=pack.full_text,
        photos=pack.photos,
        price=pack.price,
        health_score=pack.health_score,
        health_rating=pack.health_rating,
        optimised=pack.optimised,
        photos_enhanced=pack.photos_enhanced,
        suggest_optimise=pack.suggest_optimise,
        suggest_photo_studio=pack.suggest_photo_studio,
        external_listing_url=pack.external_listing_url,
    )


@router.post("/{session_id}/pack/external-listing", response_model=WizardSnapshot)
async def record_external_listing(
    body: ExternalListingRequest, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    with _wizard_errors():
        await wizard.record_external_listing(body.url)
    return _snapshot(wizard)


# ---- Notifications ---------------------------------------------------------


@router.delete("/{session_id}/notifications/{notification_id}", response_model=WizardSnapshot)
async def dismiss_notification(
    notification_id: UUID, wizard: SellWizard = Depends(get_wizard)
) -> WizardSnapshot:
    if not wizard.dismiss_notification(notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found.")
    return _snapshot(wizard)
