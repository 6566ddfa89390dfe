"""
The orchestrator behind one mounted run of the guided listing flow.

Every user action and coordinator callback goes through this class, which
keeps the step pointer (``WizardState``), the one ``ItemRecord`` and the
three step coordinators in agreement. It owns no I/O of its own; everything
external is reached through the application ports passed in.
"""
import asyncio
from decimal import Decimal
from uuid import UUID

import structlog

from sellwizard.application.coordinators.optimisation_coordinator import OptimisationCoordinator
from sellwizard.application.coordinators.photo_completion_detector import (
    PhotoCompletionDetector,
    PhotoStudioHandoff,
)
from sellwizard.application.coordinators.price_coordinator import PriceCoordinator
from sellwizard.application.interfaces.continuation_store import ContinuationStore
from sellwizard.application.interfaces.event_publisher import EventPublisher
from sellwizard.application.interfaces.item_repository import ItemRepository, RepositoryError
from sellwizard.application.interfaces.market_services import (
    ExternalServiceError,
    ListingImporter,
    ListingImportError,
    ListingOptimisationService,
    MarketPricingService,
    PhotoStorage,
)
from sellwizard.application.session import WizardActionError, WizardSession
from sellwizard.application.use_cases.create_item import CreateItem, CreateItemInput
from sellwizard.application.use_cases.import_listing import ImportListing
from sellwizard.application.use_cases.package_listing import ListingPack, PackageListing
from sellwizard.application.use_cases.record_external_listing import RecordExternalListing
from sellwizard.application.use_cases.resume_session import ResumeSession
from sellwizard.config import settings
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.entities.wizard_state import WizardState
from sellwizard.domain.enums.entry_method import EntryMethod
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.value_objects.item_draft import ItemDraft

logger = structlog.get_logger(__name__)


class SellWizard:
    def __init__(
        self,
        session: WizardSession,
        *,
        item_repo: ItemRepository,
        continuation_store: ContinuationStore,
        pricing_service: MarketPricingService,
        optimisation_service: ListingOptimisationService,
        listing_importer: ListingImporter,
        photo_storage: PhotoStorage,
        event_publisher: EventPublisher,
        poll_interval_seconds: float = settings.photo_poll_interval_seconds,
        auto_advance_delay_seconds: float = settings.auto_advance_delay_seconds,
        health_score_threshold: int = settings.health_score_threshold,
        health_score_excellent: int = settings.health_score_excellent,
    ) -> None:
        self.session = session
        self.draft = ItemDraft()
        self._continuation_store = continuation_store
        self._event_publisher = event_publisher

        self.price = PriceCoordinator(session, pricing_service, item_repo)
        self.optimisation = OptimisationCoordinator(session, optimisation_service, item_repo)
        self.photos = PhotoCompletionDetector(
            session,
            item_repo,
            continuation_store,
            self._advance_after_photo_edit,
            poll_interval_seconds=poll_interval_seconds,
            auto_advance_delay_seconds=auto_advance_delay_seconds,
        )

        self._create_item = CreateItem(item_repo, photo_storage, event_publisher)
        self._import_listing = ImportListing(listing_importer)
        self._resume = ResumeSession(item_repo, continuation_store)
        self._package = PackageListing(
            health_score_threshold=health_score_threshold,
            health_score_excellent=health_score_excellent,
        )
        self._record_external = RecordExternalListing(item_repo)
        self._create_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WizardState:
        return self.session.state

    @property
    def item(self) -> ItemRecord | None:
        return self.session.item

    async def mount(self) -> bool:
        """
        Start the session. Returns True when a continuation token was found
        and the session resumed at the Photos step.
        """
        self.session.mounted = True
        logger.info("wizard_mounted", session_id=str(self.session.id), owner_id=str(self.session.owner_id))

        resumed = await self._resume.execute(self.session.owner_id)
        if resumed is None:
            return False

        self.session.item = resumed.item
        self.state.choose_entry_method(EntryMethod.for_source(resumed.item.source_type))
        self.state.resume_at_photos(resumed.item.id, resumed.token.photo_edit_baseline)
        logger.info("wizard_resumed", session_id=str(self.session.id), item_id=str(resumed.item.id))
        await self._publish()
        await self.photos.on_enter()
        return True

    async def unmount(self) -> None:
        """Tear down; after this no coordinator may touch the session."""
        self.session.mounted = False
        self.photos.teardown()
        await self._publish()
        logger.info("wizard_unmounted", session_id=str(self.session.id))

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def can_advance(self) -> bool:
        return self.state.can_advance()

    def blocked_reason(self) -> str | None:
        return self.state.blocked_reason()

    async def advance(self, triggered_by: str = "user") -> WizardStep:
        from_step = self.state.current_step
        self.state.advance(triggered_by)
        await self._after_move(from_step)
        return self.state.current_step

    async def back(self) -> WizardStep:
        from_step = self.state.current_step
        self.state.back()
        await self._after_move(from_step)
        return self.state.current_step

    async def return_to(self, step: WizardStep) -> WizardStep:
        from_step = self.state.current_step
        self.state.return_to(step)
        await self._after_move(from_step)
        return self.state.current_step

    async def reset(self) -> None:
        """Start over: fresh state, no item, no notifications, no token."""
        item = self.session.item
        self.photos.teardown()
        self.price.clear()
        self.optimisation.clear()
        self.state.reset()
        self.session.item = None
        self.draft = ItemDraft()
        self.session.notifications.clear()

        try:
            await self._continuation_store.discard(self.session.owner_id)
        except RepositoryError as exc:
            logger.warning("continuation_discard_failed", owner_id=str(self.session.owner_id), error=str(exc))

        await self._publish()
        logger.info(
            "wizard_reset",
            session_id=str(self.session.id),
            item_id=str(item.id) if item else None,
        )

    async def _after_move(self, from_step: WizardStep) -> None:
        to_step = self.state.current_step
        if from_step is WizardStep.PHOTOS and to_step is not WizardStep.PHOTOS:
            self.photos.teardown()
        await self._publish()
        logger.info(
            "wizard_step_changed",
            session_id=str(self.session.id),
            from_step=from_step.value,
            to_step=to_step.value,
        )
        await self._on_step_entered()

    async def _on_step_entered(self) -> None:
        step = self.state.current_step
        if step is WizardStep.PRICE:
            await self.price.on_enter()
        elif step is WizardStep.OPTIMISE:
            await self.optimisation.on_enter()
        elif step is WizardStep.PHOTOS:
            await self.photos.on_enter()

    # -------------------------------------------------------------------------
    # Step 1: Add Item
    # -------------------------------------------------------------------------

    def choose_entry_method(self, method: EntryMethod) -> None:
        if self.session.item is not None:
            raise WizardActionError("The item has already been created.")
        self.state.choose_entry_method(method)

    def update_draft(self, draft: ItemDraft) -> None:
        self.draft = draft

    async def import_listing(self, url: str) -> bool:
        """Pre-fill the draft from a listing URL. Failure only costs the seller typing."""
        try:
            self.draft = await self._import_listing.execute(url, self.draft)
        except ListingImportError as exc:
            logger.warning("listing_import_failed", url=url, error=str(exc))
            self.session.notifications.info(
                "Couldn't import that listing - fill in the details manually",
                step=WizardStep.ADD_ITEM,
            )
            return False

        self.state.choose_entry_method(EntryMethod.URL)
        self.session.notifications.success("Listing details imported!", step=WizardStep.ADD_ITEM)
        return True

    async def create_item(self, draft: ItemDraft | None = None) -> ItemRecord | None:
        """
        The Add Item form's completion callback. Idempotent: a second call
        (after going back to step 1) reuses the existing record.
        """
        if draft is not None:
            self.draft = draft

        async with self._create_lock:
            method = self.state.entry_method or EntryMethod.MANUAL
            try:
                result = await self._create_item.execute(
                    CreateItemInput(
                        owner_id=self.session.owner_id,
                        entry_method=method,
                        draft=self.draft,
                        existing_item=self.session.item,
                    )
                )
            except (ExternalServiceError, RepositoryError) as exc:
                logger.error("item_create_failed", session_id=str(self.session.id), error=str(exc))
                self.session.notifications.error("Failed to create item", step=WizardStep.ADD_ITEM)
                return None

            if not self.session.mounted:
                return result.item

            self.session.item = result.item
            self.state.choose_entry_method(method)
            if result.skipped_photos:
                self.session.notifications.warning(
                    f"{result.skipped_photos} photo(s) couldn't be added",
                    step=WizardStep.ADD_ITEM,
                )

            from_step = self.state.current_step
            self.state.complete_add_item(result.item.id, result.item.last_photo_edit_at)

        if self.state.current_step is not from_step:
            await self._after_move(from_step)
        return result.item

    # -------------------------------------------------------------------------
    # Step 2: Price
    # -------------------------------------------------------------------------

    async def run_price_check(self) -> None:
        self._require_step(WizardStep.PRICE)
        await self.price.rerun()
        await self._publish()

    async def accept_suggested_price(self) -> bool:
        self._require_step(WizardStep.PRICE)
        accepted = await self.price.accept_suggested()
        await self._publish()
        return accepted

    async def accept_custom_price(self, raw_price: str | float | Decimal) -> bool:
        self._require_step(WizardStep.PRICE)
        accepted = await self.price.accept_custom(raw_price)
        await self._publish()
        return accepted

    # -------------------------------------------------------------------------
    # Step 3: Optimise
    # -------------------------------------------------------------------------

    async def run_optimisation(self) -> None:
        self._require_step(WizardStep.OPTIMISE)
        await self.optimisation.regenerate()

    async def save_optimisation(self) -> bool:
        self._require_step(WizardStep.OPTIMISE)
        saved = await self.optimisation.save()
        await self._publish()
        return saved

    # -------------------------------------------------------------------------
    # Step 4: Photos
    # -------------------------------------------------------------------------

    async def open_photo_studio(self) -> PhotoStudioHandoff | None:
        self._require_step(WizardStep.PHOTOS)
        return await self.photos.hand_off()

    def start_photo_polling(self) -> None:
        self._require_step(WizardStep.PHOTOS)
        if self.state.photo_edit_detected:
            return
        self.photos.start_polling()

    def cancel_photo_polling(self) -> None:
        self.photos.cancel_polling()

    async def skip_photos(self) -> WizardStep:
        self._require_step(WizardStep.PHOTOS)
        self.photos.skip()
        await self._after_move(WizardStep.PHOTOS)
        return self.state.current_step

    async def _advance_after_photo_edit(self) -> None:
        await self._publish()
        if self.state.current_step is WizardStep.PHOTOS and self.state.can_advance():
            await self.advance(triggered_by="photo_edit_detected")

    # -------------------------------------------------------------------------
    # Step 5: Pack
    # -------------------------------------------------------------------------

    def build_pack(self) -> ListingPack:
        item = self.session.require_item()
        skipped = self.state.status_of(WizardStep.PHOTOS) is StepStatus.SKIPPED
        return self._package.execute(item, photos_skipped=skipped)

    async def record_external_listing(self, url: str) -> None:
        item = self.session.require_item()
        try:
            await self._record_external.execute(item, url)
        except RepositoryError as exc:
            logger.error("external_listing_save_failed", item_id=str(item.id), error=str(exc))
            self.session.notifications.error("Couldn't save the listing link - try again", step=WizardStep.PACK)
            return
        self.session.notifications.success("Listing link saved!", step=WizardStep.PACK)

    # -------------------------------------------------------------------------
    # Notifications & events
    # -------------------------------------------------------------------------

    def dismiss_notification(self, notification_id: UUID) -> bool:
        return self.session.notifications.dismiss(notification_id)

    def _require_step(self, step: WizardStep) -> None:
        if self.state.current_step is not step:
            raise WizardActionError(f"Not available on the {self.state.current_step.label} step.")

    async def _publish(self) -> None:
        events = self.state.collect_events()
        if self.session.item is not None:
            events.extend(self.session.item.collect_events())
        if not events:
            return
        try:
            await self._event_publisher.publish_many(events)
        except Exception as exc:
            logger.error("event_publish_failed", session_id=str(self.session.id), error=str(exc))
