from datetime import datetime, timezone

import structlog

from sellwizard.application.interfaces.item_repository import ItemRepository, RepositoryError
from sellwizard.application.interfaces.market_services import (
    CreditLimitReachedError,
    ExternalServiceError,
    ListingOptimisationService,
    OptimisationRequest,
)
from sellwizard.application.session import WizardActionError, WizardSession
from sellwizard.domain.entities.item_record import ItemRecord, OptimisationUpdate
from sellwizard.domain.enums.coordinator_phase import CoordinatorPhase
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.value_objects.optimisation_result import OptimisationResult

logger = structlog.get_logger(__name__)

DISCLOSURE_WARNING = (
    "Your disclosure notes weren't found in the optimised description - "
    "check it mentions them before posting"
)


class NothingToSaveError(WizardActionError):
    def __init__(self) -> None:
        super().__init__("There is no optimised listing to save yet.")


class OptimisationCoordinator:
    """
    Drives the Optimise step: generates SEO copy plus a health score and, on
    save, writes the optimised title/description/score onto the item record.
    """

    def __init__(
        self,
        session: WizardSession,
        optimisation_service: ListingOptimisationService,
        item_repo: ItemRepository,
    ) -> None:
        self._session = session
        self._optimiser = optimisation_service
        self._item_repo = item_repo
        self.phase = CoordinatorPhase.IDLE
        self.result: OptimisationResult | None = None

    @property
    def disclosure_missing(self) -> bool:
        item = self._session.item
        if self.result is None or item is None or not item.seller_notes:
            return False
        return not self.result.seller_notes_disclosed

    async def on_enter(self) -> None:
        if self._session.item is None:
            return
        if self.result is None and self.phase is not CoordinatorPhase.LOADING:
            await self.run()

    async def regenerate(self) -> None:
        if self.phase is CoordinatorPhase.LOADING:
            return
        self.result = None
        self.phase = CoordinatorPhase.IDLE
        await self.on_enter()

    async def run(self) -> None:
        item = self._session.require_item()
        state = self._session.state
        if self.phase is CoordinatorPhase.LOADING:
            return

        self.phase = CoordinatorPhase.LOADING
        previous = state.status_of(WizardStep.OPTIMISE)
        state.set_step_status(WizardStep.OPTIMISE, StepStatus.LOADING)

        try:
            result = await self._optimiser.optimise(self._request_for(item))
        except ExternalServiceError as exc:
            if not self._session.is_live_for(item):
                return
            state.set_step_status(WizardStep.OPTIMISE, previous)
            self.phase = CoordinatorPhase.FAILED
            message = (
                str(exc)
                if isinstance(exc, CreditLimitReachedError)
                else "Optimisation failed - try again"
            )
            self._session.notifications.error(message, step=WizardStep.OPTIMISE)
            logger.warning("optimisation_failed", item_id=str(item.id), error=str(exc))
            return

        if not self._session.is_live_for(item):
            logger.info("stale_optimisation_ignored", item_id=str(item.id))
            return

        state.set_step_status(WizardStep.OPTIMISE, previous)
        self.result = result
        self.phase = CoordinatorPhase.SUCCEEDED
        logger.info(
            "optimisation_completed",
            item_id=str(item.id),
            health_score=result.health_score.overall,
            seller_notes_disclosed=result.seller_notes_disclosed,
        )
        if self.disclosure_missing:
            self._session.notifications.warning(DISCLOSURE_WARNING, step=WizardStep.OPTIMISE)

    async def save(self) -> bool:
        """Persist the current result. A disclosure warning never blocks this."""
        item = self._session.require_item()
        if self.result is None:
            raise NothingToSaveError()

        update = OptimisationUpdate(
            optimised_title=self.result.optimised_title,
            optimised_description=self.result.optimised_description,
            health_score=self.result.health_score.overall,
            last_optimised_at=datetime.now(timezone.utc),
        )
        try:
            await self._item_repo.update(item.id, item.owner_id, update)
        except RepositoryError as exc:
            logger.error("optimisation_save_failed", item_id=str(item.id), error=str(exc))
            self._session.notifications.error(
                "Couldn't save the optimised listing - try again", step=WizardStep.OPTIMISE
            )
            return False

        if not self._session.is_live_for(item):
            return False

        item.apply(update)
        self._session.state.mark_optimisation_saved()
        self._session.notifications.success("Optimised listing saved!", step=WizardStep.OPTIMISE)
        return True

    def clear(self) -> None:
        self.result = None
        self.phase = CoordinatorPhase.IDLE

    @staticmethod
    def _request_for(item: ItemRecord) -> OptimisationRequest:
        return OptimisationRequest(
            item_id=item.id,
            current_title=item.title,
            current_description=item.description,
            brand=item.brand,
            category=item.category,
            size=item.size,
            condition=item.condition,
            colour=item.colour,
            material=item.material,
            seller_notes=item.seller_notes,
        )
