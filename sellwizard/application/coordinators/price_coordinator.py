from datetime import datetime, timezone
from decimal import Decimal

import structlog

from sellwizard.application.interfaces.item_repository import ItemRepository, RepositoryError
from sellwizard.application.interfaces.market_services import (
    CreditLimitReachedError,
    ExternalServiceError,
    MarketPricingService,
    PriceCheckRequest,
)
from sellwizard.application.session import WizardSession
from sellwizard.domain.entities.item_record import ItemRecord, PriceUpdate
from sellwizard.domain.enums.coordinator_phase import CoordinatorPhase
from sellwizard.domain.enums.wizard_step import StepStatus, WizardStep
from sellwizard.domain.value_objects.price_assessment import (
    InvalidPriceError,
    PriceAssessment,
    parse_price,
)

logger = structlog.get_logger(__name__)


class PriceCoordinator:
    """
    Drives the Price step: asks the pricing service for a recommendation and
    writes whichever price the seller accepts onto the item record.
    """

    def __init__(
        self,
        session: WizardSession,
        pricing_service: MarketPricingService,
        item_repo: ItemRepository,
    ) -> None:
        self._session = session
        self._pricing = pricing_service
        self._item_repo = item_repo
        self.phase = CoordinatorPhase.IDLE
        self.assessment: PriceAssessment | None = None

    async def on_enter(self) -> None:
        """Auto-run on step entry, at most once: nothing cached and nothing in flight."""
        if self._session.item is None:
            return
        if self.assessment is None and self.phase is not CoordinatorPhase.LOADING:
            await self.run()

    async def rerun(self) -> None:
        """Drop the cached recommendation and ask again. An accepted price stays accepted."""
        if self.phase is CoordinatorPhase.LOADING:
            return
        self.assessment = None
        self.phase = CoordinatorPhase.IDLE
        await self.on_enter()

    async def run(self) -> None:
        item = self._session.require_item()
        state = self._session.state
        if self.phase is CoordinatorPhase.LOADING:
            return

        self.phase = CoordinatorPhase.LOADING
        previous = state.status_of(WizardStep.PRICE)
        state.set_step_status(WizardStep.PRICE, StepStatus.LOADING)
        logger.info("price_check_started", item_id=str(item.id))

        try:
            assessment = await self._pricing.price_check(self._request_for(item))
        except ExternalServiceError as exc:
            if not self._session.is_live_for(item):
                logger.info("stale_price_check_ignored", item_id=str(item.id))
                return
            state.set_step_status(WizardStep.PRICE, previous)
            self.phase = CoordinatorPhase.FAILED
            message = (
                str(exc)
                if isinstance(exc, CreditLimitReachedError)
                else "Price check failed - try again"
            )
            self._session.notifications.error(message, step=WizardStep.PRICE)
            logger.warning("price_check_failed", item_id=str(item.id), error=str(exc))
            return

        if not self._session.is_live_for(item):
            logger.info("stale_price_check_ignored", item_id=str(item.id))
            return

        state.set_step_status(WizardStep.PRICE, previous)
        self.assessment = assessment
        self.phase = CoordinatorPhase.SUCCEEDED
        logger.info(
            "price_check_completed",
            item_id=str(item.id),
            recommended_price=str(assessment.recommended_price),
            confidence_score=assessment.confidence_score,
        )

    async def accept_suggested(self) -> bool:
        if self.assessment is None or self.assessment.recommended_price is None:
            raise InvalidPriceError("There is no suggested price to accept")
        price = parse_price(self.assessment.recommended_price)
        return await self._accept(price=price, recommended=price, custom=False)

    async def accept_custom(self, raw_price: str | float | Decimal) -> bool:
        price = parse_price(raw_price)
        recommended = None
        if self.assessment is not None and self.assessment.recommended_price is not None:
            try:
                recommended = parse_price(self.assessment.recommended_price)
            except InvalidPriceError:
                # An unusable suggestion never blocks the seller's own price
                recommended = None
        return await self._accept(price=price, recommended=recommended, custom=True)

    def clear(self) -> None:
        self.assessment = None
        self.phase = CoordinatorPhase.IDLE

    async def _accept(self, *, price: Decimal, recommended: Decimal | None, custom: bool) -> bool:
        item = self._session.require_item()
        update = PriceUpdate(
            current_price=price,
            recommended_price=recommended,
            last_price_check_at=datetime.now(timezone.utc),
            custom=custom,
        )
        try:
            await self._item_repo.update(item.id, item.owner_id, update)
        except RepositoryError as exc:
            logger.error("price_save_failed", item_id=str(item.id), error=str(exc))
            self._session.notifications.error("Couldn't save the price - try again", step=WizardStep.PRICE)
            return False

        if not self._session.is_live_for(item):
            return False

        item.apply(update)
        self._session.state.mark_price_accepted()
        self._session.notifications.success(f"Price set to £{price:.2f}", step=WizardStep.PRICE)
        logger.info("price_accepted", item_id=str(item.id), price=str(price), custom=custom)
        return True

    @staticmethod
    def _request_for(item: ItemRecord) -> PriceCheckRequest:
        return PriceCheckRequest(
            item_id=item.id,
            brand=item.brand,
            category=item.category,
            condition=item.condition,
            title=item.title,
            size=item.size,
            current_price=item.current_price,
        )
