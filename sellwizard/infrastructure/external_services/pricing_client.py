"""HTTP client for the price-check edge function."""

from decimal import Decimal, InvalidOperation

import structlog

from sellwizard.application.interfaces.market_services import (
    MarketPricingService,
    PriceCheckRequest,
    PricingServiceError,
)
from sellwizard.config import settings
from sellwizard.domain.value_objects.price_assessment import PriceAssessment
from sellwizard.infrastructure.external_services.service_client import ServiceClient

logger = structlog.get_logger(__name__)


def _decimal(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _int(value: object) -> int | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


class PricingClient(MarketPricingService):
    def __init__(self, url: str = settings.pricing_api_url, client: ServiceClient | None = None) -> None:
        self._client = client or ServiceClient(url, error_cls=PricingServiceError)

    async def price_check(self, request: PriceCheckRequest) -> PriceAssessment:
        """
        POST {itemId, brand, category, condition, title, size, currentPrice} →
        {recommended_price, price_range_low, price_range_high, confidence_score, ai_insights}
        """
        payload = {
            "itemId": str(request.item_id),
            "brand": request.brand,
            "category": request.category,
            "condition": request.condition,
            "title": request.title,
            "size": request.size,
            "currentPrice": float(request.current_price) if request.current_price is not None else None,
        }
        data = await self._client.post(payload)

        assessment = PriceAssessment(
            recommended_price=_decimal(data.get("recommended_price")),
            price_range_low=_decimal(data.get("price_range_low")),
            price_range_high=_decimal(data.get("price_range_high")),
            confidence_score=_int(data.get("confidence_score")),
            ai_insights=data.get("ai_insights"),
        )
        logger.info(
            "price_check_received",
            item_id=str(request.item_id),
            recommended_price=str(assessment.recommended_price),
        )
        return assessment
