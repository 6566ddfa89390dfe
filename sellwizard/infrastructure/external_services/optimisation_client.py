"""HTTP client for the optimize-listing edge function."""

import structlog

from sellwizard.application.interfaces.market_services import (
    ListingOptimisationService,
    OptimisationRequest,
    OptimisationServiceError,
)
from sellwizard.config import settings
from sellwizard.domain.value_objects.optimisation_result import HealthScore, OptimisationResult
from sellwizard.infrastructure.external_services.service_client import ServiceClient

logger = structlog.get_logger(__name__)


def _score(value: object) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(0, min(100, int(value)))
    return 0


def _health_score(raw: object) -> HealthScore:
    # Older deployments return a bare number instead of the breakdown
    if not isinstance(raw, dict):
        return HealthScore(overall=_score(raw))
    return HealthScore(
        overall=_score(raw.get("overall")),
        title_score=_score(raw.get("title_score")),
        description_score=_score(raw.get("description_score")),
        photo_score=_score(raw.get("photo_score")),
        completeness_score=_score(raw.get("completeness_score")),
    )


class OptimisationClient(ListingOptimisationService):
    def __init__(
        self, url: str = settings.optimisation_api_url, client: ServiceClient | None = None
    ) -> None:
        self._client = client or ServiceClient(url, error_cls=OptimisationServiceError)

    async def optimise(self, request: OptimisationRequest) -> OptimisationResult:
        payload = {
            "itemId": str(request.item_id),
            "title": request.current_title,
            "description": request.current_description,
            "brand": request.brand,
            "category": request.category,
            "size": request.size,
            "condition": request.condition,
            "colour": request.colour,
            "material": request.material,
            "seller_notes": request.seller_notes,
        }
        data = await self._client.post(payload)

        result = OptimisationResult(
            optimised_title=data.get("optimised_title") or "",
            optimised_description=data.get("optimised_description") or "",
            health_score=_health_score(data.get("health_score")),
            seller_notes_disclosed=bool(data.get("seller_notes_disclosed", False)),
        )
        logger.info(
            "optimisation_received",
            item_id=str(request.item_id),
            health_score=result.health_score.overall,
        )
        return result
