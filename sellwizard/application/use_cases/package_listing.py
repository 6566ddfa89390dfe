import re
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sellwizard.config import settings
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.value_objects.optimisation_result import HealthScore

_HASHTAG = re.compile(r"#\w+")
_HASHTAG_LINE = re.compile(r"^(#\w+\s*)+$")


@dataclass(frozen=True)
class ListingPack:
    """Everything the seller copies into the marketplace, plus nudges."""

    item_id: UUID
    title: str
    description: str
    hashtags: list[str]
    full_text: str
    photos: list[str]
    price: Decimal | None
    health_score: int | None
    health_rating: str | None
    optimised: bool
    photos_enhanced: bool
    suggest_optimise: bool
    suggest_photo_studio: bool
    external_listing_url: str | None


def extract_hashtags(description: str) -> tuple[str, list[str]]:
    """Split hashtags out of a description; hashtag-only lines are dropped."""
    hashtags = list(dict.fromkeys(_HASHTAG.findall(description)))
    lines = [line for line in description.split("\n") if not _HASHTAG_LINE.match(line.strip())]
    return "\n".join(lines).strip(), hashtags


class PackageListing:
    """Use case: assemble the final pack from the best fields available."""

    def __init__(
        self,
        *,
        health_score_threshold: int = settings.health_score_threshold,
        health_score_excellent: int = settings.health_score_excellent,
    ) -> None:
        self._threshold = health_score_threshold
        self._excellent = health_score_excellent

    def execute(self, item: ItemRecord, *, photos_skipped: bool) -> ListingPack:
        optimised = item.last_optimised_at is not None
        description, hashtags = extract_hashtags(item.best_description)
        full_text = "\n\n".join(
            part for part in (item.best_title, description, " ".join(hashtags)) if part
        )

        rating = None
        if item.health_score is not None:
            rating = HealthScore(overall=item.health_score).rating(self._threshold, self._excellent)

        below_threshold = item.health_score is None or item.health_score < self._threshold
        return ListingPack(
            item_id=item.id,
            title=item.best_title,
            description=description,
            hashtags=hashtags,
            full_text=full_text,
            photos=item.all_photos(),
            price=item.current_price,
            health_score=item.health_score,
            health_rating=rating,
            optimised=optimised,
            photos_enhanced=item.last_photo_edit_at is not None,
            suggest_optimise=not optimised or below_threshold,
            suggest_photo_studio=photos_skipped,
            external_listing_url=item.external_listing_url,
        )
