import structlog

from sellwizard.application.interfaces.item_repository import ItemRepository
from sellwizard.domain.entities.item_record import ExternalListingUpdate, ItemRecord

logger = structlog.get_logger(__name__)


class InvalidListingUrlError(ValueError):
    pass


class RecordExternalListing:
    """Use case: remember where the seller actually posted the item."""

    def __init__(self, item_repo: ItemRepository) -> None:
        self._item_repo = item_repo

    async def execute(self, item: ItemRecord, url: str) -> None:
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            raise InvalidListingUrlError("Paste the URL of your live listing")

        update = ExternalListingUpdate(external_listing_url=url)
        await self._item_repo.update(item.id, item.owner_id, update)
        item.apply(update)
        logger.info("external_listing_recorded", item_id=str(item.id), url=url)
