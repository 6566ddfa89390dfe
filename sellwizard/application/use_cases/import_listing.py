import structlog

from sellwizard.application.interfaces.market_services import ListingImporter
from sellwizard.domain.value_objects.item_draft import IncompleteDraftError, ItemDraft

logger = structlog.get_logger(__name__)


class ImportListing:
    """Use case: pre-fill the Add Item draft from an existing listing URL."""

    def __init__(self, importer: ListingImporter) -> None:
        self._importer = importer

    async def execute(self, url: str, draft: ItemDraft) -> ItemDraft:
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            raise IncompleteDraftError("Paste the full listing URL")

        # ListingImportError propagates to the caller
        imported = await self._importer.import_listing(url)
        logger.info("listing_imported", url=url, photos=len(imported.photos))
        return draft.merged_with(imported, source_url=url)
