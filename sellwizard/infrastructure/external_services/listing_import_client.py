"""HTTP client for the scrape-vinted-url edge function."""

from decimal import Decimal, InvalidOperation

from sellwizard.application.interfaces.market_services import ListingImporter, ListingImportError
from sellwizard.config import settings
from sellwizard.domain.value_objects.item_draft import ImportedListing
from sellwizard.infrastructure.external_services.service_client import ServiceClient


def _text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


class ListingImportClient(ListingImporter):
    def __init__(
        self, url: str = settings.listing_import_api_url, client: ServiceClient | None = None
    ) -> None:
        self._client = client or ServiceClient(url, error_cls=ListingImportError)

    async def import_listing(self, url: str) -> ImportedListing:
        data = await self._client.post({"url": url})

        price = None
        if data.get("price") is not None:
            try:
                price = Decimal(str(data["price"]))
            except InvalidOperation:
                price = None

        photos = data.get("photos")
        return ImportedListing(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            brand=_text(data.get("brand")),
            category=_text(data.get("category")),
            size=_text(data.get("size")),
            condition=_text(data.get("condition")),
            colour=_text(data.get("colour")),
            material=_text(data.get("material")),
            price=price,
            photos=tuple(p for p in photos if isinstance(p, str)) if isinstance(photos, list) else (),
        )
