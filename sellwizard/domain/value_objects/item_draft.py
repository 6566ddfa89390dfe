"""
Values collected on the Add Item step before an item record exists.

A draft is plain form data; nothing here touches storage. ``CreateItem``
turns a validated draft into exactly one ``ItemRecord``.
"""
from dataclasses import dataclass, field, replace
from decimal import Decimal


class IncompleteDraftError(ValueError):
    """Raised when the Add Item form cannot produce an item record."""


@dataclass(frozen=True)
class StagedPhoto:
    """A local photo waiting to be uploaded when the item is created."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    @property
    def extension(self) -> str:
        stem, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and stem and ext else "jpg"


@dataclass(frozen=True)
class ImportedListing:
    """Details scraped from an existing marketplace listing URL."""

    title: str | None = None
    description: str | None = None
    brand: str | None = None
    category: str | None = None
    size: str | None = None
    condition: str | None = None
    colour: str | None = None
    material: str | None = None
    price: Decimal | None = None
    photos: tuple[str, ...] = ()


@dataclass(frozen=True)
class ItemDraft:
    title: str = ""
    description: str = ""
    brand: str = ""
    category: str = ""
    size: str = ""
    condition: str = ""
    colour: str = ""
    material: str = ""
    current_price: Decimal | None = None
    purchase_price: Decimal | None = None
    shipping_cost: Decimal | None = None
    seller_notes: str = ""
    source_url: str = ""
    imported_photo_urls: tuple[str, ...] = ()
    staged_photos: tuple[StagedPhoto, ...] = ()

    def validate(self) -> None:
        if not self.condition.strip():
            raise IncompleteDraftError("Set the condition to continue")

    def merged_with(self, imported: ImportedListing, source_url: str) -> "ItemDraft":
        """Imported values win where present; blanks keep what the seller typed."""
        photos = tuple(
            url for url in imported.photos if isinstance(url, str) and url.startswith("http")
        )
        return replace(
            self,
            title=imported.title or self.title,
            description=imported.description or self.description,
            brand=imported.brand or self.brand,
            category=imported.category or self.category,
            size=imported.size or self.size,
            condition=imported.condition or self.condition,
            colour=imported.colour or self.colour,
            material=imported.material or self.material,
            current_price=imported.price if imported.price is not None else self.current_price,
            source_url=source_url,
            imported_photo_urls=photos or self.imported_photo_urls,
        )


def clean(value: str) -> str | None:
    """Strip a form value, mapping blank to None."""
    value = value.strip()
    return value or None
