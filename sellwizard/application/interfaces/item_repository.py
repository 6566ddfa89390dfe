from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from sellwizard.domain.entities.item_record import ItemRecord, ItemUpdate


class RepositoryError(Exception):
    """Raised when the item store cannot be reached or rejects a write."""


class ItemNotFoundError(RepositoryError):
    def __init__(self, item_id: UUID) -> None:
        super().__init__(f"Item {item_id} not found.")


class ItemRepository(ABC):
    """Port for persisting the wizard's single ItemRecord."""

    @abstractmethod
    async def create(self, item: ItemRecord) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, item_id: UUID) -> ItemRecord | None:
        ...

    @abstractmethod
    async def get_last_photo_edit_at(self, item_id: UUID) -> datetime | None:
        """Cheap re-fetch of just the photo edit marker, used while polling."""
        ...

    @abstractmethod
    async def update(self, item_id: UUID, owner_id: UUID, update: ItemUpdate) -> None:
        """Write only the columns named by ``update``; raises ItemNotFoundError."""
        ...
