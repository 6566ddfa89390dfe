from abc import ABC, abstractmethod
from uuid import UUID

from sellwizard.domain.value_objects.continuation_token import ContinuationToken


class ContinuationStore(ABC):
    """Port for the durable hand-off token that survives leaving the wizard."""

    @abstractmethod
    async def save(self, owner_id: UUID, token: ContinuationToken) -> None:
        """Store ``token``, replacing any earlier one for this owner."""
        ...

    @abstractmethod
    async def consume(self, owner_id: UUID) -> ContinuationToken | None:
        """Atomically read and delete the owner's token."""
        ...

    @abstractmethod
    async def discard(self, owner_id: UUID) -> None:
        ...
