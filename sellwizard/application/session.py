from dataclasses import dataclass, field
from uuid import UUID, uuid4

from sellwizard.application.notifications import NotificationFeed
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.entities.wizard_state import WizardState


class WizardActionError(Exception):
    """An action that makes no sense in the session's current state."""


class NoItemRecordError(WizardActionError):
    def __init__(self) -> None:
        super().__init__("Create the item first.")


@dataclass
class WizardSession:
    """Everything one mounted wizard knows: progress, the item, messages."""

    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    state: WizardState = field(default_factory=WizardState)
    item: ItemRecord | None = None
    notifications: NotificationFeed = field(default_factory=NotificationFeed)
    mounted: bool = False

    def require_item(self) -> ItemRecord:
        if self.item is None:
            raise NoItemRecordError()
        return self.item

    def is_live_for(self, item: ItemRecord) -> bool:
        """False once the session unmounted or was reset while a call was in flight."""
        return self.mounted and self.item is item
