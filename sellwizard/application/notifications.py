from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from sellwizard.domain.enums.wizard_step import WizardStep


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    step: WizardStep | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationFeed:
    """Dismissible messages shown to the seller for one wizard session."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def push(self, level: NotificationLevel, message: str, step: WizardStep | None = None) -> Notification:
        notification = Notification(level=level, message=message, step=step)
        self._items.append(notification)
        return notification

    def info(self, message: str, step: WizardStep | None = None) -> Notification:
        return self.push(NotificationLevel.INFO, message, step)

    def success(self, message: str, step: WizardStep | None = None) -> Notification:
        return self.push(NotificationLevel.SUCCESS, message, step)

    def warning(self, message: str, step: WizardStep | None = None) -> Notification:
        return self.push(NotificationLevel.WARNING, message, step)

    def error(self, message: str, step: WizardStep | None = None) -> Notification:
        return self.push(NotificationLevel.ERROR, message, step)

    def dismiss(self, notification_id: UUID) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items.clear()

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
