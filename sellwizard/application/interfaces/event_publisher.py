from abc import ABC, abstractmethod

from sellwizard.domain.events.domain_events import DomainEvent


class EventPublisher(ABC):
    """Port for announcing wizard progress to the rest of the platform."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        ...

    async def publish_many(self, events: list[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
