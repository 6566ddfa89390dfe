"""
RabbitMQ event publisher.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
asyncio event loop. A new connection is opened per publish call; wizard
events are low volume (a handful per listing).
"""
import asyncio
import json
from dataclasses import asdict
from enum import Enum
from functools import partial

import pika
import structlog

from sellwizard.application.interfaces.event_publisher import EventPublisher
from sellwizard.config import settings
from sellwizard.domain.events.domain_events import (
    DomainEvent,
    ItemCreatedEvent,
    ListingOptimisedEvent,
    PhotoEditDetectedEvent,
    PriceAcceptedEvent,
    WizardStepChangedEvent,
)

logger = structlog.get_logger(__name__)

EXCHANGE_NAME = "sellwizard.events"


def _event_to_routing_key(event: DomainEvent) -> str:
    if isinstance(event, ItemCreatedEvent):
        return "wizard.item.created"
    if isinstance(event, PriceAcceptedEvent):
        return "wizard.price.accepted"
    if isinstance(event, ListingOptimisedEvent):
        return "wizard.listing.optimised"
    if isinstance(event, PhotoEditDetectedEvent):
        return "wizard.photos.edited"
    if isinstance(event, WizardStepChangedEvent):
        return f"wizard.step.{event.to_step.name.lower()}"
    return "event.unknown"


def _json_default(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _serialise_event(event: DomainEvent) -> str:
    payload = {"event_type": _event_to_routing_key(event), **asdict(event)}
    return json.dumps(payload, default=_json_default)


def _blocking_publish(rabbitmq_url: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(
            exchange=EXCHANGE_NAME, exchange_type="topic", durable=True
        )
        channel.basic_publish(
            exchange=EXCHANGE_NAME,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQPublisher(EventPublisher):
    """Publishes wizard domain events to a RabbitMQ topic exchange."""

    def __init__(self, rabbitmq_url: str = settings.rabbitmq_url) -> None:
        self._url = rabbitmq_url

    async def publish(self, event: DomainEvent) -> None:
        routing_key = _event_to_routing_key(event)
        body = _serialise_event(event)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, routing_key, body),
            )
            logger.debug("event_published", routing_key=routing_key, event_id=str(event.event_id))
        except Exception as exc:
            # Publishing must never break a wizard action
            logger.error(
                "failed_to_publish_event",
                routing_key=routing_key,
                error=str(exc),
            )
