import asyncio

import pika
from fastapi import APIRouter
from sqlalchemy import text

from sellwizard.config import settings
from sellwizard.infrastructure.database.connection import AsyncSessionLocal

router = APIRouter(tags=["health"])


def _ping_rabbitmq() -> None:
    connection = pika.BlockingConnection(pika.URLParameters(settings.rabbitmq_url))
    connection.close()


@router.get("/health")
async def health_check() -> dict:  # type: ignore[type-arg]
    """Liveness + dependency health check."""
    db_status = "connected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    # RabbitMQ only matters when events are actually published
    rabbitmq_status = "disabled"
    if settings.publish_events:
        rabbitmq_status = "connected"
        try:
            await asyncio.get_running_loop().run_in_executor(None, _ping_rabbitmq)
        except Exception as exc:
            rabbitmq_status = f"error: {exc}"

    overall = "healthy" if db_status == "connected" and rabbitmq_status in ("connected", "disabled") else "degraded"

    return {
        "status": overall,
        "database": db_status,
        "rabbitmq": rabbitmq_status,
    }
