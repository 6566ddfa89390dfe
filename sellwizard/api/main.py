"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sellwizard.api.dependencies import get_registry
from sellwizard.api.routes import health, wizard
from sellwizard.infrastructure.logging.setup import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging()
    logger.info("sellwizard_starting")
    yield
    # Unmount whatever is still open so no photo poll outlives the process
    registry = app.dependency_overrides.get(get_registry, get_registry)()
    await registry.close_all()
    logger.info("sellwizard_stopping")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sell Wizard",
        description="Guided five-step flow for bringing one item to market.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(wizard.router)

    return app


app = create_app()
