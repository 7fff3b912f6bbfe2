"""
FastAPI application entrypoint for the member directory.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from memberlink.api.routes import public_router
from memberlink.api.routes import router as api_router
from memberlink.core.config import get_settings
from memberlink.core.logging import configure_logging
from memberlink.dependencies import get_refresh_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the periodic token refresher for the lifetime of the app."""
    settings = get_settings()
    scheduler = get_refresh_scheduler() if settings.refresh.enabled else None
    if scheduler is not None:
        scheduler.start()
    else:
        logger.info("Periodic token refresh disabled")
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Memberlink",
        version="0.1.0",
        description="Discord OAuth member directory with bulk guild invitations.",
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix="/api")
    app.include_router(public_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
