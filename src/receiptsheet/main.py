"""ReceiptSheet FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from receiptsheet.api import health_router, main_router
from receiptsheet.core.config import get_settings
from receiptsheet.core.logging_config import LoggingConfig, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle."""
    settings = get_settings()
    setup_logging(
        LoggingConfig(log_level=settings.log_level, log_format=settings.log_format)
    )
    logger.info("Starting ReceiptSheet application...")
    if not settings.google_sheet_id:
        logger.warning("GOOGLE_SHEET_ID is not set - saving to Sheets is disabled")

    yield

    logger.info("Shutting down ReceiptSheet application...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ReceiptSheet",
        version=settings.app_version,
        description="Scan receipts, parse them and append them to Google Sheets",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health_router)
    app.include_router(main_router, prefix=settings.api_prefix)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "receiptsheet.main:app",
        host="0.0.0.0",  # noqa: S104
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
