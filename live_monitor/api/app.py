"""FastAPI application for the live monitor service."""

import contextlib
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..infrastructure.config import configure_logging
from ..infrastructure.dependencies import ServiceContainer, get_service_container
from .endpoints import creators, health, sync

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(container: Optional[ServiceContainer] = None, start_polling: bool = True) -> FastAPI:
    """Create the API application.

    Args:
        container: Service container, the global one when omitted
        start_polling: Whether the lifespan starts the live sync loop

    Returns:
        Configured FastAPI application
    """

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the poller on startup and stop it on shutdown."""
        app.state.container = container or get_service_container()
        configure_logging(app.state.container.config.log_level)
        live_sync_service = app.state.container.get_live_sync_service()
        if start_polling:
            await live_sync_service.start()

        yield  # Application runs here

        await app.state.container.shutdown()

    app = FastAPI(
        title="Live Monitor API",
        description="Tracks creators on Twitch and YouTube and announces when they go live",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(creators.router)
    app.include_router(sync.router)
    return app


# Create FastAPI application
app = create_app()
