"""
HTTP server for the toastline notification engine.

One engine lives for the lifetime of the app; it is created in the lifespan
handler so its timers run on the server's event loop.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from toastline import __version__
from toastline.core.config import get_config
from toastline.notifications.engine import NotificationEngine
from toastline.notifications.persistence import create_backend

from .notifications_api import router as notifications_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_engine() -> NotificationEngine:
    """Create an engine from the process configuration."""
    config = get_config()
    store = create_backend(config.storage.backend, config.storage.path, config.storage.max_bytes)
    return NotificationEngine(config=config.notification_config(), store=store)


def create_app(engine_factory: Optional[Callable[[], NotificationEngine]] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        engine_factory: Builds the engine at startup (default: build_engine)

    Returns:
        FastAPI app
    """
    factory = engine_factory or build_engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = factory()
        engine.start()
        app.state.engine = engine
        logger.info("Notification engine started")
        try:
            yield
        finally:
            engine.shutdown()

    app = FastAPI(
        title="Toastline API",
        description="Notification lifecycle and eviction engine",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(notifications_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Toastline API",
            "version": __version__,
            "endpoints": {
                "notifications": "/notifications",
                "history": "/history",
                "config": "/config",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        engine = getattr(app.state, "engine", None)
        return {"status": "healthy", "active": len(engine) if engine is not None else 0}

    return app


app = create_app()


def main(host: Optional[str] = None, port: Optional[int] = None):
    """Main entry point for HTTP server."""
    api = get_config().api
    host = host or api.host
    port = port or api.port

    logger.info("=" * 60)
    logger.info("Toastline - Notification API Server")
    logger.info("=" * 60)
    logger.info(f"Host: {host}")
    logger.info(f"Port: {port}")
    logger.info("=" * 60)
    logger.info(f"API Documentation: http://{host}:{port}/docs")
    logger.info("=" * 60)

    uvicorn.run(
        "toastline.ui.http_server:app",
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
