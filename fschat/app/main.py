"""
fschat - Filesystem-aware chat agent

FastAPI application entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from fschat import __version__
from fschat.app.api import chat_router
from fschat.app.dependencies import (
    get_registry,
    get_sessions,
    get_settings,
    initialize_services,
    shutdown_services,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting fschat services...")
    try:
        await initialize_services()
        logger.info("fschat services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down fschat services...")
    try:
        await shutdown_services()
        logger.info("fschat services shut down successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


settings = get_settings()

app = FastAPI(
    title="fschat",
    description="Chat with a Gemini model that can search and read the local filesystem",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

app.include_router(chat_router)


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint with service info."""
    return {
        "service": settings.service_name,
        "version": __version__,
        "status": "running",
    }


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, Any]:
    """
    Health check endpoint.

    Returns registered tools, known sessions and whether a model key is set.
    """
    try:
        current = get_settings()
        return {
            "status": "healthy",
            "model": current.gemini_model,
            "model_configured": bool(current.gemini_api_key.get_secret_value()),
            "tools": get_registry().list_names(),
            "sessions": len(get_sessions()),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fschat.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
