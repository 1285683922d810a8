"""
Dependency Injection for fschat.

Provides singleton instances of the settings, the session store, the
tool registry and the generation client. Every provider is a plain
function so FastAPI routes can Depends() on it and tests can override it.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Coroutine
from functools import lru_cache
from typing import Any, Optional

from fastapi import HTTPException

from fschat.config.schemas import AppSettings
from fschat.conversation.store import SessionStore
from fschat.providers.llm import GeminiGenerationClient, GenerationClient
from fschat.tools.registry import ToolRegistry, create_default_registry

logger = logging.getLogger(__name__)


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return AppSettings(
        # Service
        service_name=os.getenv("FSCHAT_SERVICE_NAME", "fschat"),
        environment=os.getenv("FSCHAT_ENVIRONMENT", "development"),
        debug=os.getenv("FSCHAT_DEBUG", "false").lower() == "true",
        # HTTP
        host=os.getenv("FSCHAT_HOST", "0.0.0.0"),
        port=int(os.getenv("FSCHAT_PORT", "8080")),
        # Gemini (plain GEMINI_API_KEY is accepted too)
        gemini_api_key=os.getenv("FSCHAT_GEMINI_API_KEY") or os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("FSCHAT_GEMINI_MODEL", "gemini-2.5-pro"),
        # Agent loop
        channel_capacity=int(os.getenv("FSCHAT_CHANNEL_CAPACITY", "256")),
        max_rounds=_optional_int("FSCHAT_MAX_ROUNDS"),
        # Tools
        read_max_bytes=_optional_int("FSCHAT_READ_MAX_BYTES"),
    )


# Global instances (initialized on first access)
_sessions: Optional[SessionStore] = None
_registry: Optional[ToolRegistry] = None
_client: Optional[GenerationClient] = None
_tasks: set[asyncio.Task] = set()


def get_sessions() -> SessionStore:
    """Process-wide mapping of session id to conversation store."""
    global _sessions
    if _sessions is None:
        _sessions = SessionStore()
    return _sessions


def get_registry() -> ToolRegistry:
    """Registry with the built-in filesystem tools."""
    global _registry
    if _registry is None:
        settings = get_settings()
        _registry = create_default_registry(read_max_bytes=settings.read_max_bytes)
    return _registry


def get_generation_client() -> GenerationClient:
    """
    Gemini client declaring the registry's tools.

    Raises:
        HTTPException: 503 if no API key is configured
    """
    global _client
    if _client is None:
        settings = get_settings()
        api_key = settings.gemini_api_key.get_secret_value()
        if not api_key:
            raise HTTPException(
                status_code=503,
                detail="Gemini API key not configured (set FSCHAT_GEMINI_API_KEY)",
            )
        _client = GeminiGenerationClient(
            api_key=api_key,
            model=settings.gemini_model,
            function_declarations=get_registry().function_declarations(),
        )
        logger.info(f"Generation client ready: {_client!r}")
    return _client


def spawn(coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
    """
    Run a coroutine in the background, detached from the request.

    A reference is kept until the task finishes; failures are logged.
    """
    task = asyncio.create_task(coro, name=name)
    _tasks.add(task)

    def _done(t: asyncio.Task) -> None:
        _tasks.discard(t)
        if t.cancelled():
            return
        exc = t.exception()
        if exc is not None:
            logger.error(f"Background task {t.get_name()} failed: {exc}", exc_info=exc)

    task.add_done_callback(_done)
    return task


async def initialize_services() -> None:
    """Build the registry and session store at startup."""
    settings = get_settings()
    registry = get_registry()
    get_sessions()

    logger.info(f"Registered tools: {registry.list_names()}")
    if not settings.gemini_api_key.get_secret_value():
        logger.warning("No Gemini API key configured; POST /chat will answer 503")


async def shutdown_services() -> None:
    """Cancel conversations still running."""
    pending = [t for t in _tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"Cancelled {len(pending)} running conversation(s)")
