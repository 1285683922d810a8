"""
Chat endpoints for fschat.

GET  /chat  -> JSON array with the conversation history
POST /chat  -> accepts one turn, answers 201 with a Server-Sent-Events
               stream carrying every turn the agent emits

The conversation runs as a background task, so a client that goes away
does not abort a round half-way; it only stops further rounds.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from fschat.agent import AgentLoop, OutputChannel, format_sse
from fschat.app.dependencies import (
    get_generation_client,
    get_registry,
    get_sessions,
    get_settings,
    spawn,
)
from fschat.config.schemas import AppSettings
from fschat.conversation.store import DEFAULT_SESSION, SessionStore
from fschat.conversation.turn import Turn
from fschat.providers.llm import GenerationClient
from fschat.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def get_session_id(x_session_id: str | None = Header(default=None)) -> str:
    """Session from the X-Session-Id header, the default session otherwise."""
    return (x_session_id or "").strip() or DEFAULT_SESSION


async def _event_stream(channel: OutputChannel) -> AsyncIterator[str]:
    finished = False
    try:
        async for event in channel.events():
            yield format_sse(event)
        finished = True
    finally:
        if not finished:
            channel.disconnect()


@router.get("/chat")
async def get_chat(
    session_id: str = Depends(get_session_id),
    sessions: SessionStore = Depends(get_sessions),
) -> Response:
    turns = await sessions.get(session_id).snapshot()
    return JSONResponse(
        [turn.to_dict() for turn in turns],
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/chat")
async def post_chat(
    request: Request,
    session_id: str = Depends(get_session_id),
    sessions: SessionStore = Depends(get_sessions),
    registry: ToolRegistry = Depends(get_registry),
    client: GenerationClient = Depends(get_generation_client),
    settings: AppSettings = Depends(get_settings),
) -> Response:
    body = await request.body()
    try:
        turn = Turn.from_dict(json.loads(body))
    except ValueError as e:
        # json.JSONDecodeError and TurnParseError are both ValueErrors
        logger.info(f"[chat] Rejected malformed turn: {e}")
        return PlainTextResponse(str(e), status_code=400)

    channel = OutputChannel(capacity=settings.channel_capacity)
    loop = AgentLoop(
        client=client,
        tools=registry,
        store=sessions.get(session_id),
        max_rounds=settings.max_rounds,
    )
    spawn(loop.process(turn, channel), name=f"chat:{session_id}")

    return StreamingResponse(
        _event_stream(channel),
        status_code=201,
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
