"""
Output Channel.

Bounded, per-request queue of serialized turns between the agent loop
and the transport. One event per emitted turn; the transport decides the
framing (see format_sse).

Disconnect is a cancellation signal: once the transport reports the
consumer gone, send() returns False and the agent loop stops issuing
further rounds.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fschat.conversation.turn import Turn

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 256

_END_OF_STREAM = object()


def serialize_turn(turn: Turn) -> str:
    return json.dumps(turn.to_dict(), ensure_ascii=False)


def format_sse(event: str) -> str:
    """Frame one event as a Server-Sent-Events message."""
    return f"data: {event}\n\n"


class OutputChannel:
    """
    Bounded queue of serialized turns.

    send() waits when the queue is full, so a slow consumer applies
    backpressure to the agent loop.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._disconnected = False
        self._closed = False

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, turn: Turn) -> bool:
        """
        Queue one turn for the consumer.

        Returns:
            False if the consumer is gone and the turn was dropped
        """
        if self._disconnected:
            return False
        if self._closed:
            raise RuntimeError("send() on a closed OutputChannel")
        await self._queue.put(serialize_turn(turn))
        return True

    async def close(self) -> None:
        """Mark the end of the stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if not self._disconnected:
            await self._queue.put(_END_OF_STREAM)

    def disconnect(self) -> None:
        """
        Called by the transport when the consumer goes away.

        Pending events are dropped so a sender blocked on a full queue
        can proceed.
        """
        if self._disconnected:
            return
        self._disconnected = True
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            dropped += 1
        logger.info(f"[output_channel] Consumer disconnected, dropped {dropped} event(s)")

    async def events(self) -> AsyncIterator[str]:
        """Yield serialized turns until the stream is closed."""
        while True:
            item = await self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item

    def __len__(self) -> int:
        return self._queue.qsize()


__all__ = [
    "DEFAULT_CAPACITY",
    "OutputChannel",
    "format_sse",
    "serialize_turn",
]
