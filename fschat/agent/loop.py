"""
Agent Loop (round-based streaming engine).

Each round:
1. Lock the conversation and take the turns so far
2. Stream a generation over them
3. For every partial model turn: stage it, emit it, dispatch its
   function calls in order, then stage and emit one tool turn with
   that chunk's responses
4. Commit; the round result is whether any function call occurred

Rounds repeat while the result is True. Round-fatal errors (request
failure, stream failure, non-success finish reason) emit one transient
system turn, discard everything the round staged, and stop the loop.

The lock is held for the whole round, network wait and tool execution
included, so the conversation log stays strictly ordered.

Usage:
    loop = AgentLoop(client=gemini, tools=registry, store=store)
    channel = OutputChannel()

    rounds = await loop.process(Turn.user([Part.text("List /tmp")]), channel)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from fschat.conversation.turn import FunctionCall, Part, Role, Turn
from fschat.providers.llm.base import is_acceptable_finish_reason
from fschat.tools.registry import ToolDispatchError

if TYPE_CHECKING:
    from fschat.conversation.store import ConversationStore, LockedHistory
    from fschat.providers.llm.base import GenerationChunk, GenerationClient
    from fschat.tools.registry import ToolRegistry

    from .channel import OutputChannel

logger = logging.getLogger(__name__)


class AgentLoop:
    """
    Drives generation rounds for one conversation store.

    Invariants:
    - A round stages exactly one model turn per content chunk; a chunk
      with function calls is followed directly by one tool turn answering
      them
    - A round that ends in error leaves the history untouched
    - Tool responses keep the order of the calls
    """

    def __init__(
        self,
        *,
        client: "GenerationClient",
        tools: "ToolRegistry",
        store: "ConversationStore",
        max_rounds: int | None = None,
    ):
        """
        Initialize the loop.

        Args:
            client: Generation client to stream from
            tools: Registry used to dispatch function calls
            store: Conversation history this loop reads and appends to
            max_rounds: Optional cap on rounds per request (None = unbounded)
        """
        self._client = client
        self._tools = tools
        self._store = store
        self._max_rounds = max_rounds

    @property
    def store(self) -> "ConversationStore":
        return self._store

    async def process(self, turn: Turn, channel: "OutputChannel") -> int:
        """
        Append a client turn and run rounds until the model is done.

        The channel is closed when processing ends, whatever the outcome.

        Returns:
            Number of rounds run
        """
        try:
            await self._store.append(turn)
            return await self.run(channel)
        finally:
            await channel.close()

    async def run(self, channel: "OutputChannel") -> int:
        """
        Run rounds while the model keeps calling tools.

        Returns:
            Number of rounds run
        """
        rounds = 0
        while True:
            rounds += 1
            logger.info(
                f"[agent_loop] Round {rounds} for session {self._store.session_id}"
            )
            if not await self.run_round(channel):
                break
            if channel.disconnected:
                logger.info("[agent_loop] Consumer gone, not starting another round")
                break
            if self._max_rounds is not None and rounds >= self._max_rounds:
                logger.warning(f"[agent_loop] Stopping after max_rounds={self._max_rounds}")
                break

        logger.info(f"[agent_loop] Finished after {rounds} round(s)")
        return rounds

    async def run_round(self, channel: "OutputChannel") -> bool:
        """
        Run one round.

        Returns:
            True if any function call occurred (continue), False to stop
        """
        async with self._store.exclusive() as history:
            try:
                stream = await self._client.stream_generate(history.turns())
            except Exception as e:
                await self._emit_error(channel, f"Error while generating stream content: {e}")
                return False

            try:
                completed, function_called = await self._consume(stream, history, channel)
            finally:
                await _close_stream(stream)

            if not completed:
                return False

            added = history.commit()
            logger.debug(f"[agent_loop] Committed {added} turn(s)")
            return function_called

    async def _consume(
        self,
        stream: AsyncIterator["GenerationChunk"],
        history: "LockedHistory",
        channel: "OutputChannel",
    ) -> tuple[bool, bool]:
        """
        Process the stream of one round.

        Returns:
            Tuple of (completed without error, function call occurred)
        """
        function_called = False
        iterator = aiter(stream)

        while True:
            try:
                chunk = await anext(iterator)
            except StopAsyncIteration:
                break
            except Exception as e:
                await self._emit_error(channel, f"Error while iterating stream: {e}")
                return False, function_called

            candidate = chunk.candidate
            if candidate is None:
                continue

            if not is_acceptable_finish_reason(candidate.finish_reason):
                await self._emit_error(
                    channel, f"Generation failed with code: {int(candidate.finish_reason)}"
                )
                return False, function_called

            if candidate.content is None:
                continue

            content = candidate.content.with_role(Role.MODEL)
            history.append(content)
            await channel.send(content)

            calls = content.function_calls()
            if not calls:
                continue
            function_called = True

            # Answered right after the turn that issued the calls
            responses = [await self._dispatch(call) for call in calls]
            tool_turn = Turn.tool(responses)
            history.append(tool_turn)
            await channel.send(tool_turn)

        return True, function_called

    async def _dispatch(self, call: FunctionCall) -> Part:
        try:
            response = await self._tools.dispatch(call)
        except ToolDispatchError as e:
            return Part.text(str(e))
        return Part(response)

    async def _emit_error(self, channel: "OutputChannel", message: str) -> None:
        logger.warning(f"[agent_loop] {message}")
        await channel.send(Turn.system_text(message))


async def _close_stream(stream: object) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


__all__ = [
    "AgentLoop",
]
