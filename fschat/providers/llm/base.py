"""
Generation Client Protocol for fschat.

Defines the boundary with the remote generative model: the full turn
history goes in, a cancellable, fallible async sequence of partial model
turns comes out.

Failure points:
    - awaiting stream_generate() raises GenerationError if the request fails
    - iterating the returned stream raises GenerationError mid-round
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fschat.conversation.turn import Turn


class FinishReason(IntEnum):
    """Why a candidate stopped, as reported by the model service."""

    UNSPECIFIED = 0
    STOP = 1
    MAX_TOKENS = 2
    SAFETY = 3
    RECITATION = 4
    OTHER = 5
    BLOCKLIST = 6
    PROHIBITED_CONTENT = 7
    SPII = 8
    MALFORMED_FUNCTION_CALL = 9


# Anything else ends the round.
ACCEPTABLE_FINISH_REASONS = frozenset({FinishReason.UNSPECIFIED, FinishReason.STOP})


def is_acceptable_finish_reason(code: int) -> bool:
    return code in ACCEPTABLE_FINISH_REASONS


class GenerationError(Exception):
    """The generation request or its stream failed."""

    pass


@dataclass(frozen=True, slots=True)
class Candidate:
    """
    One candidate of a streamed response.

    Attributes:
        finish_reason: Raw integer status code
        content: Partial model turn, if the chunk carried any
    """

    finish_reason: int = FinishReason.UNSPECIFIED
    content: "Turn | None" = None


@dataclass(frozen=True, slots=True)
class GenerationChunk:
    """One incrementally produced response. candidate may be absent."""

    candidate: Candidate | None = None


@runtime_checkable
class GenerationClient(Protocol):
    """
    Protocol for generation clients.

    Implementations must provide:
    - name: Client identifier for logging
    - stream_generate(): Start a streamed generation over the history
    """

    @property
    def name(self) -> str:
        ...

    async def stream_generate(self, history: Sequence[Turn]) -> AsyncIterator[GenerationChunk]:
        """
        Start generation over history.

        Args:
            history: Full ordered turn history

        Returns:
            Async iterator of GenerationChunk

        Raises:
            GenerationError: If the request itself fails
        """
        ...


__all__ = [
    "ACCEPTABLE_FINISH_REASONS",
    "Candidate",
    "FinishReason",
    "GenerationChunk",
    "GenerationClient",
    "GenerationError",
    "is_acceptable_finish_reason",
]
