"""
Generation Clients for fschat.

- GenerationClient: streaming protocol the agent loop consumes
- GeminiGenerationClient: Google Gemini implementation
"""

from .base import (
    ACCEPTABLE_FINISH_REASONS,
    Candidate,
    FinishReason,
    GenerationChunk,
    GenerationClient,
    GenerationError,
    is_acceptable_finish_reason,
)
from .gemini import GeminiGenerationClient

__all__ = [
    # Protocol and types
    "ACCEPTABLE_FINISH_REASONS",
    "Candidate",
    "FinishReason",
    "GenerationChunk",
    "GenerationClient",
    "GenerationError",
    "is_acceptable_finish_reason",
    # Gemini
    "GeminiGenerationClient",
]
