"""
fschat Providers.

Remote services the conversation depends on. Currently only the
generation client (see fschat.providers.llm).
"""

from .llm import (
    Candidate,
    FinishReason,
    GeminiGenerationClient,
    GenerationChunk,
    GenerationClient,
    GenerationError,
)

__all__ = [
    "Candidate",
    "FinishReason",
    "GeminiGenerationClient",
    "GenerationChunk",
    "GenerationClient",
    "GenerationError",
]
