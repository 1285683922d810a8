"""
fschat Agent Layer.

- AgentLoop: round-based generation with transparent tool execution
- OutputChannel: bounded per-request event queue to the transport

Architecture:
    client turn ──► ConversationStore
                          │
                    ┌─────▼──────────────────────────────┐
                    │ AgentLoop round (store locked)      │
                    │   history ──► GenerationClient      │
                    │   model turn ──► store + channel    │
                    │   function calls ──► ToolRegistry   │
                    │   tool turn ──► store + channel     │
                    └─────┬──────────────────────────────┘
                          │ repeat while tools were called
                          ▼
                    OutputChannel ──► transport (SSE)
"""

from .channel import DEFAULT_CAPACITY, OutputChannel, format_sse, serialize_turn
from .loop import AgentLoop

__all__ = [
    "AgentLoop",
    "DEFAULT_CAPACITY",
    "OutputChannel",
    "format_sse",
    "serialize_turn",
]
