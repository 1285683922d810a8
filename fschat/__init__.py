"""
fschat - a filesystem-aware chat agent.

fschat relays a multi-turn conversation between a client and a Gemini
model, streaming every turn as it is produced and executing the model's
filesystem tool calls (search_fs, read_fs) between generation rounds.

- **Conversation**: Turn/Part data model and a lock-protected history
- **Agent Loop**: round-based streaming with tool dispatch
- **Tools**: glob search with permission strings, whole-file read
- **App**: FastAPI service with a Server-Sent-Events chat endpoint

Quick Start:
    >>> from fschat import AgentLoop, ConversationStore, OutputChannel, Part, Turn
    >>> from fschat.tools import create_default_registry
    >>>
    >>> loop = AgentLoop(client=client, tools=create_default_registry(), store=ConversationStore())
    >>> channel = OutputChannel()
    >>> await loop.process(Turn.user([Part.text("What is in /etc?")]), channel)
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports for convenient imports
from fschat.agent import AgentLoop, OutputChannel
from fschat.conversation import ConversationStore, Part, SessionStore, Turn
from fschat.tools import ToolRegistry, create_default_registry

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Core
    "AgentLoop",
    "OutputChannel",
    "ConversationStore",
    "SessionStore",
    "Part",
    "Turn",
    "ToolRegistry",
    "create_default_registry",
]
