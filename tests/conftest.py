"""
Pytest configuration and fixtures for fschat tests.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from fschat.agent import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from fschat.conversation import FunctionCall, Part, Text, Turn, value_from_json  # noqa: E402
from fschat.providers.llm import Candidate, FinishReason, GenerationChunk  # noqa: E402


class ScriptedClient:
    """
    Generation client that replays scripted rounds.

    Each round is either an Exception (the request fails) or a list of
    stream items. A stream item is a GenerationChunk, an Exception (the
    stream fails there), or an asyncio.Event to wait on.
    """

    def __init__(self, rounds):
        self._rounds = list(rounds)
        self.requests = []

    @property
    def name(self) -> str:
        return "scripted"

    async def stream_generate(self, history):
        self.requests.append(list(history))
        if not self._rounds:
            raise AssertionError("No scripted round left")
        script = self._rounds.pop(0)
        if isinstance(script, Exception):
            raise script
        return self._stream(script)

    async def _stream(self, items):
        for item in items:
            if isinstance(item, asyncio.Event):
                await item.wait()
                continue
            if isinstance(item, Exception):
                raise item
            yield item


def chunk(turn=None, finish_reason=FinishReason.STOP):
    """A chunk with one candidate."""
    return GenerationChunk(candidate=Candidate(finish_reason=finish_reason, content=turn))


def model_text(text):
    return Turn.model([Part(Text(text))])


def model_calls(*calls):
    return Turn.model([Part(call) for call in calls])


def call(call_id, name, args=None):
    return FunctionCall(
        id=call_id,
        name=name,
        args=value_from_json(args) if args is not None else None,
    )


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient instances."""
    return ScriptedClient


@pytest.fixture
def user_turn():
    """Sample user turn."""
    return Turn.user([Part.text("What is in my home directory?")])


@pytest.fixture
def sample_tree(tmp_path):
    """
    Small directory tree:

        a.txt, notes.md, .hidden, sub/b.txt, sub/deep/c.txt
    """
    (tmp_path / "a.txt").write_text("alpha\n")
    (tmp_path / "notes.md").write_text("# notes\n")
    (tmp_path / ".hidden").write_text("secret\n")
    (tmp_path / "sub" / "deep").mkdir(parents=True)
    (tmp_path / "sub" / "b.txt").write_text("bravo\n")
    (tmp_path / "sub" / "deep" / "c.txt").write_text("charlie\n")
    return tmp_path
