"""
Conversation Store.

Holds the ordered turn history of a conversation behind an asyncio lock.

Two ways in:
    - append()/snapshot(): short, lock-scoped operations
    - exclusive(): holds the lock for a whole agent round, including the
      network stream and tool execution, so rounds are strictly serialized

Turns appended through exclusive() are staged and only become part of the
history when the round commits. A round that aborts leaves the history
exactly as it was when the round started.

Usage:
    store = ConversationStore()
    await store.append(Turn.user([Part.text("hi")]))

    async with store.exclusive() as history:
        turns = history.turns()
        history.append(model_turn)
        history.commit()

    sessions = SessionStore()
    store = sessions.get("user-123")
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .turn import Turn

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"


class LockedHistory:
    """
    View of a ConversationStore while its lock is held.

    Appends are staged until commit(); turns() includes staged turns so the
    next generation request of the same round sees them.
    """

    def __init__(self, committed: list[Turn]) -> None:
        self._committed = committed
        self._staged: list[Turn] = []

    def turns(self) -> list[Turn]:
        """Consistent copy of all turns, staged ones included."""
        return [*self._committed, *self._staged]

    def append(self, turn: Turn) -> None:
        self._staged.append(turn)

    @property
    def staged(self) -> tuple[Turn, ...]:
        return tuple(self._staged)

    def commit(self) -> int:
        """Move staged turns into the history. Returns how many were added."""
        count = len(self._staged)
        self._committed.extend(self._staged)
        self._staged.clear()
        return count

    def rollback(self) -> int:
        """Discard staged turns. Returns how many were dropped."""
        count = len(self._staged)
        self._staged.clear()
        return count


class ConversationStore:
    """
    Append-only, lock-protected turn history.

    The history grows by append only; it is never truncated or mutated
    in place.
    """

    def __init__(self, session_id: str = DEFAULT_SESSION) -> None:
        self.session_id = session_id
        self._turns: list[Turn] = []
        self._lock = asyncio.Lock()

    async def append(self, turn: Turn) -> None:
        """Add a turn to the tail of the history."""
        async with self._lock:
            self._turns.append(turn)
        logger.debug(
            f"[conversation_store] Appended {turn.role.value} turn "
            f"to session {self.session_id} ({len(self._turns)} turns)"
        )

    async def snapshot(self) -> list[Turn]:
        """
        Independent copy of the full ordered history.

        Turns are immutable down to their values, so copying the list is
        enough to keep readers from altering the stored history.
        """
        async with self._lock:
            return list(self._turns)

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[LockedHistory]:
        """
        Hold the lock for a full round.

        Staged turns that were neither committed nor rolled back are
        discarded on exit, and always on an exception.
        """
        async with self._lock:
            history = LockedHistory(self._turns)
            try:
                yield history
            finally:
                dropped = history.rollback()
                if dropped:
                    logger.info(
                        f"[conversation_store] Discarded {dropped} uncommitted "
                        f"turn(s) in session {self.session_id}"
                    )

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def __len__(self) -> int:
        return len(self._turns)

    def __repr__(self) -> str:
        return f"<ConversationStore session={self.session_id!r} turns={len(self._turns)}>"


class SessionStore:
    """
    Maps session ids to their own ConversationStore.

    Stores are created on first access and live for the process lifetime.
    """

    def __init__(self) -> None:
        self._stores: dict[str, ConversationStore] = {}

    def get(self, session_id: str = DEFAULT_SESSION) -> ConversationStore:
        store = self._stores.get(session_id)
        if store is None:
            store = ConversationStore(session_id)
            self._stores[session_id] = store
            logger.info(f"[session_store] Created session {session_id}")
        return store

    def list_sessions(self) -> list[str]:
        return list(self._stores.keys())

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._stores

    def __len__(self) -> int:
        return len(self._stores)


__all__ = [
    "DEFAULT_SESSION",
    "ConversationStore",
    "LockedHistory",
    "SessionStore",
]
