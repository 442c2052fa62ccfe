"""In-memory thread store for the process lifetime."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from switchboard.memory.base import MemoryError
from switchboard.observability.logging import get_logger
from switchboard.types import Message, Thread

_log = get_logger(__name__)


class ThreadMemory:
    """Append-only message log plus active-agent pointer per thread id.

    Each thread is held as an immutable ``Thread`` snapshot that ``append``
    replaces in one step, so readers never see a partially appended
    history. Every thread id gets its own lock; different thread ids share
    nothing but the lookup dicts.

    Args:
        default_agent: Agent assigned to threads on first use.
    """

    __slots__ = ("_default_agent", "_locks", "_threads")

    def __init__(self, default_agent: str) -> None:
        if not default_agent:
            raise MemoryError("ThreadMemory needs a default agent")
        self._default_agent = default_agent
        self._threads: dict[str, Thread] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def default_agent(self) -> str:
        return self._default_agent

    def _lock(self, thread_id: str) -> asyncio.Lock:
        if not thread_id:
            raise MemoryError("thread_id must be a non-empty string")
        lock = self._locks.get(thread_id)
        if lock is None:
            lock = self._locks[thread_id] = asyncio.Lock()
        return lock

    async def load(self, thread_id: str) -> Thread:
        """Return the thread snapshot, creating an empty one if absent."""
        async with self._lock(thread_id):
            thread = self._threads.get(thread_id)
            if thread is None:
                thread = Thread(thread_id=thread_id, active_agent=self._default_agent)
                self._threads[thread_id] = thread
                _log.debug("created thread %s (agent=%s)", thread_id, self._default_agent)
            return thread

    async def append(
        self,
        thread_id: str,
        messages: Sequence[Message],
        *,
        active_agent: str | None = None,
    ) -> Thread:
        """Append *messages* and optionally move the active agent, atomically.

        Returns:
            The new thread snapshot.
        """
        async with self._lock(thread_id):
            current = self._threads.get(thread_id) or Thread(
                thread_id=thread_id, active_agent=self._default_agent
            )
            updated = Thread(
                thread_id=thread_id,
                active_agent=active_agent or current.active_agent,
                messages=(*current.messages, *messages),
            )
            self._threads[thread_id] = updated
            _log.debug(
                "thread %s: +%d messages (total=%d, agent=%s)",
                thread_id,
                len(messages),
                len(updated.messages),
                updated.active_agent,
            )
            return updated

    def get(self, thread_id: str) -> Thread | None:
        return self._threads.get(thread_id)

    def thread_ids(self) -> list[str]:
        """Return known thread ids in creation order."""
        return list(self._threads)

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._threads

    def __len__(self) -> int:
        return len(self._threads)

    def __repr__(self) -> str:
        return f"ThreadMemory(default_agent={self._default_agent!r}, threads={len(self)})"
