"""Thread store protocol.

A thread store maps opaque thread ids to immutable ``Thread`` snapshots.
Implementations must make ``append`` atomic per thread id and keep
distinct thread ids independent.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from switchboard.types import Message, SwitchboardError, Thread


class MemoryError(SwitchboardError):
    """Base exception for thread memory operations."""


@runtime_checkable
class ThreadStore(Protocol):
    """Protocol for per-thread conversation stores."""

    async def load(self, thread_id: str) -> Thread:
        """Return the thread, creating it with the default agent if absent."""
        ...

    async def append(
        self,
        thread_id: str,
        messages: Sequence[Message],
        *,
        active_agent: str | None = None,
    ) -> Thread:
        """Atomically append *messages* and optionally move the active agent."""
        ...

    def get(self, thread_id: str) -> Thread | None:
        """Return the thread if it exists, without creating it."""
        ...
