"""ConversationSession: the entry point that ties router and memory together.

``send()`` runs one turn for a thread: load, route, commit. A turn either
commits every message it produced plus the new active agent, or nothing
at all (router failure, gateway failure, cancellation).

Usage::

    session = ConversationSession(router)
    result = await session.send("customer_123", "My app is broken")
    print(result.active_agent, result.reply)
"""

from __future__ import annotations

import asyncio

from switchboard.config import SessionConfig
from switchboard.memory.base import ThreadStore
from switchboard.memory.thread_memory import ThreadMemory
from switchboard.observability.logging import LogContext, get_logger
from switchboard.router import HandoffRouter
from switchboard.types import Message, SendResult, SwitchboardError

_log = get_logger(__name__)


class ThreadBusyError(SwitchboardError):
    """Raised when a thread already has a turn in flight (reject policy). Retryable."""

    def __init__(self, thread_id: str) -> None:
        self.thread_id = thread_id
        super().__init__(f"Thread '{thread_id}' already has a turn in flight")


class ConversationSession:
    """Serialises turns per thread and commits them all-or-nothing.

    Args:
        router: The router that runs each turn.
        memory: Thread store; defaults to an in-memory store whose default
            agent is the router's.
        config: Same-thread concurrency policy.
    """

    def __init__(
        self,
        router: HandoffRouter,
        memory: ThreadStore | None = None,
        config: SessionConfig | None = None,
    ) -> None:
        self.router = router
        self.memory: ThreadStore = (
            memory if memory is not None else ThreadMemory(router.default_agent)
        )
        self.config = config if config is not None else SessionConfig()
        self._turn_locks: dict[str, asyncio.Lock] = {}

    def _turn_lock(self, thread_id: str) -> asyncio.Lock:
        lock = self._turn_locks.get(thread_id)
        if lock is None:
            lock = self._turn_locks[thread_id] = asyncio.Lock()
        return lock

    async def send(self, thread_id: str, user_text: str) -> SendResult:
        """Run one turn for *thread_id* with *user_text*.

        Returns:
            The final reply and the agent now active on the thread.

        Raises:
            ThreadBusyError: If the thread is busy and the policy is ``"reject"``.
            RoutingLoopExceededError: If the router hits its iteration bound.
            CompletionError: If the gateway fails.
        """
        lock = self._turn_lock(thread_id)
        if self.config.busy_policy == "reject" and lock.locked():
            _log.info("rejecting send on busy thread %s", thread_id)
            raise ThreadBusyError(thread_id)

        with LogContext(thread_id=thread_id):
            async with lock:
                thread = await self.memory.load(thread_id)
                user = Message.user(user_text)
                _log.info(
                    "turn start: agent=%s history=%d", thread.active_agent, len(thread.messages)
                )
                try:
                    outcome = await self.router.run(
                        [*thread.messages, user], active_agent=thread.active_agent
                    )
                except Exception as exc:
                    _log.warning("turn failed, nothing committed: %s", exc)
                    raise
                await self.memory.append(
                    thread_id, [user, *outcome.messages], active_agent=outcome.active_agent
                )
                if outcome.active_agent != thread.active_agent:
                    _log.info("active agent %s -> %s", thread.active_agent, outcome.active_agent)
                return SendResult(
                    reply=outcome.reply,
                    active_agent=outcome.active_agent,
                    thread_id=thread_id,
                    warnings=outcome.warnings,
                )

    async def history(self, thread_id: str) -> tuple[Message, ...]:
        """Return the committed messages of *thread_id*; empty for an unknown thread."""
        thread = self.memory.get(thread_id)
        return thread.messages if thread is not None else ()

    async def active_agent(self, thread_id: str) -> str:
        """Return the agent that will receive the next message on *thread_id*."""
        thread = self.memory.get(thread_id)
        return thread.active_agent if thread is not None else self.router.default_agent
