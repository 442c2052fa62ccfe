"""Switchboard memory: per-thread conversation history."""

from switchboard.memory.base import MemoryError, ThreadStore
from switchboard.memory.thread_memory import ThreadMemory

__all__ = ["MemoryError", "ThreadMemory", "ThreadStore"]
