"""Tests for switchboard.hooks — async lifecycle hooks."""

from __future__ import annotations

from typing import Any

import pytest

from switchboard.hooks import HookManager, HookPoint


class TestHookManager:
    async def test_run_in_registration_order(self) -> None:
        calls: list[str] = []
        manager = HookManager()

        async def first(**data: Any) -> None:
            calls.append(f"first:{data['agent']}")

        async def second(**data: Any) -> None:
            calls.append(f"second:{data['agent']}")

        manager.add(HookPoint.TURN_START, first)
        manager.add(HookPoint.TURN_START, second)
        await manager.run(HookPoint.TURN_START, agent="general")

        assert calls == ["first:general", "second:general"]

    async def test_run_without_hooks(self) -> None:
        await HookManager().run(HookPoint.HANDOFF, source="a", target="b")

    async def test_remove(self) -> None:
        calls: list[int] = []
        manager = HookManager()

        async def hook(**data: Any) -> None:
            calls.append(1)

        manager.add(HookPoint.WARNING, hook)
        manager.remove(HookPoint.WARNING, hook)
        manager.remove(HookPoint.WARNING, hook)
        await manager.run(HookPoint.WARNING)

        assert calls == []
        assert not manager.has_hooks(HookPoint.WARNING)

    async def test_exceptions_propagate(self) -> None:
        manager = HookManager()

        async def bad(**data: Any) -> None:
            raise RuntimeError("hook failed")

        manager.add(HookPoint.ERROR, bad)
        with pytest.raises(RuntimeError, match="hook failed"):
            await manager.run(HookPoint.ERROR)

    async def test_on_decorator(self) -> None:
        calls: list[str] = []
        manager = HookManager()

        @manager.on(HookPoint.HANDOFF)
        async def on_handoff(*, source: str, target: str) -> None:
            calls.append(f"{source}->{target}")

        await manager.run(HookPoint.HANDOFF, source="general", target="tech")
        assert calls == ["general->tech"]
        assert manager.has_hooks(HookPoint.HANDOFF)

    def test_clear(self) -> None:
        manager = HookManager()

        async def hook(**data: Any) -> None:
            pass

        manager.add(HookPoint.TURN_END, hook)
        assert manager.has_hooks(HookPoint.TURN_END)
        manager.clear()
        assert not manager.has_hooks(HookPoint.TURN_END)
