"""Name-keyed registries: tools by tool name, gateway classes by provider."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Generic, TypeVar

from switchboard.types import SwitchboardError

T = TypeVar("T")


class RegistryError(SwitchboardError):
    """Raised when a name is registered twice or looked up but absent."""


class Registry(Generic[T]):
    """Insertion-ordered store of uniquely named items.

    Subclasses set ``duplicate_error`` / ``missing_error`` to raise narrower
    errors than ``RegistryError``.

    Args:
        kind: What the registry holds, used in error messages
            (e.g. ``"tool"``, ``"provider"``).
    """

    duplicate_error: type[RegistryError] = RegistryError
    missing_error: type[RegistryError] = RegistryError

    def __init__(self, kind: str = "item") -> None:
        self.kind = kind
        self._items: dict[str, T] = {}

    def _set(self, name: str, item: T) -> T:
        if name in self._items:
            raise self.duplicate_error(f"{self.kind} '{name}' is already registered")
        self._items[name] = item
        return item

    def register(self, name: str, item: T | None = None) -> Any:
        """Add *item* under *name*; without *item*, return a decorator that does.

        Raises:
            RegistryError: If *name* is taken.
        """
        if item is not None:
            return self._set(name, item)
        return lambda obj: self._set(name, obj)

    def get(self, name: str) -> T:
        """Return the item registered as *name*.

        Raises:
            RegistryError: If nothing is registered under *name*.
        """
        try:
            return self._items[name]
        except KeyError:
            known = ", ".join(self._items) or "none"
            raise self.missing_error(
                f"unknown {self.kind} '{name}' (registered: {known})"
            ) from None

    def names(self) -> list[str]:
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, names={self.names()})"
