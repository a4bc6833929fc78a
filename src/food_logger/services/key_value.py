"""Simple key-value storage abstractions."""

from dataclasses import dataclass
from typing import Protocol


class KeyValueStore(Protocol):
    """Async string key-value storage."""

    async def get_item(self, key: str) -> str | None:
        """Return the stored value for a key, if any."""

    async def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""

    async def remove_item(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key-value store."""

    _items: dict[str, str]

    def __init__(self) -> None:
        self._items = {}

    async def get_item(self, key: str) -> str | None:
        """Return the stored value for a key."""
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Store a value under a key."""
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        """Remove a key if present."""
        self._items.pop(key, None)
