from __future__ import annotations

from prizewheel.exceptions import PersistenceError
from prizewheel.persistence import MemoryKeyValueStore


class FixedPick:
    """Stand-in random source that always returns the same pool index."""

    def __init__(self, index: int) -> None:
        self.index = index
        self.calls: list[int] = []

    def randrange(self, stop: int) -> int:
        self.calls.append(stop)
        return self.index


class FailingStore(MemoryKeyValueStore):
    """Reads work, writes fail, like a browser store over quota."""

    def set(self, key: str, value: str) -> None:
        raise PersistenceError("quota exceeded")

    def delete(self, key: str) -> None:
        raise PersistenceError("quota exceeded")


class BrokenStore(MemoryKeyValueStore):
    def get(self, key: str):
        raise PersistenceError("store unavailable")
