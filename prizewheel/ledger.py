"""Record of confirmed winners."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

from .exceptions import WinnerNotFoundError


@dataclass(frozen=True)
class WinnerRecord:
    """A confirmed win for ``name`` in the prize round ``prize``."""

    prize: str
    name: str

    def to_json(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "WinnerRecord":
        return cls(prize=str(data["prize"]), name=str(data["name"]))


class WinnerLedger:
    """Winner records kept in insertion order.

    Display order is most recent first, but every index accepted or returned
    by this class refers to the storage (insertion) order.
    """

    def __init__(self, records: Optional[Iterable[WinnerRecord]] = None) -> None:
        self._records: list[WinnerRecord] = list(records or [])

    def __iter__(self) -> Iterator[WinnerRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> WinnerRecord:
        return self._records[index]

    def all(self) -> list[WinnerRecord]:
        return list(self._records)

    def append(self, record: WinnerRecord) -> None:
        self._records.append(record)

    def remove_at(self, index: int) -> WinnerRecord:
        """Delete the record at storage position ``index``.

        Negative indices are not accepted, unlike ``list.pop``.
        """
        if index < 0 or index >= len(self._records):
            raise WinnerNotFoundError(f"Record not found: {index}")
        return self._records.pop(index)

    def clear(self) -> None:
        self._records.clear()

    def display_order(self) -> list[tuple[int, WinnerRecord]]:
        """Return ``(storage_index, record)`` pairs, most recent first."""
        return [
            (index, self._records[index])
            for index in range(len(self._records) - 1, -1, -1)
        ]

    def to_json(self) -> list[dict[str, Any]]:
        return [record.to_json() for record in self._records]


__all__ = ["WinnerRecord", "WinnerLedger"]
