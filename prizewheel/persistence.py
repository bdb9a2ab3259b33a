"""Saving and restoring the wheel's state in a local key-value store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .exceptions import PersistenceError
from .ledger import WinnerRecord
from .models import KeyValueEntry
from .participants import Participant
from .prize_draw.prizes import DEFAULT_PRIZE

logger = logging.getLogger(__name__)

STORAGE_KEY = "iss_spring_feast_2026"


@dataclass
class PersistedState:
    """Everything that survives a restart.

    The draw session is deliberately absent: an interrupted draw is simply
    forgotten.
    """

    participants: list[Participant] = field(default_factory=list)
    winners: list[WinnerRecord] = field(default_factory=list)
    current_prize: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "participants": [p.to_json() for p in self.participants],
            "winners": [w.to_json() for w in self.winners],
            "currentPrize": self.current_prize or DEFAULT_PRIZE,
        }

    def to_json_str(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, data: Any) -> "PersistedState":
        """Rebuild a state from its JSON form.

        Missing sections fall back to their defaults, except a missing
        ``currentPrize`` which is left as ``None`` for the caller to fill in.
        Anything structurally wrong raises :class:`PersistenceError`.
        """
        if not isinstance(data, dict):
            raise PersistenceError("Stored state is not a JSON object")
        try:
            participants = [
                Participant.from_json(item) for item in data.get("participants") or []
            ]
            winners = [WinnerRecord.from_json(item) for item in data.get("winners") or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Malformed stored state: {exc}") from exc
        current_prize = data.get("currentPrize")
        if current_prize is not None and not isinstance(current_prize, str):
            raise PersistenceError("Malformed stored state: currentPrize is not a string")
        if len({p.id for p in participants}) != len(participants):
            raise PersistenceError("Malformed stored state: duplicate participant ids")
        return cls(participants=participants, winners=winners, current_prize=current_prize or None)

    @classmethod
    def from_json_str(cls, payload: str) -> "PersistedState":
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise PersistenceError(f"Stored state is not valid JSON: {exc}") from exc
        return cls.from_json(data)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dictionary-backed store, handy for tests and throwaway sessions."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlKeyValueStore:
    """Key-value store kept in the ``kv_store`` table.

    Every call runs in its own short transaction. Driver errors surface as
    :class:`PersistenceError`.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                entry = KeyValueEntry.get_by_key(session, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read key {key!r}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_factory.begin() as session:
                entry = KeyValueEntry.get_by_key(session, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write key {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to delete key {key!r}: {exc}") from exc


class StateRepository:
    """Reads and writes :class:`PersistedState` under a single storage key."""

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> Optional[PersistedState]:
        """Return the saved state, or ``None`` when nothing was saved yet.

        Raises
        ------
        PersistenceError
            If the store fails or the payload cannot be decoded.
        """
        payload = self.store.get(self.key)
        if payload is None:
            logger.debug(f"No saved state under {self.key!r}")
            return None
        return PersistedState.from_json_str(payload)

    def save(self, state: PersistedState) -> None:
        self.store.set(self.key, state.to_json_str())
        logger.debug(f"State saved under {self.key!r}")

    def delete(self) -> None:
        self.store.delete(self.key)


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistedState",
    "SqlKeyValueStore",
    "STORAGE_KEY",
    "StateRepository",
]
