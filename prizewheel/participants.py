"""Participant records and the store that owns them."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Mapping, Optional

from .exceptions import NegativeTicketsError, ParticipantNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class Participant:
    """A person entered into the draw.

    Attributes
    ----------
    id : int
        Stable identifier, unique within a :class:`ParticipantStore`.
    name : str
        Display name. Also the value placed in the weighted pool.
    tickets : int
        Remaining draw tickets. Never negative.
    """

    id: int
    name: str
    tickets: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError("name must be a string")
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("name must not be empty")
        if isinstance(self.tickets, bool) or not isinstance(self.tickets, int):
            raise TypeError("tickets must be an integer")
        if self.tickets < 0:
            raise NegativeTicketsError()

    def to_json(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Participant":
        return cls(id=int(data["id"]), name=data["name"], tickets=int(data["tickets"]))


class ParticipantStore:
    """Ordered collection of :class:`Participant` records.

    The store keeps insertion order, which is also the order names appear
    in the weighted pool and on the wheel.
    """

    def __init__(self, participants: Optional[Iterable[Participant]] = None) -> None:
        self._participants: list[Participant] = []
        if participants is not None:
            self.replace_all(participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants)

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        return any(p.id == participant_id for p in self._participants)

    def all(self) -> list[Participant]:
        """Return a shallow copy of the participants in storage order."""
        return list(self._participants)

    def replace_all(self, participants: Iterable[Participant]) -> None:
        """Swap the whole roster, rejecting duplicate ids."""
        incoming = list(participants)
        seen: set[int] = set()
        for participant in incoming:
            if participant.id in seen:
                raise ValueError(f"Duplicate participant id {participant.id}")
            seen.add(participant.id)
        self._participants = incoming

    def next_id(self) -> int:
        return max((p.id for p in self._participants), default=0) + 1

    def get(self, participant_id: int) -> Participant:
        for participant in self._participants:
            if participant.id == participant_id:
                return participant
        raise ParticipantNotFoundError(f"Participant not found: {participant_id}")

    def find_by_name(self, name: str) -> Optional[Participant]:
        """Return the first participant called ``name``, if any."""
        for participant in self._participants:
            if participant.name == name:
                return participant
        return None

    def search(self, term: str) -> list[Participant]:
        """Case-insensitive substring filter on names; a blank term matches all."""
        needle = term.strip().lower()
        if not needle:
            return self.all()
        return [p for p in self._participants if needle in p.name.lower()]

    def add(self, name: str, tickets: int = 1) -> Participant:
        """Append a new participant with the next free id.

        Parameters
        ----------
        name : str
            Display name; surrounding whitespace is stripped.
        tickets : int, default: 1
            Initial ticket count.

        Returns
        -------
        Participant
            The newly created record.
        """
        participant = Participant(id=self.next_id(), name=name, tickets=tickets)
        self._participants.append(participant)
        logger.debug(f"Added participant {participant.id} ({participant.name})")
        return participant

    def remove(self, participant_id: int) -> Participant:
        participant = self.get(participant_id)
        self._participants.remove(participant)
        logger.debug(f"Removed participant {participant.id} ({participant.name})")
        return participant

    def adjust_tickets(self, participant_id: int, delta: int) -> Participant:
        """Add ``delta`` (possibly negative) to a participant's tickets.

        Raises
        ------
        ParticipantNotFoundError
            If no participant has ``participant_id``.
        NegativeTicketsError
            If the result would drop below zero. Nothing is changed.
        """
        participant = self.get(participant_id)
        new_tickets = participant.tickets + delta
        if new_tickets < 0:
            raise NegativeTicketsError()
        participant.tickets = new_tickets
        return participant

    def consume_ticket(self, name: str) -> Optional[Participant]:
        """Take one ticket from the first participant called ``name``.

        A missing participant or one already at zero is left alone; the
        caller still records the win.
        """
        participant = self.find_by_name(name)
        if participant is None:
            logger.warning(f"Winner {name!r} is no longer listed; no ticket deducted")
            return None
        if participant.tickets > 0:
            participant.tickets -= 1
        else:
            logger.warning(f"Winner {name!r} has no tickets left to deduct")
        return participant

    def to_json(self) -> list[dict[str, Any]]:
        return [p.to_json() for p in self._participants]


__all__ = ["Participant", "ParticipantStore"]
