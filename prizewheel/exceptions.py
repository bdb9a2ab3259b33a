"""Exception hierarchy shared by the prize wheel modules."""

from __future__ import annotations

from typing import Optional


class PrizeWheelError(Exception):
    """Base class for every error raised by :mod:`prizewheel`."""


class DrawPreconditionError(PrizeWheelError, ValueError):
    """An action was attempted while its preconditions were not met.

    These are never fatal. :class:`~prizewheel.workflows.PrizeWheel` reports
    them to the user and leaves the state untouched.
    """

    message = "Action rejected"

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or self.message)


class DrawInProgressError(DrawPreconditionError):
    message = "Drawing in progress"


class TicketsExhaustedError(DrawPreconditionError):
    message = "All tickets used"


class NegativeTicketsError(DrawPreconditionError):
    message = "Ticket count cannot be negative"


class ParticipantNotFoundError(DrawPreconditionError):
    message = "Participant not found"


class WinnerNotFoundError(DrawPreconditionError):
    message = "Record not found"


class PrizeLockedError(DrawPreconditionError):
    message = "Prize cannot be changed during a draw"


class InvalidTransitionError(DrawPreconditionError):
    message = "Invalid draw transition"


class PersistenceError(PrizeWheelError, RuntimeError):
    """The key-value store could not be read or written."""


class RosterImportError(PrizeWheelError, RuntimeError):
    """The participant roster could not be fetched or parsed."""


__all__ = [
    "PrizeWheelError",
    "DrawPreconditionError",
    "DrawInProgressError",
    "TicketsExhaustedError",
    "NegativeTicketsError",
    "ParticipantNotFoundError",
    "WinnerNotFoundError",
    "PrizeLockedError",
    "InvalidTransitionError",
    "PersistenceError",
    "RosterImportError",
]
