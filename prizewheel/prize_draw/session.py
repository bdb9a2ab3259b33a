"""Lifecycle of a single draw."""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from ..exceptions import (
    DrawInProgressError,
    InvalidTransitionError,
    TicketsExhaustedError,
)
from ..participants import Participant
from .pool import build_weighted_pool, draw_winner_index, total_tickets

logger = logging.getLogger(__name__)


class DrawPhase(str, enum.Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


@dataclass(frozen=True)
class DrawOutcome:
    """Result fixed at the moment a draw starts.

    Attributes
    ----------
    index : int
        Winning position in the weighted pool. The presentation layer uses it
        to stop the wheel on the matching slice.
    name : str
        Winning participant name.
    pool_size : int
        Number of entries (tickets) the pick was made from.
    """

    index: int
    name: str
    pool_size: int


class DrawSession:
    """State machine guarding the draw lifecycle.

    ``IDLE --start--> SPINNING --finish_spin--> AWAITING_CONFIRMATION``, then
    back to ``IDLE`` through :meth:`confirm` or :meth:`reject`. The winner is
    chosen inside :meth:`start`; nothing that happens while the wheel spins
    can change it.
    """

    def __init__(self) -> None:
        self.phase: DrawPhase = DrawPhase.IDLE
        self.outcome: Optional[DrawOutcome] = None
        self.pending_winner_name: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.phase is DrawPhase.IDLE

    @property
    def is_locked(self) -> bool:
        """``True`` while the prize label and tickets must not change."""
        return not self.is_idle

    def start(
        self,
        participants: Iterable[Participant],
        rng: Optional[random.Random] = None,
    ) -> DrawOutcome:
        """Pick the winner and enter ``SPINNING``.

        Raises
        ------
        DrawInProgressError
            If another draw has not finished.
        TicketsExhaustedError
            If no participant holds a ticket. No winner is computed.
        """
        if not self.is_idle:
            raise DrawInProgressError()
        participants = list(participants)
        if total_tickets(participants) <= 0:
            raise TicketsExhaustedError()

        pool = build_weighted_pool(participants)
        index = draw_winner_index(pool, rng)
        self.outcome = DrawOutcome(index=index, name=pool[index], pool_size=len(pool))
        self.phase = DrawPhase.SPINNING
        logger.debug(f"Draw started: slot {index} of {len(pool)}")
        return self.outcome

    def finish_spin(self) -> str:
        """Reveal the already chosen winner once the animation is over."""
        if self.phase is not DrawPhase.SPINNING or self.outcome is None:
            raise InvalidTransitionError(f"Cannot finish spin while {self.phase.value}")
        self.pending_winner_name = self.outcome.name
        self.phase = DrawPhase.AWAITING_CONFIRMATION
        return self.pending_winner_name

    def confirm(self) -> str:
        """Accept the pending winner and return their name."""
        name = self._require_pending("confirm")
        self._reset()
        return name

    def reject(self) -> str:
        """Forfeit the pending winner and return their name."""
        name = self._require_pending("reject")
        self._reset()
        return name

    def _require_pending(self, action: str) -> str:
        if (
            self.phase is not DrawPhase.AWAITING_CONFIRMATION
            or self.pending_winner_name is None
        ):
            raise InvalidTransitionError(f"Cannot {action} while {self.phase.value}")
        return self.pending_winner_name

    def _reset(self) -> None:
        self.phase = DrawPhase.IDLE
        self.outcome = None
        self.pending_winner_name = None


__all__ = ["DrawOutcome", "DrawPhase", "DrawSession"]
