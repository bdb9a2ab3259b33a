"""Weighted pool construction and uniform ticket selection."""

from __future__ import annotations

import random
from typing import Iterable, Optional, Sequence

from ..exceptions import TicketsExhaustedError
from ..participants import Participant


def build_weighted_pool(participants: Iterable[Participant]) -> list[str]:
    """Flatten ``participants`` into one entry per ticket.

    Parameters
    ----------
    participants : Iterable[Participant]
        Participants in display order.

    Returns
    -------
    list[str]
        Names in participant order, each repeated ``tickets`` times.
        Participants holding no tickets contribute nothing.

    Notes
    -----
    Drawing uniformly from this list gives every *ticket* the same chance,
    so a participant's odds are proportional to their ticket count.
    """

    pool: list[str] = []
    for participant in participants:
        pool.extend([participant.name] * participant.tickets)
    return pool


def total_tickets(participants: Iterable[Participant]) -> int:
    """Return the number of tickets still in play."""
    return sum(participant.tickets for participant in participants)


def draw_winner_index(
    pool: Sequence[str], rng: Optional[random.Random] = None
) -> int:
    """Pick a pool position uniformly at random.

    Parameters
    ----------
    pool : Sequence[str]
        Weighted pool produced by :func:`build_weighted_pool`.
    rng : Optional[random.Random], default: None
        Random source. The module-level generator is used when omitted.

    Raises
    ------
    TicketsExhaustedError
        If ``pool`` is empty.
    """

    if not pool:
        raise TicketsExhaustedError()
    source = rng if rng is not None else random
    return source.randrange(len(pool))


def draw_winner(pool: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Return the name at a uniformly chosen pool position."""
    return pool[draw_winner_index(pool, rng)]


__all__ = [
    "build_weighted_pool",
    "draw_winner",
    "draw_winner_index",
    "total_tickets",
]
