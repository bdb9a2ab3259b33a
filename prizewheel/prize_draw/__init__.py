"""Weighted draw engine and draw lifecycle."""

from .pool import build_weighted_pool, draw_winner, draw_winner_index, total_tickets
from .prizes import DEFAULT_PRIZE, display_prize, normalize_prize, prize_rounds
from .scheduler import EventScheduler
from .session import DrawOutcome, DrawPhase, DrawSession

__all__ = [
    "DEFAULT_PRIZE",
    "DrawOutcome",
    "DrawPhase",
    "DrawSession",
    "EventScheduler",
    "build_weighted_pool",
    "display_prize",
    "draw_winner",
    "draw_winner_index",
    "normalize_prize",
    "prize_rounds",
    "total_tickets",
]
