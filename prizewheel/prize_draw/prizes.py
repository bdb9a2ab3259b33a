"""Prize rounds offered by the wheel and their display labels."""

from __future__ import annotations

DEFAULT_PRIZE = "特獎（四）"

# Ordered from the last round drawn to the first.
PRIZE_TRANSLATIONS: dict[str, str] = {
    "特獎（四）": "Special Prize (4)",
    "特獎（三）": "Special Prize (3)",
    "特獎（二）": "Special Prize (2)",
    "特獎（一）": "Special Prize (1)",
    "五獎": "Fifth Prize",
    "四獎": "Fourth Prize",
    "三獎": "Third Prize",
    "二獎": "Second Prize",
    "大獎": "Grand Prize",
    "首獎": "First Prize",
}


def prize_rounds() -> list[str]:
    """Return the known prize labels in drawing order."""
    return list(PRIZE_TRANSLATIONS)


def display_prize(prize: str) -> str:
    """Return ``prize`` followed by its English name when one is known.

    Free-form labels are returned unchanged.
    """
    english = PRIZE_TRANSLATIONS.get(prize)
    return f"{prize} {english}" if english else prize


def normalize_prize(prize: str) -> str:
    if not isinstance(prize, str):
        raise TypeError("prize must be a string")
    label = prize.strip()
    if not label:
        raise ValueError("prize must not be empty")
    return label


__all__ = [
    "DEFAULT_PRIZE",
    "PRIZE_TRANSLATIONS",
    "display_prize",
    "normalize_prize",
    "prize_rounds",
]
