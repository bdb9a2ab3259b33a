"""Runtime settings read from the environment (and ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url
from .persistence import STORAGE_KEY
from .prize_draw.prizes import DEFAULT_PRIZE

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]

# 4 s of wheel animation followed by a 3.5 s pause before the reveal.
DEFAULT_SPIN_DELAY = 7.5


@dataclass(frozen=True)
class Settings:
    """Configuration for a :class:`~prizewheel.workflows.PrizeWheel` instance.

    Attributes
    ----------
    database_url : str
        SQLAlchemy URL of the key-value store.
    storage_key : str
        Key the whole state is saved under.
    roster_source : Optional[str]
        Path or URL of the default roster; ``None`` to use the seed list.
    default_prize : str
        Prize round selected when nothing is stored.
    spin_delay : float
        Seconds between starting a draw and revealing the winner.
    log_level : str
        Name of the root logging level used by the scripts.
    """

    database_url: str = "sqlite:///./dev.db"
    storage_key: str = STORAGE_KEY
    roster_source: Optional[str] = "data/name.csv"
    default_prize: str = DEFAULT_PRIZE
    spin_delay: float = DEFAULT_SPIN_DELAY
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from environment variables.

        Parameters
        ----------
        environ : Optional[Mapping[str, str]], default: None
            Mapping to read from instead of :data:`os.environ`.
        dotenv : bool, default: True
            Load ``.env`` first. Ignored when ``environ`` is given.

        Raises
        ------
        ValueError
            If ``PRIZEWHEEL_SPIN_DELAY`` is not a non-negative number.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        raw_delay = environ.get("PRIZEWHEEL_SPIN_DELAY")
        spin_delay = DEFAULT_SPIN_DELAY
        if raw_delay not in (None, ""):
            try:
                spin_delay = float(raw_delay)
            except ValueError as exc:
                raise ValueError(
                    f"PRIZEWHEEL_SPIN_DELAY must be a number, got {raw_delay!r}"
                ) from exc
            if spin_delay < 0:
                raise ValueError("PRIZEWHEEL_SPIN_DELAY must not be negative")

        roster = environ.get("PRIZEWHEEL_ROSTER", cls.roster_source)
        roster_source = _resolve_roster(roster) if roster else None

        log_level = environ.get("LOG_LEVEL", cls.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Unknown LOG_LEVEL {log_level!r}")

        return cls(
            database_url=resolve_sqlite_url(
                environ.get("DB_URL") or cls.database_url, ROOT_DIR
            ),
            storage_key=environ.get("PRIZEWHEEL_STORAGE_KEY") or STORAGE_KEY,
            roster_source=roster_source,
            default_prize=environ.get("PRIZEWHEEL_DEFAULT_PRIZE") or DEFAULT_PRIZE,
            spin_delay=spin_delay,
            log_level=log_level,
        )


def _resolve_roster(source: str) -> str:
    """Anchor relative roster paths at the project root; URLs pass through."""
    if source.startswith(("http://", "https://")):
        return source
    path = Path(source)
    if not path.is_absolute():
        path = ROOT_DIR / path
    return str(path)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s",
    )


__all__ = ["DEFAULT_SPIN_DELAY", "Settings", "configure_logging"]
