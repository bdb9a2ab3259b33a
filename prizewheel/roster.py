"""Import participants from a one-name-per-line roster file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import requests

from .exceptions import RosterImportError
from .participants import Participant

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

# Used when nothing is stored and no roster can be read.
SEED_NAMES = (
    "Amy",
    "John",
    "Emily",
    "David",
    "Sarah",
    "Michael",
    "Lisa",
    "Kevin",
    "Jessica",
    "Chris",
)


def seed_participants() -> list[Participant]:
    """Return the built-in roster, one ticket each."""
    return [
        Participant(id=index, name=name, tickets=1)
        for index, name in enumerate(SEED_NAMES, start=1)
    ]


def parse_roster(text: str) -> list[Participant]:
    """Build participants from roster text.

    The first line is a header and is skipped. Blank lines are skipped.
    Every other line becomes a participant holding one ticket, named after
    its whole trimmed line, whose id is the line's position in the file
    (the header being line 0).

    Parameters
    ----------
    text : str
        Raw roster contents.

    Returns
    -------
    list[Participant]
        Participants in file order.
    """

    participants: list[Participant] = []
    lines = text.split("\n")
    for index, line in enumerate(lines):
        if index == 0 or not line.strip():
            continue
        participants.append(Participant(id=index, name=line.strip(), tickets=1))
    logger.debug(f"Parsed {len(participants)} participant(s) from {len(lines)} line(s)")
    return participants


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def fetch_roster_text(
    source: Union[str, Path],
    *,
    timeout: int = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> str:
    """Read roster text from a local path or an HTTP(S) URL.

    Raises
    ------
    RosterImportError
        If the source cannot be reached or read.
    """

    source_str = str(source)
    if _is_url(source_str):
        http = session or requests.Session()
        try:
            response = http.get(source_str, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error(f"Failed to fetch roster from {source_str}: {exc}")
            raise RosterImportError(f"Failed to fetch roster: {exc}") from exc
        response.encoding = response.encoding or "utf-8"
        return response.text

    try:
        return Path(source_str).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error(f"Failed to read roster file {source_str}: {exc}")
        raise RosterImportError(f"Failed to read roster: {exc}") from exc


def load_roster(
    source: Union[str, Path],
    *,
    timeout: int = DEFAULT_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> list[Participant]:
    """Fetch and parse a roster in one step."""
    text = fetch_roster_text(source, timeout=timeout, session=session)
    return parse_roster(text)


__all__ = [
    "SEED_NAMES",
    "fetch_roster_text",
    "load_roster",
    "parse_roster",
    "seed_participants",
]
