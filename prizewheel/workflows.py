"""Application facade tying the draw engine, stores and persistence together."""

from __future__ import annotations

import dataclasses
import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from .config import DEFAULT_SPIN_DELAY, Settings
from .db.engine import create_schema, get_sessionmaker, make_engine
from .exceptions import (
    DrawInProgressError,
    DrawPreconditionError,
    PersistenceError,
    PrizeLockedError,
    RosterImportError,
    WinnerNotFoundError,
)
from .ledger import WinnerLedger, WinnerRecord
from .participants import Participant, ParticipantStore
from .persistence import PersistedState, SqlKeyValueStore, StateRepository
from .prize_draw import (
    DEFAULT_PRIZE,
    DrawOutcome,
    DrawSession,
    EventScheduler,
    build_weighted_pool,
    display_prize,
    normalize_prize,
    total_tickets,
)
from .roster import load_roster, seed_participants

logger = logging.getLogger(__name__)

# Only the most recent notices are kept on the instance.
MAX_NOTICES = 100


@dataclass(frozen=True)
class Notice:
    """User-facing message, typically rendered as a toast.

    ``level`` is one of ``"info"``, ``"success"``, ``"warning"`` or ``"error"``.
    """

    level: str
    message: str


def _always_yes(prompt: str) -> bool:
    return True


class PrizeWheel:
    """The single owner of the wheel's state.

    Every user or admin action goes through a method on this class. Rejected
    actions never raise: they leave the state untouched, emit a
    :class:`Notice` and return ``None`` (or ``False``).

    Parameters
    ----------
    repository : StateRepository
        Where the state is loaded from and saved to.
    scheduler : Optional[EventScheduler], default: None
        Timer queue used for the presentation delay. A private one is
        created when omitted; the host must then drive ``self.scheduler``.
    rng : Optional[random.Random], default: None
        Random source for picking winners.
    spin_delay : float, default: 7.5
        Seconds between :meth:`start_draw` and the winner reveal.
    default_prize : str, default: ``"特獎（四）"``
        Prize round used when no state is stored.
    roster_source : Optional[str], default: None
        Path or URL of the default roster. The seed list is used if this is
        ``None`` or the roster cannot be read.
    confirm : Optional[Callable[[str], bool]], default: None
        Asked before destructive admin actions. Declining cancels them.
    on_notice : Optional[Callable[[Notice], None]], default: None
        Receives every notice.
    on_change : Optional[Callable[[], None]], default: None
        Called after anything the presentation layer renders has changed.
    """

    def __init__(
        self,
        repository: StateRepository,
        *,
        scheduler: Optional[EventScheduler] = None,
        rng: Optional[random.Random] = None,
        spin_delay: float = DEFAULT_SPIN_DELAY,
        default_prize: str = DEFAULT_PRIZE,
        roster_source: Optional[str] = None,
        roster_loader: Callable[[str], list[Participant]] = load_roster,
        confirm: Optional[Callable[[str], bool]] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.repository = repository
        self.scheduler = scheduler or EventScheduler()
        self.rng = rng
        self.spin_delay = spin_delay
        self.default_prize = normalize_prize(default_prize)
        self.roster_source = roster_source
        self._roster_loader = roster_loader
        self._confirm = confirm or _always_yes
        self._on_notice = on_notice
        self._on_change = on_change

        self.participants = ParticipantStore()
        self.winners = WinnerLedger()
        self.current_prize = self.default_prize
        self.session = DrawSession()
        self.notices: Deque[Notice] = deque(maxlen=MAX_NOTICES)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "PrizeWheel":
        """Create a wheel backed by the SQL store in ``settings`` and load it."""
        engine = make_engine(settings.database_url)
        create_schema(engine)
        store = SqlKeyValueStore(get_sessionmaker(engine))
        wheel = cls(
            StateRepository(store, settings.storage_key),
            spin_delay=settings.spin_delay,
            default_prize=settings.default_prize,
            roster_source=settings.roster_source,
            **kwargs,
        )
        wheel.load()
        return wheel

    # -------- state --------
    def snapshot(self) -> PersistedState:
        """Return a detached copy of the persisted part of the state."""
        return PersistedState(
            participants=[dataclasses.replace(p) for p in self.participants],
            winners=self.winners.all(),
            current_prize=self.current_prize,
        )

    def export_state(self) -> str:
        """Return the persisted state as pretty-printed JSON."""
        return self.snapshot().to_json_str(indent=2)

    def load(self) -> bool:
        """Restore the stored state, falling back to the default roster.

        Returns
        -------
        bool
            ``True`` when a stored state was found and applied.
        """
        try:
            state = self.repository.load()
        except PersistenceError as exc:
            logger.error(f"Could not load saved state: {exc}")
            self._notify("warning", "Saved data could not be loaded; defaults restored")
            state = None

        if state is None:
            self._restore_defaults()
            return False

        self._apply(state)
        logger.info(
            f"Loaded {len(self.participants)} participant(s) and "
            f"{len(self.winners)} winner record(s)"
        )
        self._changed()
        return True

    def save(self) -> bool:
        """Persist the current state; a failure only produces a warning."""
        try:
            self.repository.save(self.snapshot())
        except PersistenceError as exc:
            logger.error(f"Could not save state: {exc}")
            self._notify("error", "Save error")
            return False
        return True

    # -------- draw lifecycle --------
    def weighted_pool(self) -> list[str]:
        return build_weighted_pool(self.participants)

    def total_tickets(self) -> int:
        return total_tickets(self.participants)

    def start_draw(self) -> Optional[DrawOutcome]:
        """Pick a winner and schedule the reveal after the spin delay."""
        try:
            outcome = self.session.start(self.participants, self.rng)
        except DrawPreconditionError as exc:
            self._reject(exc)
            return None
        self.scheduler.call_later(self.spin_delay, self._on_spin_complete)
        self._changed()
        return outcome

    def _on_spin_complete(self) -> None:
        name = self.session.finish_spin()
        logger.debug(f"Spin finished on {name!r} for {self.current_prize!r}")
        self._changed()

    def confirm_winner(self) -> Optional[WinnerRecord]:
        """Accept the revealed winner: deduct a ticket and record the win."""
        try:
            name = self.session.confirm()
        except DrawPreconditionError as exc:
            self._reject(exc)
            return None

        self.participants.consume_ticket(name)
        record = WinnerRecord(prize=self.current_prize, name=name)
        self.winners.append(record)
        logger.info(f"Winner confirmed: {name} ({self.current_prize})")
        self.save()
        self._notify("success", f"Congrats! {name} won {display_prize(self.current_prize)}")
        self._changed()
        return record

    def reject_winner(self) -> Optional[str]:
        """Forfeit the revealed winner without touching tickets or records."""
        try:
            name = self.session.reject()
        except DrawPreconditionError as exc:
            self._reject(exc)
            return None
        logger.info(f"Prize forfeited by {name} ({self.current_prize})")
        self._notify("error", "Prize forfeited")
        self._changed()
        return name

    def set_prize(self, prize: str) -> Optional[str]:
        if self.session.is_locked:
            self._reject(PrizeLockedError())
            return None
        try:
            label = normalize_prize(prize)
        except (TypeError, ValueError) as exc:
            self._reject(exc)
            return None
        self.current_prize = label
        self.save()
        self._changed()
        return self.current_prize

    # -------- participants --------
    def search_participants(self, term: str = "") -> list[Participant]:
        return self.participants.search(term)

    def adjust_tickets(self, participant_id: int, delta: int) -> Optional[Participant]:
        if self.session.is_locked:
            self._reject(DrawInProgressError("Drawing in progress, please wait"))
            return None
        try:
            participant = self.participants.adjust_tickets(participant_id, delta)
        except DrawPreconditionError as exc:
            self._reject(exc)
            return None
        self.save()
        self._changed()
        return participant

    def add_participant(self, name: str, tickets: int = 1) -> Optional[Participant]:
        try:
            participant = self.participants.add(name, tickets)
        except (TypeError, ValueError) as exc:
            self._reject(exc)
            return None
        self.save()
        self._notify("success", f"Added: {participant.name}")
        self._changed()
        return participant

    def remove_participant(self, participant_id: int) -> Optional[Participant]:
        try:
            participant = self.participants.remove(participant_id)
        except DrawPreconditionError as exc:
            self._reject(exc)
            return None
        self.save()
        self._notify("success", f"Removed: {participant.name}")
        self._changed()
        return participant

    def reset_participants(self) -> bool:
        """Reload the default roster with one ticket each; winners are kept."""
        if self.session.is_locked:
            self._reject(DrawInProgressError())
            return False
        if not self._confirm("Reset all participants? Tickets return to 1 each."):
            return False
        if self.roster_source is None:
            participants = seed_participants()
        else:
            try:
                participants = self._roster_loader(self.roster_source)
            except RosterImportError as exc:
                logger.warning(f"Participant reset failed: {exc}")
                self._notify("error", "Reset failed")
                return False
        self.participants.replace_all(participants)
        self.save()
        self._notify("success", "Participants reset")
        self._changed()
        return True

    # -------- winners --------
    def remove_winner(self, index: int) -> Optional[WinnerRecord]:
        """Delete the record at storage position ``index``."""
        if index < 0 or index >= len(self.winners):
            self._reject(WinnerNotFoundError())
            return None
        record = self.winners[index]
        if not self._confirm(f"Delete this record? {record.name} - {record.prize}"):
            return None
        self.winners.remove_at(index)
        self.save()
        self._notify("success", f"Deleted: {record.name}")
        self._changed()
        return record

    def clear_winners(self) -> bool:
        if not len(self.winners):
            self._reject(WinnerNotFoundError("No records"))
            return False
        if not self._confirm("Clear all winner records?"):
            return False
        self.winners.clear()
        self.save()
        self._notify("success", "Records cleared")
        self._changed()
        return True

    # -------- admin --------
    def reset_all(self) -> bool:
        """Forget everything stored and start again from the defaults."""
        if self.session.is_locked:
            self._reject(DrawInProgressError())
            return False
        if not self._confirm("Reset all data? This clears all records and ticket changes."):
            return False
        try:
            self.repository.delete()
        except PersistenceError as exc:
            logger.error(f"Could not delete saved state: {exc}")
            self._notify("error", "Save error")
            self._restore_defaults()
            return True
        self.load()
        return True

    # -------- internals --------
    def _restore_defaults(self) -> None:
        self._apply(
            PersistedState(
                participants=self._default_participants(),
                winners=[],
                current_prize=self.default_prize,
            )
        )
        self.save()
        self._changed()

    def _default_participants(self) -> list[Participant]:
        if self.roster_source is None:
            return seed_participants()
        try:
            return self._roster_loader(self.roster_source)
        except RosterImportError as exc:
            logger.warning(f"Falling back to seed participants: {exc}")
            self._notify("warning", "Participant list could not be loaded")
            return seed_participants()

    def _apply(self, state: PersistedState) -> None:
        self.participants.replace_all(state.participants)
        self.winners = WinnerLedger(state.winners)
        self.current_prize = state.current_prize or self.default_prize

    def _reject(self, exc: Exception) -> None:
        logger.warning(f"Action rejected: {exc}")
        self._notify("error", str(exc))

    def _notify(self, level: str, message: str) -> None:
        notice = Notice(level=level, message=message)
        self.notices.append(notice)
        if self._on_notice is not None:
            self._on_notice(notice)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


__all__ = ["Notice", "PrizeWheel"]
