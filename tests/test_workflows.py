from __future__ import annotations

import json
import unittest
from typing import Optional

from sqlalchemy import create_engine

from prizewheel.config import Settings
from prizewheel.db.engine import create_schema, get_sessionmaker
from prizewheel.exceptions import RosterImportError
from prizewheel.ledger import WinnerRecord
from prizewheel.participants import Participant
from prizewheel.persistence import (
    MemoryKeyValueStore,
    PersistedState,
    SqlKeyValueStore,
    StateRepository,
)
from prizewheel.prize_draw import DrawPhase
from prizewheel.workflows import MAX_NOTICES, Notice, PrizeWheel

from .helpers import BrokenStore, FailingStore, FixedPick

SPIN_DELAY = 7.5


class PrizeWheelTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryKeyValueStore()
        self.repository = StateRepository(self.store, key="test")
        self.received: list[Notice] = []
        self.changes = 0

    def _make_wheel(
        self,
        participants: Optional[list[Participant]] = None,
        *,
        pick: int = 0,
        winners: Optional[list[WinnerRecord]] = None,
        prize: str = "X",
        **kwargs,
    ) -> PrizeWheel:
        if participants is not None:
            self.repository.save(
                PersistedState(
                    participants=participants,
                    winners=winners or [],
                    current_prize=prize,
                )
            )
        kwargs.setdefault("rng", FixedPick(pick))
        wheel = PrizeWheel(
            self.repository,
            spin_delay=SPIN_DELAY,
            on_notice=self.received.append,
            on_change=self._count_change,
            **kwargs,
        )
        wheel.load()
        return wheel

    def _count_change(self) -> None:
        self.changes += 1

    def _stored(self) -> dict:
        return json.loads(self.store.data["test"])

    def _spin(self, wheel: PrizeWheel) -> None:
        self.assertIsNotNone(wheel.start_draw())
        wheel.scheduler.advance(SPIN_DELAY)
        self.assertIs(wheel.session.phase, DrawPhase.AWAITING_CONFIRMATION)


class DrawFlowTests(PrizeWheelTestCase):
    def test_weighted_scenario_confirm(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=2), Participant(id=2, name="B", tickets=1)],
            pick=1,
        )
        self.assertEqual(wheel.total_tickets(), 3)
        self.assertEqual(wheel.weighted_pool(), ["A", "A", "B"])

        outcome = wheel.start_draw()
        self.assertEqual((outcome.index, outcome.name, outcome.pool_size), (1, "A", 3))
        self.assertIs(wheel.session.phase, DrawPhase.SPINNING)
        self.assertEqual(wheel.rng.calls, [3])

        # Not revealed before the presentation delay elapses.
        wheel.scheduler.advance(SPIN_DELAY - 0.5)
        self.assertIs(wheel.session.phase, DrawPhase.SPINNING)
        wheel.scheduler.advance(0.5)
        self.assertIs(wheel.session.phase, DrawPhase.AWAITING_CONFIRMATION)
        self.assertEqual(wheel.session.pending_winner_name, "A")

        record = wheel.confirm_winner()

        self.assertEqual(record, WinnerRecord(prize="X", name="A"))
        self.assertIs(wheel.session.phase, DrawPhase.IDLE)
        self.assertEqual(wheel.participants.get(1).tickets, 1)
        self.assertEqual(wheel.participants.get(2).tickets, 1)
        self.assertEqual(wheel.winners.all(), [WinnerRecord(prize="X", name="A")])
        stored = self._stored()
        self.assertEqual(stored["winners"], [{"prize": "X", "name": "A"}])
        self.assertEqual(stored["participants"][0]["tickets"], 1)
        self.assertEqual(self.received[-1].level, "success")

    def test_reject_leaves_state_identical(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=2), Participant(id=2, name="B", tickets=1)],
            pick=2,
            winners=[WinnerRecord(prize="Y", name="A")],
        )
        before_export = wheel.export_state()
        before_stored = self.store.data["test"]

        self._spin(wheel)
        self.assertEqual(wheel.reject_winner(), "B")

        self.assertIs(wheel.session.phase, DrawPhase.IDLE)
        self.assertEqual(wheel.export_state(), before_export)
        self.assertEqual(self.store.data["test"], before_stored)
        self.assertEqual(self.received[-1], Notice(level="error", message="Prize forfeited"))

    def test_no_tickets_rejects_start(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=0), Participant(id=2, name="B", tickets=0)]
        )
        self.assertIsNone(wheel.start_draw())
        self.assertIs(wheel.session.phase, DrawPhase.IDLE)
        self.assertIsNone(wheel.session.outcome)
        self.assertEqual(wheel.rng.calls, [])
        self.assertEqual(wheel.scheduler.pending(), 0)
        self.assertEqual(self.received[-1], Notice(level="error", message="All tickets used"))

    def test_second_start_while_drawing_is_rejected(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        wheel.start_draw()
        self.assertIsNone(wheel.start_draw())
        self.assertEqual(self.received[-1].message, "Drawing in progress")
        self.assertEqual(wheel.scheduler.pending(), 1)

        wheel.scheduler.advance(SPIN_DELAY)
        self.assertIsNone(wheel.start_draw())
        self.assertEqual(wheel.session.pending_winner_name, "A")

    def test_confirm_without_pending_winner_is_rejected(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        self.assertIsNone(wheel.confirm_winner())
        self.assertIsNone(wheel.reject_winner())
        wheel.start_draw()
        self.assertIsNone(wheel.confirm_winner())
        self.assertEqual(len(wheel.winners), 0)
        self.assertEqual(wheel.participants.get(1).tickets, 1)

    def test_single_ticket_winner_is_excluded_next_time(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=1), Participant(id=2, name="B", tickets=1)],
            pick=0,
        )
        self._spin(wheel)
        wheel.confirm_winner()
        self.assertEqual(wheel.participants.get(1).tickets, 0)
        self.assertEqual(wheel.weighted_pool(), ["B"])

        outcome = wheel.start_draw()
        self.assertEqual(outcome.name, "B")
        self.assertEqual(outcome.pool_size, 1)
        wheel.scheduler.advance(SPIN_DELAY)
        wheel.confirm_winner()

        self.assertEqual([r.name for r in wheel.winners], ["A", "B"])
        self.assertEqual(wheel.total_tickets(), 0)
        # Zero-ticket participants are still listed.
        self.assertEqual(len(wheel.participants), 2)
        self.assertIsNone(wheel.start_draw())

    def test_confirm_records_win_even_if_participant_was_removed(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=1), Participant(id=2, name="B", tickets=1)],
            pick=0,
        )
        self._spin(wheel)
        wheel.remove_participant(1)
        record = wheel.confirm_winner()
        self.assertEqual(record.name, "A")
        self.assertEqual(wheel.participants.get(2).tickets, 1)
        self.assertEqual(wheel.total_tickets(), 1)

    def test_win_is_recorded_against_prize_at_confirmation(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=3)], prize="五獎")
        self._spin(wheel)
        wheel.confirm_winner()
        self.assertEqual(wheel.set_prize("四獎"), "四獎")
        self._spin(wheel)
        wheel.confirm_winner()
        self.assertEqual([r.prize for r in wheel.winners], ["五獎", "四獎"])
        self.assertEqual(self._stored()["currentPrize"], "四獎")

    def test_change_signal_is_emitted_for_phase_changes(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        baseline = self.changes
        self._spin(wheel)
        self.assertEqual(self.changes, baseline + 2)
        wheel.confirm_winner()
        self.assertEqual(self.changes, baseline + 3)


class LockingTests(PrizeWheelTestCase):
    def test_prize_and_tickets_are_locked_during_draw(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=2)])
        wheel.start_draw()
        for spinning in (True, False):
            with self.subTest(spinning=spinning):
                self.assertIsNone(wheel.set_prize("首獎"))
                self.assertEqual(wheel.current_prize, "X")
                self.assertIsNone(wheel.adjust_tickets(1, 1))
                self.assertEqual(wheel.participants.get(1).tickets, 2)
                self.assertFalse(wheel.reset_participants())
                self.assertFalse(wheel.reset_all())
                wheel.scheduler.advance(SPIN_DELAY)

        wheel.reject_winner()
        self.assertEqual(wheel.set_prize("首獎"), "首獎")
        self.assertEqual(wheel.adjust_tickets(1, 1).tickets, 3)

    def test_blank_prize_is_rejected(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        self.assertIsNone(wheel.set_prize("   "))
        self.assertEqual(wheel.current_prize, "X")


class ParticipantAdminTests(PrizeWheelTestCase):
    def test_adjust_below_zero_is_rejected(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=0)])
        before = self.store.data["test"]
        self.assertIsNone(wheel.adjust_tickets(1, -1))
        self.assertEqual(wheel.participants.get(1).tickets, 0)
        self.assertEqual(self.store.data["test"], before)
        self.assertEqual(self.received[-1].level, "error")

    def test_adjust_unknown_participant_is_rejected(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=0)])
        self.assertIsNone(wheel.adjust_tickets(42, 1))
        self.assertIn("42", self.received[-1].message)

    def test_adjust_persists(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        wheel.adjust_tickets(1, 4)
        self.assertEqual(self._stored()["participants"][0]["tickets"], 5)

    def test_add_and_remove_participants(self) -> None:
        wheel = self._make_wheel([Participant(id=3, name="A", tickets=1)])
        added = wheel.add_participant("Newcomer", 2)
        self.assertEqual((added.id, added.tickets), (4, 2))
        self.assertEqual(self._stored()["participants"][-1]["name"], "Newcomer")

        self.assertIsNone(wheel.add_participant(""))
        self.assertIsNone(wheel.add_participant("Neg", -1))
        self.assertEqual(len(wheel.participants), 2)

        self.assertEqual(wheel.remove_participant(3).name, "A")
        self.assertIsNone(wheel.remove_participant(3))
        self.assertEqual([p["id"] for p in self._stored()["participants"]], [4])

    def test_search(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="Amy"), Participant(id=2, name="Sam"), Participant(id=3, name="John")]
        )
        self.assertEqual([p.name for p in wheel.search_participants("AM")], ["Amy", "Sam"])


class WinnerAdminTests(PrizeWheelTestCase):
    def _wheel_with_winners(self, **kwargs) -> PrizeWheel:
        return self._make_wheel(
            [Participant(id=1, name="A", tickets=1)],
            winners=[
                WinnerRecord(prize="五獎", name="First"),
                WinnerRecord(prize="四獎", name="Second"),
                WinnerRecord(prize="三獎", name="Third"),
            ],
            **kwargs,
        )

    def test_remove_winner_by_storage_index(self) -> None:
        wheel = self._wheel_with_winners()
        newest_index, newest = wheel.winners.display_order()[0]
        self.assertEqual(newest_index, 2)
        self.assertEqual(wheel.remove_winner(newest_index), newest)
        self.assertEqual([w["name"] for w in self._stored()["winners"]], ["First", "Second"])

        self.assertEqual(wheel.remove_winner(0).name, "First")
        self.assertEqual([r.name for r in wheel.winners], ["Second"])

    def test_remove_winner_out_of_range_is_rejected(self) -> None:
        wheel = self._wheel_with_winners()
        self.assertIsNone(wheel.remove_winner(3))
        self.assertIsNone(wheel.remove_winner(-1))
        self.assertEqual(len(wheel.winners), 3)
        self.assertEqual(self.received[-1].message, "Record not found")

    def test_declined_confirmation_keeps_records(self) -> None:
        prompts: list[str] = []

        def decline(prompt: str) -> bool:
            prompts.append(prompt)
            return False

        wheel = self._wheel_with_winners(confirm=decline)
        self.assertIsNone(wheel.remove_winner(1))
        self.assertFalse(wheel.clear_winners())
        self.assertEqual(len(wheel.winners), 3)
        self.assertIn("Second", prompts[0])

    def test_clear_winners(self) -> None:
        wheel = self._wheel_with_winners()
        self.assertTrue(wheel.clear_winners())
        self.assertEqual(self._stored()["winners"], [])
        self.assertFalse(wheel.clear_winners())
        self.assertEqual(self.received[-1].message, "No records")


class PersistenceFallbackTests(PrizeWheelTestCase):
    def test_empty_store_uses_seed_list(self) -> None:
        wheel = self._make_wheel()
        self.assertEqual(len(wheel.participants), 10)
        self.assertTrue(all(p.tickets == 1 for p in wheel.participants))
        self.assertEqual(wheel.current_prize, "特獎（四）")
        self.assertEqual(len(self._stored()["participants"]), 10)

    def test_empty_store_imports_roster(self) -> None:
        roster = [Participant(id=1, name="Roster A"), Participant(id=3, name="Roster B")]
        wheel = self._make_wheel(roster_source="data/name.csv", roster_loader=lambda source: roster)
        self.assertEqual([p.name for p in wheel.participants], ["Roster A", "Roster B"])

    def test_roster_failure_falls_back_to_seed(self) -> None:
        def failing_loader(source: str) -> list[Participant]:
            raise RosterImportError("unreachable")

        wheel = self._make_wheel(roster_source="https://example.com/x.csv", roster_loader=failing_loader)
        self.assertEqual(len(wheel.participants), 10)
        self.assertEqual(self.received[0].level, "warning")

    def test_malformed_payload_falls_back_and_warns(self) -> None:
        self.store.set("test", "{broken")
        wheel = self._make_wheel()
        self.assertEqual(len(wheel.participants), 10)
        self.assertEqual(self.received[0].level, "warning")
        # The broken payload is replaced by the defaults.
        self.assertEqual(len(self._stored()["participants"]), 10)

    def test_unavailable_store_still_usable(self) -> None:
        self.repository = StateRepository(BrokenStore(), key="test")
        wheel = self._make_wheel()
        self.assertEqual(len(wheel.participants), 10)
        self._spin(wheel)
        self.assertIsNotNone(wheel.confirm_winner())

    def test_save_failure_warns_but_keeps_memory_state(self) -> None:
        self.repository = StateRepository(FailingStore(), key="test")
        wheel = self._make_wheel(pick=0)
        self._spin(wheel)
        record = wheel.confirm_winner()

        self.assertEqual(record.name, "Amy")
        self.assertEqual(wheel.participants.get(1).tickets, 0)
        self.assertEqual(len(wheel.winners), 1)
        self.assertIn(Notice(level="error", message="Save error"), self.received)

    def test_missing_prize_uses_configured_default(self) -> None:
        self.store.set("test", json.dumps({"participants": [{"id": 1, "name": "A", "tickets": 1}]}))
        wheel = self._make_wheel(default_prize="頭獎")
        self.assertEqual(wheel.current_prize, "頭獎")
        self.assertEqual([p.name for p in wheel.participants], ["A"])

    def test_notice_history_is_bounded(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=1)])
        for _ in range(MAX_NOTICES + 20):
            wheel.remove_participant(99)
        self.assertEqual(len(wheel.notices), MAX_NOTICES)
        self.assertEqual(len(self.received), MAX_NOTICES + 20)

    def test_restart_restores_state(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=2)], prize="二獎")
        self._spin(wheel)
        wheel.confirm_winner()

        restarted = PrizeWheel(self.repository)
        self.assertTrue(restarted.load())
        self.assertEqual(restarted.participants.get(1).tickets, 1)
        self.assertEqual(restarted.winners.all(), [WinnerRecord(prize="二獎", name="A")])
        self.assertEqual(restarted.current_prize, "二獎")
        self.assertIs(restarted.session.phase, DrawPhase.IDLE)


class ResetTests(PrizeWheelTestCase):
    def test_reset_participants_keeps_winners(self) -> None:
        roster = [Participant(id=1, name="R1"), Participant(id=2, name="R2")]
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=0)],
            winners=[WinnerRecord(prize="X", name="A")],
            roster_source="data/name.csv",
            roster_loader=lambda source: roster,
        )
        self.assertTrue(wheel.reset_participants())
        self.assertEqual([p.name for p in wheel.participants], ["R1", "R2"])
        self.assertEqual(len(wheel.winners), 1)
        self.assertEqual(self._stored()["winners"], [{"prize": "X", "name": "A"}])

    def test_reset_participants_failure_leaves_list_unchanged(self) -> None:
        calls: list[str] = []

        def loader(source: str) -> list[Participant]:
            calls.append(source)
            raise RosterImportError("gone")

        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=4)],
            roster_source="data/name.csv",
            roster_loader=loader,
        )
        self.assertFalse(wheel.reset_participants())
        self.assertEqual(wheel.participants.get(1).tickets, 4)
        self.assertEqual(self.received[-1].message, "Reset failed")
        self.assertEqual(calls, ["data/name.csv"])

    def test_reset_all_restores_defaults(self) -> None:
        wheel = self._make_wheel(
            [Participant(id=1, name="A", tickets=4)],
            winners=[WinnerRecord(prize="X", name="A")],
            prize="首獎",
        )
        self.assertTrue(wheel.reset_all())
        self.assertEqual(len(wheel.participants), 10)
        self.assertEqual(len(wheel.winners), 0)
        self.assertEqual(wheel.current_prize, "特獎（四）")
        self.assertEqual(self._stored()["currentPrize"], "特獎（四）")

    def test_reset_all_resets_memory_when_delete_fails(self) -> None:
        self.store = FailingStore()
        self.store.data["test"] = PersistedState(
            participants=[Participant(id=1, name="A", tickets=4)],
            winners=[WinnerRecord(prize="X", name="A")],
            current_prize="X",
        ).to_json_str()
        self.repository = StateRepository(self.store, key="test")
        wheel = self._make_wheel()
        self.assertEqual(wheel.participants.get(1).tickets, 4)

        self.assertTrue(wheel.reset_all())

        self.assertEqual(len(wheel.participants), 10)
        self.assertTrue(all(p.tickets == 1 for p in wheel.participants))
        self.assertEqual(len(wheel.winners), 0)
        self.assertEqual(wheel.current_prize, "特獎（四）")
        self.assertIn(Notice(level="error", message="Save error"), self.received)

    def test_export_state(self) -> None:
        wheel = self._make_wheel([Participant(id=1, name="A", tickets=2)], prize="大獎")
        exported = json.loads(wheel.export_state())
        self.assertEqual(
            exported,
            {
                "participants": [{"id": 1, "name": "A", "tickets": 2}],
                "winners": [],
                "currentPrize": "大獎",
            },
        )


class SqlBackedWheelTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        create_schema(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()

    def test_state_survives_new_wheel_instance(self) -> None:
        repository = StateRepository(SqlKeyValueStore(self.Session), key="gala")
        wheel = PrizeWheel(repository, rng=FixedPick(0), spin_delay=0)
        self.assertFalse(wheel.load())
        wheel.start_draw()
        wheel.scheduler.run_pending()
        wheel.confirm_winner()

        again = PrizeWheel(StateRepository(SqlKeyValueStore(self.Session), key="gala"))
        self.assertTrue(again.load())
        self.assertEqual(again.winners.all(), [WinnerRecord(prize="特獎（四）", name="Amy")])
        self.assertEqual(again.participants.get(1).tickets, 0)

    def test_from_settings(self) -> None:
        settings = Settings(
            database_url="sqlite+pysqlite:///:memory:",
            storage_key="from-settings",
            roster_source=None,
            spin_delay=1.0,
        )
        wheel = PrizeWheel.from_settings(settings, rng=FixedPick(0))
        self.assertEqual(len(wheel.participants), 10)
        self.assertEqual(wheel.spin_delay, 1.0)
        self.assertEqual(wheel.repository.key, "from-settings")


if __name__ == "__main__":
    unittest.main()
