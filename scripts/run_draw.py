"""Minimal terminal front-end for running a draw night."""

from __future__ import annotations

import shlex
import time

from prizewheel.config import Settings, configure_logging
from prizewheel.prize_draw import DrawPhase, display_prize, prize_rounds
from prizewheel.workflows import Notice, PrizeWheel

HELP = """\
commands:
  spin                     start a draw
  yes | no                 confirm or forfeit the revealed winner
  list [term]              show participants (optionally filtered)
  tickets <id> <delta>     adjust a participant's tickets
  add <name> [tickets]     add a participant
  remove <id>              remove a participant
  prize [label]            show prize rounds or switch the current one
  winners                  show winner records, newest first
  delete <index>           delete a winner record by its index
  clear                    clear all winner records
  reset                    reload the roster (winners are kept)
  export                   print the stored state as JSON
  quit
"""


def _ask(prompt: str) -> bool:
    return input(f"{prompt} [y/N] ").strip().lower() in ("y", "yes")


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


def _print_notice(notice: Notice) -> None:
    print(f"[{notice.level}] {notice.message}")


def _wait_for_reveal(wheel: PrizeWheel) -> None:
    while wheel.session.phase is DrawPhase.SPINNING:
        delay = wheel.scheduler.next_due_in()
        if delay is None:
            break
        print("Spinning...")
        time.sleep(delay)
        wheel.scheduler.advance(delay)
    if wheel.session.pending_winner_name is not None:
        print(
            f"*** {display_prize(wheel.current_prize)}: "
            f"{wheel.session.pending_winner_name} ***"
        )


def _show_participants(wheel: PrizeWheel, term: str = "") -> None:
    for participant in wheel.search_participants(term):
        marker = " (no tickets)" if participant.tickets == 0 else ""
        print(f"{participant.id:>4}  {participant.name:<20} {participant.tickets}{marker}")
    print(f"total tickets: {wheel.total_tickets()}")


def _show_winners(wheel: PrizeWheel) -> None:
    if not len(wheel.winners):
        print("No winners yet")
        return
    for index, record in wheel.winners.display_order():
        print(f"{index:>4}  {display_prize(record.prize)}  {record.name}")


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    wheel = PrizeWheel.from_settings(settings, confirm=_ask, on_notice=_print_notice)

    print(f"Current prize: {display_prize(wheel.current_prize)}")
    print(HELP)
    while True:
        try:
            line = input("> ").strip()
        except EOFError:
            break
        if not line:
            continue
        try:
            command, *args = shlex.split(line)
        except ValueError as exc:
            print(f"Could not parse command: {exc}")
            continue
        if command in ("quit", "exit"):
            break
        elif command == "spin":
            if wheel.start_draw() is not None:
                _wait_for_reveal(wheel)
        elif command == "yes":
            wheel.confirm_winner()
        elif command == "no":
            wheel.reject_winner()
        elif command == "list":
            _show_participants(wheel, " ".join(args))
        elif command == "tickets" and len(args) == 2 and _is_int(args[0]) and _is_int(args[1]):
            wheel.adjust_tickets(int(args[0]), int(args[1]))
        elif command == "add" and args and all(_is_int(a) for a in args[1:2]):
            tickets = int(args[1]) if len(args) > 1 else 1
            wheel.add_participant(args[0], tickets)
        elif command == "remove" and len(args) == 1 and _is_int(args[0]):
            wheel.remove_participant(int(args[0]))
        elif command == "prize":
            if args:
                wheel.set_prize(" ".join(args))
            else:
                for label in prize_rounds():
                    current = "*" if label == wheel.current_prize else " "
                    print(f" {current} {display_prize(label)}")
        elif command == "winners":
            _show_winners(wheel)
        elif command == "delete" and len(args) == 1 and _is_int(args[0]):
            wheel.remove_winner(int(args[0]))
        elif command == "clear":
            wheel.clear_winners()
        elif command == "reset":
            wheel.reset_participants()
        elif command == "export":
            print(wheel.export_state())
        else:
            print(HELP)


if __name__ == "__main__":
    main()
