from prizewheel.config import Settings, configure_logging
from prizewheel.persistence import PersistedState
from prizewheel.roster import seed_participants
from prizewheel.workflows import PrizeWheel

# Uneven ticket counts so the wheel shows weighted slices.
DEV_TICKETS = {
    "Amy": 3,
    "John": 2,
    "David": 2,
    "Michael": 3,
    "Lisa": 2,
    "Jessica": 2,
}


def main() -> None:
    """Overwrite the configured store with a development roster."""
    settings = Settings.from_env()
    configure_logging(settings)

    participants = seed_participants()
    for participant in participants:
        participant.tickets = DEV_TICKETS.get(participant.name, 1)

    wheel = PrizeWheel.from_settings(settings)
    wheel.repository.save(
        PersistedState(
            participants=participants,
            winners=[],
            current_prize=settings.default_prize,
        )
    )
    wheel.load()

    print(
        f"Seeded {len(wheel.participants)} participants "
        f"({wheel.total_tickets()} tickets) under {settings.storage_key!r}."
    )


if __name__ == "__main__":
    main()
