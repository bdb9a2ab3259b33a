from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from prizewheel.db.engine import make_engine


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_keys() -> None:
    """Print the tables and the storage keys currently present."""
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))
    with engine.connect() as conn:
        keys = [row[0] for row in conn.exec_driver_sql("SELECT key FROM kv_store")]
    print("Stored keys:", ", ".join(keys) or "(none)")


def main() -> None:
    """Apply migrations (default to head) and report the resulting store."""
    upgrade_db()
    print_keys()


if __name__ == "__main__":
    main()
