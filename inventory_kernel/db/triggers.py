"""
Module: inventory_kernel.db.triggers
Responsibility: Loading and installing database-level immutability triggers
    for the movement ledger.  Database complement to the ORM listeners in
    db/immutability.py: raw SQL and bulk statements bypass the ORM, not these.
Architecture position: Kernel > DB.  MUST NOT import from models/, services/,
    selectors/, domain/, or outer layers.

Failure modes:
    - FileNotFoundError if a SQL file is missing from the sql/ directory.
    - Trigger violations surface as sqlalchemy DBAPIError subclasses.
"""

from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

SQL_DIR = Path(__file__).parent / "sql"

# One entry per dialect; SQLite files hold exactly one statement each since
# the sqlite3 driver refuses multi-statement execution.
TRIGGER_FILES = {
    "postgresql": ["01_inventory_movements.sql"],
    "sqlite": [
        "01_inventory_movements_no_update.sql",
        "02_inventory_movements_no_delete.sql",
    ],
}

ALL_TRIGGER_NAMES = [
    "trg_inventory_movements_no_update",
    "trg_inventory_movements_no_delete",
]


def _load_sql_file(dialect: str, filename: str) -> str:
    return (SQL_DIR / dialect / filename).read_text(encoding="utf-8")


def install_immutability_triggers(engine: Engine) -> None:
    """
    Install the ledger immutability triggers for the engine's dialect.

    Idempotent.  Dialects without trigger files are skipped.
    """
    dialect = engine.dialect.name
    with engine.begin() as conn:
        for filename in TRIGGER_FILES.get(dialect, []):
            conn.execute(text(_load_sql_file(dialect, filename)))


def installed_trigger_names(engine: Engine) -> set[str]:
    """Names of installed ledger triggers, for verification."""
    dialect = engine.dialect.name
    with engine.connect() as conn:
        if dialect == "postgresql":
            rows = conn.execute(
                text(
                    "SELECT tgname FROM pg_trigger "
                    "WHERE tgname = ANY(:names) AND NOT tgisinternal"
                ),
                {"names": ALL_TRIGGER_NAMES},
            )
        elif dialect == "sqlite":
            rows = conn.execute(
                text("SELECT name FROM sqlite_master WHERE type = 'trigger'")
            )
        else:
            return set()
        return {row[0] for row in rows} & set(ALL_TRIGGER_NAMES)
