"""
Versioned schema migrations for the task store.

The applied version is kept in SQLite's ``PRAGMA user_version``. Each step
runs at most once per database file and checks the live schema before it
changes anything, so a database created by an older build (tables present,
version 0) is brought forward without losing rows.

Steps run synchronously on the connection handed over by
``AsyncConnection.run_sync`` inside the startup transaction.
"""

from typing import Callable, NamedTuple

from sqlalchemy import Connection, inspect, text
from sqlmodel import SQLModel

from todo_api import models  # noqa: F401  (registers tables on SQLModel.metadata)
from todo_api.logging_config import get_logger

logger = get_logger(__name__)


class Migration(NamedTuple):
    version: int
    name: str
    apply: Callable[[Connection], None]


def _create_tables(conn: Connection) -> None:
    """Create ``todos`` and ``settings`` when absent."""
    SQLModel.metadata.create_all(conn)


# Columns that were added to todos after the first release
TODO_METADATA_COLUMNS = {
    "sort_order": "INTEGER DEFAULT 0",
    "description": "TEXT DEFAULT ''",
    "priority": "INTEGER DEFAULT 0",
    "due_date": "TEXT",
}


def _add_todo_metadata_columns(conn: Connection) -> None:
    """Add ordering/metadata columns missing from an old ``todos`` table."""
    existing = {column["name"] for column in inspect(conn).get_columns("todos")}
    for name, ddl in TODO_METADATA_COLUMNS.items():
        if name in existing:
            continue
        logger.info(f"Adding column todos.{name}")
        conn.execute(text(f"ALTER TABLE todos ADD COLUMN {name} {ddl}"))


def _backfill_todo_nulls(conn: Connection) -> None:
    """Replace NULLs an older build could write into non-nullable columns."""
    conn.execute(text(
        "UPDATE todos SET"
        " description = COALESCE(description, ''),"
        " priority = COALESCE(priority, 0),"
        " sort_order = COALESCE(sort_order, 0),"
        " completed = COALESCE(completed, 0)"
        " WHERE description IS NULL OR priority IS NULL"
        " OR sort_order IS NULL OR completed IS NULL"
    ))


MIGRATIONS: list[Migration] = [
    Migration(1, "create_tables", _create_tables),
    Migration(2, "add_todo_metadata_columns", _add_todo_metadata_columns),
    Migration(3, "backfill_todo_nulls", _backfill_todo_nulls),
]

LATEST_VERSION = MIGRATIONS[-1].version


def get_schema_version(conn: Connection) -> int:
    return conn.execute(text("PRAGMA user_version")).scalar_one()


def run_migrations(conn: Connection) -> int:
    """
    Apply every migration newer than the stored version.

    Returns:
        The schema version after migrating.
    """
    current = get_schema_version(conn)
    pending = [m for m in MIGRATIONS if m.version > current]

    for migration in pending:
        logger.info(f"Applying migration {migration.version}: {migration.name}")
        migration.apply(conn)
        # PRAGMA does not take bound parameters; version is always an int
        conn.execute(text(f"PRAGMA user_version = {int(migration.version)}"))

    if not pending:
        logger.debug(f"Schema up to date at version {current}")
        return current

    return pending[-1].version
