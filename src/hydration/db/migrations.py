"""
Database migrations for the hydration service.

Uses SQLite ALTER TABLE ADD COLUMN for incremental schema evolution.
Each migration is idempotent: columns are only added if absent.

Called automatically from get_engine() after create_all() so both
fresh installs and existing DBs are handled without manual steps.
"""
from sqlalchemy import text


def run_migrations(engine) -> None:
    """Apply all pending schema migrations.

    Safe to call multiple times; checks column existence before altering.
    Supports SQLite only (uses PRAGMA table_info).

    Args:
        engine: SQLAlchemy engine (SQLModel create_engine result).
    """
    with engine.connect() as conn:
        # ReminderLog: response analytics and failure/retention bookkeeping
        _add_column_if_missing(conn, "reminderlog", "response_delay_minutes", "INTEGER")
        _add_column_if_missing(conn, "reminderlog", "failure_reason", "VARCHAR")
        _add_column_if_missing(conn, "reminderlog", "deleted_at", "DATETIME")

        # ReminderSettings: per-user timezone for the user-local clock
        _add_column_if_missing(conn, "remindersettings", "timezone", "VARCHAR NOT NULL DEFAULT 'UTC'")

        # HydrationRecord: soft delete
        _add_column_if_missing(conn, "hydrationrecord", "deleted_at", "DATETIME")

        conn.commit()


def _add_column_if_missing(conn, table: str, column: str, col_type: str) -> None:
    """Add a column to a table if it doesn't already exist.

    Args:
        conn: SQLAlchemy connection.
        table: Table name (lowercase, as SQLite stores it).
        column: Column name to add.
        col_type: SQLite column definition, e.g. "INTEGER", "DATETIME".
    """
    result = conn.execute(text(f"PRAGMA table_info({table})"))
    existing_columns = {row[1] for row in result}
    if column not in existing_columns:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}"))
