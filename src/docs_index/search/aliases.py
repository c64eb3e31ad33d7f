"""Framework name aliases.

One framework has three spellings: the path identifier (``appintents``), the
import name (``AppIntents``) and the display name (``App Intents``). The store
keeps them in ``framework_aliases`` keyed by identifier.
"""

from __future__ import annotations

import sqlite3


def normalize_identifier(value: str) -> str:
    return value.strip().lower().replace(" ", "")


def import_name_for(display_name: str) -> str:
    return display_name.replace(" ", "")


def register_alias(conn: sqlite3.Connection, identifier: str, display_name: str) -> None:
    """Upsert the three spellings for ``identifier``."""
    conn.execute(
        """
        INSERT INTO framework_aliases (identifier, import_name, display_name)
        VALUES (?, ?, ?)
        ON CONFLICT(identifier) DO UPDATE SET
            import_name = excluded.import_name,
            display_name = excluded.display_name
        """,
        (identifier, import_name_for(display_name), display_name),
    )


def resolve_identifier(conn: sqlite3.Connection, value: str) -> str:
    """Map any spelling to the canonical identifier.

    Unregistered input comes back normalized, so it can still be used as a
    provisional identifier.
    """
    normalized = normalize_identifier(value)
    row = conn.execute(
        "SELECT identifier FROM framework_aliases WHERE identifier = ? LIMIT 1", (normalized,)
    ).fetchone()
    if row is not None:
        return row[0]

    stripped = value.strip()
    row = conn.execute(
        """
        SELECT identifier FROM framework_aliases
        WHERE import_name = ? OR display_name = ? OR LOWER(display_name) = ? OR LOWER(import_name) = ?
        LIMIT 1
        """,
        (stripped, stripped, stripped.lower(), stripped.lower()),
    ).fetchone()
    if row is not None:
        return row[0]

    return normalized


def list_aliases(conn: sqlite3.Connection) -> dict[str, tuple[str, str]]:
    """Return ``identifier -> (import_name, display_name)``."""
    rows = conn.execute("SELECT identifier, import_name, display_name FROM framework_aliases").fetchall()
    return {identifier: (import_name, display_name) for identifier, import_name, display_name in rows}
