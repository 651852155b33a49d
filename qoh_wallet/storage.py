"""SQLite-backed key/value slots for qoh-wallet.

Plays the role browser ``localStorage`` plays for a single-page app: named
string slots, each write an immediate synchronous commit replacing the
previous value. A new connection is created per call (WAL mode, 30s busy
timeout, Row factory), so several processes can share one file.

Every write stamps the slot with a global revision number and the id of the
handle that wrote it. ``changes_since()`` lets a watcher tell writes made by
other handles apart from its own.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class SlotChange:
    key: str
    revision: int
    external: bool


class KeyValueStorage:
    """Persistent string slots in a single SQLite file."""

    def __init__(self, db_path: str, logger: logging.Logger | None = None) -> None:
        self._db_path = db_path
        self._logger = logger or logging.getLogger("qoh.storage")
        self._writer_id = uuid.uuid4().hex
        self._create_tables()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def writer_id(self) -> str:
        return self._writer_id

    def _get_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection with standard settings."""
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self) -> None:
        conn = self._get_connection()
        try:
            # A removed slot keeps its row with value NULL so the removal
            # still shows up in changes_since().
            conn.execute("""
                CREATE TABLE IF NOT EXISTS slots (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    revision INTEGER NOT NULL,
                    writer TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_slots_revision ON slots(revision)"
            )
            conn.commit()
        finally:
            conn.close()

    # ══════════════════════════════════════════════════════════
    #  Slot Access
    # ══════════════════════════════════════════════════════════

    def get_item(self, key: str) -> str | None:
        """Return the slot value, or None if unset or removed."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT value FROM slots WHERE key = ?", (key,),
            ).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set_item(self, key: str, value: str) -> int:
        """Replace the slot value. Returns the new revision."""
        return self._write(key, value)

    def remove_item(self, key: str) -> int:
        """Clear the slot. Returns the new revision."""
        return self._write(key, None)

    def _write(self, key: str, value: str | None) -> int:
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT COALESCE(MAX(revision), 0) AS rev FROM slots").fetchone()
            revision = row["rev"] + 1
            conn.execute(
                "INSERT INTO slots (key, value, revision, writer, updated_at) "
                "VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "revision = excluded.revision, writer = excluded.writer, "
                "updated_at = excluded.updated_at",
                (key, value, revision, self._writer_id),
            )
            conn.commit()
            self._logger.debug("Slot %s written (revision %d)", key, revision)
            return revision
        finally:
            conn.close()

    # ══════════════════════════════════════════════════════════
    #  Change Tracking
    # ══════════════════════════════════════════════════════════

    def current_revision(self) -> int:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT COALESCE(MAX(revision), 0) AS rev FROM slots").fetchone()
            return row["rev"]
        finally:
            conn.close()

    def changes_since(self, revision: int) -> list[SlotChange]:
        """Slots written after *revision*, oldest first."""
        conn = self._get_connection()
        try:
            rows = conn.execute(
                "SELECT key, revision, writer FROM slots WHERE revision > ? ORDER BY revision",
                (revision,),
            ).fetchall()
            return [
                SlotChange(
                    key=row["key"],
                    revision=row["revision"],
                    external=row["writer"] != self._writer_id,
                )
                for row in rows
            ]
        finally:
            conn.close()
