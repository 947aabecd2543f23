"""
core/logging/logic/logger.py
============================

Thread-safe audit journal with a SQLite backend.

One row per stamping event (file stamped / failed / skipped, batch started /
finished). Diagnostic output goes through the stdlib ``logging`` module; this
journal is the durable record of what a run did to which file.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.logging.models.log_entry import LogEntry

_log = logging.getLogger(__name__)


def create_sqlite_connection(db_path: Path) -> sqlite3.Connection:
    """Create a sqlite3 connection with common defaults."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


class Logger:
    """Audit journal bound to one SQLite file."""

    def __init__(self, db_path: Path, *, enabled: bool = True) -> None:
        self._lock = threading.Lock()
        self.db_path: Path = Path(db_path)
        self.enabled = enabled
        self.entries: list[LogEntry] = []
        self._conn: sqlite3.Connection | None = None
        if self.enabled:
            try:
                self._ensure_db()
            except (sqlite3.Error, OSError) as exc:
                _log.warning("Audit journal unavailable (%s), continuing without it: %s", self.db_path, exc)
                self.enabled = False
                self.close()

    # ------------------------------------------------------------------ #
    #  Connection management (reuse single connection)                   #
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = create_sqlite_connection(self.db_path)
        return self._conn

    def close(self) -> None:
        """Close the database connection and release resources."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> LogEntry:
        """
        Record one journal entry.

        The entry is always kept in memory (``entries``); it is persisted only
        while the journal is enabled.
        """
        entry = LogEntry(
            id=None,
            timestamp=datetime.now(timezone.utc),
            log_level=level,
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message,
        )
        self.entries.append(entry)
        if self.enabled:
            try:
                self._insert_log(entry)
            except (sqlite3.Error, OSError) as exc:
                # the journal must never take a stamping run down with it
                _log.warning("Audit journal write failed (%s): %s", self.db_path, exc)
        return entry

    # ------------------------------------------------------------------ #
    #  Fetch / Query / Clear                                             #
    # ------------------------------------------------------------------ #
    def fetch_logs(self, limit: int = 100) -> List[LogEntry]:
        with self._lock:
            conn = self._get_connection()
            rows = conn.execute(
                "SELECT * FROM logs ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        with self._lock:
            conn = self._get_connection()

            query = "SELECT * FROM logs WHERE 1=1"
            params: list[object] = []

            if feature is not None:
                query += " AND feature = ?"
                params.append(feature)
            if event is not None:
                query += " AND event = ?"
                params.append(event)
            if reference_id is not None:
                query += " AND reference_id = ?"
                params.append(reference_id)
            if level is not None:
                query += " AND log_level = ?"
                params.append(level)

            query += " ORDER BY id DESC LIMIT ?"
            params.append(limit)

            rows = conn.execute(query, params).fetchall()
            return [LogEntry.from_dict(dict(row)) for row in rows]

    def clear_logs(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute("DELETE FROM logs")
            conn.commit()

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_db(self) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    feature TEXT NOT NULL,
                    event TEXT NOT NULL,
                    reference_id TEXT,
                    message TEXT,
                    log_level TEXT NOT NULL DEFAULT 'INFO'
                )
                """
            )
            conn.commit()

    def _insert_log(self, entry: LogEntry) -> None:
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                """
                INSERT INTO logs
                    (timestamp, feature, event, reference_id, message, log_level)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.timestamp.isoformat(),
                    entry.feature,
                    entry.event,
                    entry.reference_id,
                    entry.message,
                    entry.log_level,
                ),
            )
            conn.commit()

