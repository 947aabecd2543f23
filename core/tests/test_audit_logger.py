"""
core/tests/test_audit_logger.py

SQLite audit journal: persistence, filtering and the disabled mode.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.logging.logic.logger import Logger


class TestAuditLogger(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.db = Path(self._td.name) / "sub" / "logs.db"
        self.journal = Logger(self.db)

    def tearDown(self) -> None:
        self.journal.close()
        self._td.cleanup()

    def test_log_and_fetch(self) -> None:
        self.journal.log("stamping", "file_stamped", reference_id="a.pdf", message="output/a.pdf")
        self.journal.log("stamping", "file_failed", level="ERROR", reference_id="b.pdf", message="AuthError")
        self.assertTrue(self.db.is_file())

        rows = self.journal.fetch_logs()
        self.assertEqual([r.event for r in rows], ["file_failed", "file_stamped"])
        self.assertIsNotNone(rows[0].id)
        self.assertEqual(rows[0].as_dict()["log_level"], "ERROR")

    def test_query_filters(self) -> None:
        self.journal.log("stamping", "file_stamped", reference_id="a.pdf")
        self.journal.log("stamping", "file_stamped", reference_id="b.pdf")
        self.journal.log("stamping", "file_skipped", level="WARNING", reference_id="c.txt")

        self.assertEqual(len(self.journal.query_logs(event="file_stamped")), 2)
        self.assertEqual(self.journal.query_logs(level="WARNING")[0].reference_id, "c.txt")
        self.assertEqual(len(self.journal.query_logs(reference_id="a.pdf", limit=5)), 1)

        self.journal.clear_logs()
        self.assertEqual(self.journal.fetch_logs(), [])

    def test_disabled_journal_keeps_memory_only(self) -> None:
        db = Path(self._td.name) / "off.db"
        journal = Logger(db, enabled=False)
        entry = journal.log("stamping", "batch_started")
        self.assertEqual(journal.entries, [entry])
        self.assertFalse(db.exists())

    def test_unusable_path_disables_journal(self) -> None:
        blocker = Path(self._td.name) / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with self.assertLogs("core.logging.logic.logger", level="WARNING"):
            journal = Logger(blocker / "logs.db")
        self.assertFalse(journal.enabled)
        entry = journal.log("stamping", "batch_started")
        self.assertEqual(journal.entries, [entry])


if __name__ == "__main__":
    unittest.main()
