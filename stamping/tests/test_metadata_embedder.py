from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pypdf import PdfReader

from stamping.exceptions.errors import AuthError
from stamping.logic.badge import prepare_badge
from stamping.logic.metadata_embedder import build_metadata, build_xmp_packet, embed, pdf_date
from stamping.logic.page_compositor import compose_protected, compose_unprotected
from stamping.logic.stamp_planner import plan
from stamping.logic.token_generator import QrTokenGenerator
from stamping.models.source_document import SourceMetadata
from stamping.tests.pdf_fixtures import (
    PASSWORD,
    PRODUCER,
    make_badge,
    make_config,
    make_encrypted_pdf,
    make_pdf,
)

NOW = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


class TestPdfDate(unittest.TestCase):
    def test_utc(self) -> None:
        self.assertEqual(pdf_date(NOW), "D:20240506070809+00'00'")

    def test_negative_offset(self) -> None:
        dt = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone(-timedelta(hours=3, minutes=30)))
        self.assertEqual(pdf_date(dt), "D:20240101000000-03'30'")

    def test_naive(self) -> None:
        self.assertEqual(pdf_date(datetime(2024, 1, 1)), "D:20240101000000")


class TestBuildMetadata(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.settings = make_config(Path(self._td.name)).metadata

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_unprotected_has_no_modification_date(self) -> None:
        meta = build_metadata(self.settings, protected=False, now=NOW)
        self.assertEqual(meta.created_at, NOW)
        self.assertIsNone(meta.modified_at)
        self.assertEqual(meta.producer, PRODUCER)

    def test_protected_preserves_original_creation(self) -> None:
        created = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        meta = build_metadata(self.settings, protected=True, original=SourceMetadata(created_at=created), now=NOW)
        self.assertEqual(meta.created_at, created)
        self.assertEqual(meta.modified_at, NOW)

    def test_protected_without_original_date(self) -> None:
        meta = build_metadata(self.settings, protected=True, original=SourceMetadata(), now=NOW)
        self.assertEqual(meta.created_at, NOW)

    def test_xmp_packet_carries_producer_and_rights(self) -> None:
        meta = build_metadata(self.settings, protected=True, now=NOW)
        xmp = build_xmp_packet(meta, pdf_version="1.7", copyright="Copyright Example").decode("utf-8")
        self.assertTrue(xmp.startswith("<?xpacket begin="))
        self.assertIn(PRODUCER, xmp)
        self.assertIn("Copyright Example", xmp)
        self.assertIn("<pdf:PDFVersion>1.7</pdf:PDFVersion>", xmp)


class TestEmbed(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        scratch = self.root / "img"
        scratch.mkdir()
        self.settings = make_config(self.root).metadata
        self.badge = prepare_badge(make_badge(self.root / "b.png"), scratch)
        self.plan = plan(QrTokenGenerator(scratch))

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_unprotected_output(self) -> None:
        doc = compose_unprotected(make_pdf(self.root / "a.pdf", pages=2), self.plan, self.badge)
        out = self.root / "out.pdf"
        out.write_bytes(embed(doc, settings=self.settings, now=NOW))

        reader = PdfReader(str(out))
        self.assertFalse(reader.is_encrypted)
        info = reader.metadata
        self.assertEqual(info.producer, PRODUCER)
        self.assertEqual(info.title, "Metadata Baru")
        self.assertEqual(info.creation_date.year, 2024)
        self.assertNotIn("/ModDate", info)
        self.assertFalse(doc.encrypted)

    def test_protected_output(self) -> None:
        src = make_encrypted_pdf(self.root / "e.pdf", pages=3)
        doc = compose_protected(src, PASSWORD, self.plan, self.badge)
        out = self.root / "out.pdf"
        out.write_bytes(embed(doc, password=PASSWORD, settings=self.settings, now=NOW))
        self.assertTrue(doc.encrypted)

        reader = PdfReader(str(out))
        self.assertTrue(reader.is_encrypted)
        self.assertFalse(PdfReader(str(out)).decrypt("wrong"))
        self.assertTrue(reader.decrypt(PASSWORD))
        self.assertEqual(len(reader.pages), 3)

        info = reader.metadata
        self.assertEqual(info.producer, PRODUCER)
        self.assertEqual(info.creation_date.year, 2020)
        self.assertEqual(info.modification_date.year, 2024)

        xmp = reader.trailer["/Root"]["/Metadata"].get_object().get_data().decode("utf-8")
        self.assertIn(PRODUCER, xmp)

    def test_protected_needs_password(self) -> None:
        doc = compose_protected(make_encrypted_pdf(self.root / "e.pdf"), PASSWORD, self.plan, self.badge)
        with self.assertRaises(AuthError):
            embed(doc, password=None, settings=self.settings)


if __name__ == "__main__":
    unittest.main()
