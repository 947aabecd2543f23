from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4

from stamping.exceptions.errors import ConversionError, DocumentIOError, FormatError
from stamping.logic import format_normalizer
from stamping.logic.format_normalizer import docx_to_pdf, image_to_pdf
from stamping.tests.pdf_fixtures import make_pdf, make_png


class TestImageToPdf(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)

    def tearDown(self) -> None:
        self._td.cleanup()

    def _single_a4_page(self, pdf: Path) -> None:
        reader = PdfReader(str(pdf))
        self.assertEqual(len(reader.pages), 1)
        box = reader.pages[0].mediabox
        self.assertAlmostEqual(float(box.width), A4[0], places=2)
        self.assertAlmostEqual(float(box.height), A4[1], places=2)

    def test_png(self) -> None:
        out = image_to_pdf(make_png(self.root / "a.png"), self.root / "out" / "a.pdf")
        self.assertTrue(out.is_file())
        self._single_a4_page(out)

    def test_jpeg_larger_than_page(self) -> None:
        src = self.root / "big.jpg"
        Image.new("RGB", (2000, 3000), (10, 200, 10)).save(src, format="JPEG")
        self._single_a4_page(image_to_pdf(src, self.root / "big.pdf"))

    def test_missing_image(self) -> None:
        with self.assertRaises(DocumentIOError):
            image_to_pdf(self.root / "none.png", self.root / "none.pdf")

    def test_corrupt_image(self) -> None:
        bad = self.root / "bad.png"
        bad.write_bytes(b"not an image")
        with self.assertRaises(FormatError):
            image_to_pdf(bad, self.root / "bad.pdf")


class TestDocxToPdf(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.docx = self.root / "letter.docx"
        self.docx.write_bytes(b"PK\x03\x04 placeholder")

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_missing_source(self) -> None:
        with self.assertRaises(DocumentIOError):
            docx_to_pdf(self.root / "missing.docx", self.root / "missing.pdf")

    def test_no_backend(self) -> None:
        with mock.patch.object(format_normalizer, "_strategy_docx2pdf", return_value=None), \
                mock.patch.object(format_normalizer, "_strategy_libreoffice", return_value=None):
            with self.assertRaises(ConversionError):
                docx_to_pdf(self.docx, self.root / "out.pdf")

    def test_falls_through_to_next_strategy(self) -> None:
        def fake_libreoffice(src: Path, dst: Path) -> Path:
            return make_pdf(dst, pages=1)

        target = self.root / "out.pdf"
        with mock.patch.object(format_normalizer, "_strategy_docx2pdf", lambda src, dst: None), \
                mock.patch.object(format_normalizer, "_strategy_libreoffice", fake_libreoffice):
            out = docx_to_pdf(self.docx, target)
        self.assertEqual(out, target.resolve())
        self.assertTrue(out.is_file())

    def test_conversion_error_is_a_format_error(self) -> None:
        self.assertTrue(issubclass(ConversionError, FormatError))


if __name__ == "__main__":
    unittest.main()
