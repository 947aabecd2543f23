"""
Baseline-PDF conversion for non-PDF inputs.

Images  -> one A4 page, image anchored at the top-left corner at native size
           (scaled down to fit when larger than the page).
DOCX    -> strategy chain, first success wins:
           1) docx2pdf (Windows/macOS, drives Word)
           2) LibreOffice headless (cross-platform)

Strategies return the produced path or None; the public functions raise.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..exceptions.errors import ConversionError, DocumentIOError, FormatError

logger = logging.getLogger(__name__)

# ------------------------------- utils -------------------------------------


def _abspath(p: Path | str) -> Path:
    return Path(p).expanduser().resolve()


def _ensure_outdir(dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)


# ------------------------------- images ------------------------------------


def image_to_pdf(image_path: Path, pdf_path: Path) -> Path:
    """Place a JPG/PNG on a single A4 page and write it to *pdf_path*."""
    image_path = _abspath(image_path)
    pdf_path = _abspath(pdf_path)
    _ensure_outdir(pdf_path)

    try:
        with Image.open(image_path) as img:
            img.load()
            # PDF points vs. pixels: 1 px is drawn as 1 pt, like the page templates
            img_w, img_h = float(img.width), float(img.height)
            reader = ImageReader(img.convert("RGBA") if img.mode in ("P", "LA") else img.copy())
    except FileNotFoundError as exc:
        raise DocumentIOError(f"Image not found: {image_path}") from exc
    except UnidentifiedImageError as exc:
        raise FormatError(f"Not a readable image: {image_path}") from exc
    except OSError as exc:
        raise DocumentIOError(f"Cannot read image {image_path}: {exc}") from exc

    page_w, page_h = A4
    scale = min(1.0, page_w / img_w, page_h / img_h)
    draw_w, draw_h = img_w * scale, img_h * scale

    try:
        c = canvas.Canvas(str(pdf_path), pagesize=A4)
        c.drawImage(reader, 0, page_h - draw_h, width=draw_w, height=draw_h, mask="auto")
        c.showPage()
        c.save()
    except OSError as exc:
        raise DocumentIOError(f"Cannot write {pdf_path}: {exc}") from exc
    return pdf_path


# ------------------------------ strategy 1 ---------------------------------
# docx2pdf (internally uses Word on Windows/macOS)

def _strategy_docx2pdf(src: Path, dst: Path) -> Optional[Path]:
    if sys.platform not in ("win32", "darwin"):
        return None
    try:
        from docx2pdf import convert  # type: ignore
    except ImportError:
        return None  # not installed -> try next strategy

    # docx2pdf writes into a directory; we convert to a temp dir then move
    with tempfile.TemporaryDirectory() as tmpdir:
        try:
            convert(str(src), tmpdir)
        except Exception as exc:  # Word automation errors are not typed
            logger.debug("docx2pdf failed for %s: %s", src, exc)
            return None

        produced = next(Path(tmpdir).glob("*.pdf"), None)
        if produced is None:
            return None
        _ensure_outdir(dst)
        shutil.move(str(produced), str(dst))
        return dst if dst.is_file() else None


# ------------------------------ strategy 2 ---------------------------------
# LibreOffice headless

def _strategy_libreoffice(src: Path, dst: Path) -> Optional[Path]:
    soffice = shutil.which("soffice") or shutil.which("libreoffice")
    if not soffice:
        return None

    _ensure_outdir(dst)
    with tempfile.TemporaryDirectory() as outdir:
        cmd = [soffice, "--headless", "--convert-to", "pdf", "--outdir", outdir, str(src)]
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except (OSError, subprocess.CalledProcessError) as exc:
            logger.debug("LibreOffice failed for %s: %s", src, exc)
            return None

        produced = Path(outdir) / (src.stem + ".pdf")
        if not produced.is_file():
            return None
        shutil.move(str(produced), str(dst))
    return dst if dst.is_file() else None


# ------------------------------ public API ---------------------------------


def docx_to_pdf(docx_path: Path, pdf_path: Path) -> Path:
    """
    Convert a DOCX document to PDF via the first strategy that works.
    Raises ConversionError when none produced a file.
    """
    src = _abspath(docx_path)
    dst = _abspath(pdf_path)
    if not src.is_file():
        raise DocumentIOError(f"Document not found: {src}")

    for strategy in (_strategy_docx2pdf, _strategy_libreoffice):
        out = strategy(src, dst)
        if out:
            logger.debug("Converted %s via %s", src, strategy.__name__)
            return out

    raise ConversionError(f"No conversion backend could convert {src.name} (os={os.name})")
