from __future__ import annotations

import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..exceptions.errors import DocumentIOError, FormatError
from ..models.output_document import InspectionResult

logger = logging.getLogger(__name__)


def open_reader(path: Path) -> PdfReader:
    """
    Open *path* with pypdf, mapping failures onto the stamping taxonomy.
    """
    try:
        return PdfReader(str(path))
    except (FileNotFoundError, PermissionError, IsADirectoryError) as exc:
        raise DocumentIOError(f"Cannot open {path}: {exc}") from exc
    except PdfReadError as exc:
        raise FormatError(f"Not a well-formed PDF: {path}: {exc}") from exc
    except (ValueError, KeyError) as exc:
        # pypdf surfaces some structural damage as plain ValueError/KeyError
        raise FormatError(f"Not a well-formed PDF: {path}: {exc}") from exc


def inspect(path: Path) -> InspectionResult:
    """Read-only probe: is the PDF access-controlled, and how long is it?"""
    path = Path(path)
    reader = open_reader(path)
    if reader.is_encrypted:
        logger.debug("%s is encrypted", path)
        return InspectionResult(encrypted=True)
    try:
        page_count = len(reader.pages)
    except PdfReadError as exc:
        raise FormatError(f"Cannot read page tree of {path}: {exc}") from exc
    return InspectionResult(encrypted=False, page_count=page_count)
