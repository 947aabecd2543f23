"""
Page compositor: carries every source page into a new PDF and overlays the
stamp plan on it.

Two strategies share one ``StampPlan`` and one ``OverlayRenderer``:

* unprotected – each page is imported as an opaque template onto a fresh
  output page of the same size; enumeration stops on the importer's typed
  ``PageOutOfRange`` signal.
* protected   – the source is decrypted and each page is re-emitted from its
  decoded object graph before the overlay is merged.

Both produce the same page count and identical overlay placement.
"""
from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Optional

from pypdf import PageObject, PasswordType, PdfReader, PdfWriter, Transformation
from pypdf.errors import DependencyError, PdfReadError

from .document_inspector import open_reader
from .overlay_renderer import OverlayRenderer
from ..exceptions.errors import ActivationError, AuthError, FormatError, PageOutOfRange
from ..models.output_document import OutputDocument, PageOrigin, StampedPage
from ..models.source_document import SourceMetadata
from ..models.stamp_plan import BADGE_SIZE, QR_FOOTPRINT, TOKEN_SIZE, StampPlan

logger = logging.getLogger(__name__)

_PAGE_ERRORS = (PdfReadError, KeyError, ValueError, TypeError)


class PageImporter:
    """Hands out the pages of an unprotected PDF by 1-based page number."""

    def __init__(self, reader: PdfReader) -> None:
        self._reader = reader
        try:
            self.page_count = len(reader.pages)
        except _PAGE_ERRORS as exc:
            raise FormatError(f"Cannot read page tree: {exc}") from exc

    def import_page(self, page_no: int) -> PageObject:
        if page_no < 1 or page_no > self.page_count:
            raise PageOutOfRange(page_no, self.page_count)
        try:
            page = self._reader.pages[page_no - 1]
            if page.rotation:
                page.transfer_rotation_to_content()
            return page
        except _PAGE_ERRORS as exc:
            raise FormatError(f"Malformed page {page_no}: {exc}") from exc


def _box(page: PageObject) -> tuple[float, float, float, float]:
    box = page.mediabox
    return float(box.left), float(box.bottom), float(box.width), float(box.height)


def _merge_overlay(page: PageObject, renderer: OverlayRenderer, page_no: int,
                   origin: PageOrigin) -> StampedPage:
    left, bottom, width, height = _box(page)
    rendered = renderer.overlay_for(width, height)
    if left or bottom:
        page.merge_transformed_page(rendered.page, Transformation().translate(tx=left, ty=bottom))
    else:
        page.merge_page(rendered.page)
    return StampedPage(
        page_no=page_no,
        origin=origin,
        size=(width, height),
        overlays=list(rendered.instructions),
    )


def compose_unprotected(
    source_path: Path,
    plan: StampPlan,
    badge_path: Path,
    *,
    footprint: float = QR_FOOTPRINT,
    badge_size: float = BADGE_SIZE,
    token_size: float = TOKEN_SIZE,
) -> OutputDocument:
    source_path = Path(source_path)
    reader = open_reader(source_path)
    if reader.is_encrypted:
        raise AuthError(f"{source_path} is encrypted; use the protected strategy")

    importer = PageImporter(reader)
    if importer.page_count == 0:
        raise FormatError(f"{source_path} has no readable pages")
    renderer = OverlayRenderer(plan, badge_path, footprint=footprint, badge_size=badge_size,
                               token_size=token_size)
    doc = OutputDocument(writer=PdfWriter(), origin=PageOrigin.IMPORTED_TEMPLATE)

    for page_no in itertools.count(1):
        try:
            src = importer.import_page(page_no)
        except PageOutOfRange:
            break

        left, bottom, width, height = _box(src)
        out_page = PageObject.create_blank_page(width=width, height=height)
        try:
            out_page.merge_transformed_page(src, Transformation().translate(tx=-left, ty=-bottom))
        except _PAGE_ERRORS as exc:
            raise FormatError(f"Cannot import page {page_no} of {source_path}: {exc}") from exc

        doc.pages.append(_merge_overlay(out_page, renderer, page_no, PageOrigin.IMPORTED_TEMPLATE))
        doc.writer.add_page(out_page)

    logger.debug("Composed %d page(s) from %s (template import)", doc.page_count, source_path)
    return doc


def _read_source_metadata(reader: PdfReader, source_path: Path) -> Optional[SourceMetadata]:
    info = reader.metadata
    if info is None:
        return None
    try:
        created_at = info.creation_date
    except ValueError as exc:
        logger.warning("Ignoring unparsable creation date in %s: %s", source_path, exc)
        created_at = None
    header = reader.pdf_header or ""
    version = header.replace("%PDF-", "").strip() or "1.7"
    return SourceMetadata(
        title=info.title,
        author=info.author,
        subject=info.subject,
        creator=info.creator,
        producer=info.producer,
        created_at=created_at,
        pdf_version=version,
    )


def compose_protected(
    source_path: Path,
    password: Optional[str],
    plan: StampPlan,
    badge_path: Path,
    *,
    footprint: float = QR_FOOTPRINT,
    badge_size: float = BADGE_SIZE,
    token_size: float = TOKEN_SIZE,
) -> OutputDocument:
    source_path = Path(source_path)
    reader = open_reader(source_path)

    if reader.is_encrypted:
        if not password:
            raise AuthError(f"{source_path} is encrypted and no PDF password was given")
        try:
            result = reader.decrypt(password)
        except DependencyError as exc:
            raise ActivationError(f"Cannot decrypt {source_path}: {exc}") from exc
        if result == PasswordType.NOT_DECRYPTED:
            raise AuthError(f"Wrong password for {source_path}")

    try:
        page_count = len(reader.pages)
    except _PAGE_ERRORS as exc:
        raise FormatError(f"Cannot read page tree of {source_path}: {exc}") from exc
    if page_count == 0:
        raise FormatError(f"{source_path} has no readable pages")

    renderer = OverlayRenderer(plan, badge_path, footprint=footprint, badge_size=badge_size,
                               token_size=token_size)
    doc = OutputDocument(
        writer=PdfWriter(),
        origin=PageOrigin.RECONSTRUCTED,
        source_metadata=_read_source_metadata(reader, source_path),
    )

    for page_no in range(1, page_count + 1):
        try:
            out_page = doc.writer.add_page(reader.pages[page_no - 1])
        except _PAGE_ERRORS as exc:
            raise FormatError(f"Cannot reconstruct page {page_no} of {source_path}: {exc}") from exc

        doc.pages.append(_merge_overlay(out_page, renderer, page_no, PageOrigin.RECONSTRUCTED))

    logger.debug("Composed %d page(s) from %s (reconstructed)", doc.page_count, source_path)
    return doc
