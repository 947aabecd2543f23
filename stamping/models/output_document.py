# stamping/models/output_document.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pypdf import PdfWriter

from .source_document import SourceMetadata


class PageOrigin(str, Enum):
    """How a page's original content was carried into the output."""
    IMPORTED_TEMPLATE = "imported_template"
    RECONSTRUCTED = "reconstructed"


class OverlayKind(str, Enum):
    TOKEN = "token"
    BADGE = "badge"


@dataclass(frozen=True)
class OverlayInstruction:
    """One image drawn on a page, in points from the top-left page corner."""
    kind: OverlayKind
    token_id: uuid.UUID
    x: float
    y: float
    width: float
    height: float


@dataclass
class StampedPage:
    page_no: int  # 1-indexed
    origin: PageOrigin
    size: Tuple[float, float]
    overlays: List[OverlayInstruction] = field(default_factory=list)

    def token_overlays(self) -> List[OverlayInstruction]:
        return [o for o in self.overlays if o.kind == OverlayKind.TOKEN]


@dataclass
class OutputDocument:
    """
    Output built page by page by a compositor, serialized once by the
    metadata embedder and then discarded.
    """
    writer: PdfWriter
    origin: PageOrigin
    pages: List[StampedPage] = field(default_factory=list)
    source_metadata: Optional[SourceMetadata] = None
    encrypted: bool = False

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    author: str
    subject: str
    creator: str
    producer: str
    created_at: datetime
    modified_at: Optional[datetime] = None


@dataclass(frozen=True)
class InspectionResult:
    encrypted: bool
    page_count: Optional[int] = None  # unknown until an encrypted file is decrypted
