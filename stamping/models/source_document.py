# stamping/models/source_document.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class SourceFormat(str, Enum):
    """Input formats accepted by the batch, keyed by lower-case extension."""
    PDF = "pdf"
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    DOCX = "docx"

    @classmethod
    def from_path(cls, path: Path) -> Optional["SourceFormat"]:
        try:
            return cls(path.suffix.lower().lstrip("."))
        except ValueError:
            return None

    @property
    def is_image(self) -> bool:
        return self in (SourceFormat.JPG, SourceFormat.JPEG, SourceFormat.PNG)


@dataclass(frozen=True)
class SourceDocument:
    """
    Read-only description of one input file.

    ``encrypted`` and ``password`` only carry meaning for PDFs; images and
    DOCX files are always normalized to an unprotected baseline PDF first.
    """
    path: Path
    format: SourceFormat
    encrypted: bool = False
    password: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class SourceMetadata:
    """Descriptive fields read from an encrypted source's Info dictionary."""
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    created_at: Optional[datetime] = None
    pdf_version: str = "1.7"
