"""Stamping feature exceptions."""
from __future__ import annotations


class StampingError(Exception):
    """Base exception for the stamping feature."""


class DocumentIOError(StampingError):
    """Raised when a file cannot be opened, read or written."""


class FormatError(StampingError):
    """Raised for unsupported extensions and malformed PDFs or images."""


class ConversionError(FormatError):
    """Raised when no conversion backend produced a baseline PDF."""


class AuthError(StampingError):
    """Raised when the password for an encrypted PDF is wrong or missing."""


class PageOutOfRange(StampingError):
    """Raised by the page importer when asked for a page past the last one.

    This is the expected end-of-document signal, not a failure.
    """

    def __init__(self, page_no: int, page_count: int) -> None:
        super().__init__(f"Page {page_no} out of range (1..{page_count})")
        self.page_no = page_no
        self.page_count = page_count


class ActivationError(StampingError):
    """Raised when a codec family could not be activated for a file."""


class FatalSetupError(StampingError):
    """Raised when working directories cannot be prepared; aborts the batch."""
