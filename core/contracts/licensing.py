"""core/contracts/licensing.py
==========================

Codec activation contracts.

Some document families (DOCX conversion, encrypted PDFs) need a backend that
has to be present and usable before the stamping core is entered. Providers
validate a feature id; the manager caches the outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class LicenseState:
    """Represents the evaluated activation state for a codec family."""

    is_valid: bool
    reason: str = ""
    expires_at: Optional[datetime] = None


class ILicenseProvider(ABC):
    """Service that validates activation for features."""

    @abstractmethod
    def validate_feature(self, feature_id: str) -> LicenseState:
        """Return activation state for a given feature id."""
