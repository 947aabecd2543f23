"""
core/licensing/logic/license_manager.py

Explicit, idempotent activation of codec families.

The orchestrator calls ``activate(feature_id)`` before it hands a DOCX file or
an encrypted PDF to the stamping core. A feature that was activated once stays
active for the rest of the process; a failed activation is reported to the
caller and not cached, so the next file retries.
"""

from __future__ import annotations

import importlib.util
import logging
import shutil
import sys
from threading import RLock
from typing import Dict, Optional

from core.contracts.licensing import ILicenseProvider, LicenseState

logger = logging.getLogger(__name__)

DOCX_CONVERSION = "docx_conversion"
ENCRYPTED_PDF = "encrypted_pdf"


class CodecAvailabilityProvider(ILicenseProvider):
    """Validates that the backend behind a codec family is usable here."""

    def validate_feature(self, feature_id: str) -> LicenseState:
        if feature_id == DOCX_CONVERSION:
            if sys.platform in ("win32", "darwin") and importlib.util.find_spec("docx2pdf"):
                return LicenseState(True, "docx2pdf")
            if shutil.which("soffice") or shutil.which("libreoffice"):
                return LicenseState(True, "libreoffice")
            return LicenseState(False, "No DOCX conversion backend (docx2pdf/LibreOffice) available")
        if feature_id == ENCRYPTED_PDF:
            if importlib.util.find_spec("cryptography"):
                return LicenseState(True, "cryptography")
            return LicenseState(False, "AES support requires the 'cryptography' package")
        return LicenseState(False, f"Unknown feature: {feature_id}")


class LicenseManager:
    def __init__(self, provider: Optional[ILicenseProvider] = None) -> None:
        self.provider = provider or CodecAvailabilityProvider()
        self._active: Dict[str, LicenseState] = {}
        self._lock = RLock()

    def is_active(self, feature_id: str) -> bool:
        return feature_id in self._active

    def activate(self, feature_id: str) -> LicenseState:
        """Activate *feature_id*; short-circuits when already active."""
        with self._lock:
            state = self._active.get(feature_id)
            if state is not None:
                return state
            state = self.provider.validate_feature(feature_id)
            if state.is_valid:
                self._active[feature_id] = state
                logger.info("Activated %s (%s)", feature_id, state.reason)
            else:
                logger.warning("Activation of %s failed: %s", feature_id, state.reason)
            return state

    def reset(self) -> None:
        with self._lock:
            self._active.clear()


# Global instance
license_manager = LicenseManager()
