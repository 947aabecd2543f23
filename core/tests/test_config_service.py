"""
core/tests/test_config_service.py

Layering and casting of the typed configuration. Files are disabled so only
embedded defaults and environment overlays take part.
"""

from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from core.config.config_service import ConfigService


class TestConfigService(unittest.TestCase):
    def test_embedded_defaults(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            svc = ConfigService(use_files=False)
        self.assertEqual(svc.stamp.verification_domain, "privy.id")
        self.assertEqual(svc.stamp.qr_pixels, 125)
        self.assertEqual(svc.stamp.footprint, 75.0)
        self.assertEqual(svc.stamp.token_size, 70.0)
        self.assertEqual(svc.paths.scratch_dir, Path("img"))
        self.assertEqual(svc.metadata.producer, "MajuTumbuhBersama")
        self.assertTrue(svc.logging.audit_enabled)
        self.assertEqual(svc.meta_source("Stamp", "qr_pixels"), {"layer": "code", "source": "embedded"})

    def test_env_overlay_and_casting(self) -> None:
        env = {
            "QRSTAMP_STAMP__QR_PIXELS": "200",
            "QRSTAMP_STAMP__VERIFICATION_DOMAIN": "verify.example",
            "QRSTAMP_LOGGING__AUDIT_ENABLED": "no",
            "QRSTAMP_PATHS__OUTPUT_DIR": "/tmp/stamped",
            "QRSTAMP_IGNORED": "x",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            svc = ConfigService(use_files=False)
        self.assertEqual(svc.stamp.qr_pixels, 200)
        self.assertEqual(svc.stamp.verification_domain, "verify.example")
        self.assertFalse(svc.logging.audit_enabled)
        self.assertEqual(svc.paths.output_dir, Path("/tmp/stamped"))
        self.assertEqual(svc.meta_source("Stamp", "qr_pixels")["layer"], "env")

    def test_get_with_cast(self) -> None:
        with mock.patch.dict(os.environ, {"QRSTAMP_STAMP__FOOTPRINT": "80.5"}, clear=True):
            svc = ConfigService(use_files=False)
        self.assertEqual(svc.get("Stamp", "footprint", cast=float), 80.5)
        self.assertEqual(svc.get("Stamp", "qr_pixels", cast=int), 125)
        self.assertIsNone(svc.get("Stamp", "unknown"))

    def test_app_config_snapshot(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            cfg = ConfigService(use_files=False).app_config()
        self.assertEqual(cfg.metadata.title, "Metadata Baru")
        self.assertEqual(cfg.stamp.badge_size, 15.0)


if __name__ == "__main__":
    unittest.main()
