"""
Command line entry point: stamp every eligible file of a directory.

    qr-stamper INPUT_DIR [--x X --y Y] [--pdf-password PW]
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

from core.config.config_service import config_service
from stamping.exceptions.errors import FatalSetupError
from stamping.logic.stamping_service import StampingService
from stamping.models.stamp_options import StampOptions


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="qr-stamper",
        description="Convert images/DOCX/PDF to PDF and stamp every page with verification QR codes.",
    )
    p.add_argument("input_dir", type=Path, help="Directory with .pdf/.jpg/.jpeg/.png/.docx files.")
    p.add_argument("--x", type=float, default=None, help="X of an extra custom stamp (needs --y).")
    p.add_argument("--y", type=float, default=None, help="Y of an extra custom stamp (needs --x).")
    p.add_argument("--pdf-password", default=None,
                   help="Password of encrypted PDFs; also used to re-encrypt their outputs.")
    p.add_argument("--output-dir", type=Path, default=None, help="Override [Paths] output_dir.")
    p.add_argument("--scratch-dir", type=Path, default=None, help="Override [Paths] scratch_dir.")
    p.add_argument("--badge", type=Path, default=None, help="Override [Paths] badge_image.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if (args.x is None) != (args.y is None):
        parser.error("--x and --y must be given together")

    config = config_service.app_config()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    overrides = {
        "output_dir": args.output_dir,
        "scratch_dir": args.scratch_dir,
        "badge_image": args.badge,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = dataclasses.replace(config, paths=dataclasses.replace(config.paths, **overrides))

    service = StampingService(config=config)
    options = StampOptions(x=args.x, y=args.y, pdf_password=args.pdf_password)
    try:
        report = service.process_directory(args.input_dir, options)
    except FatalSetupError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    for outcome in report.outcomes:
        print(outcome.summary())
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
