# stamping/logic/stamping_service.py
from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, Optional, Set

from core.config.config_service import AppConfig, config_service
from core.licensing.logic.license_manager import (
    DOCX_CONVERSION,
    ENCRYPTED_PDF,
    LicenseManager,
    license_manager,
)
from core.logging.logic.logger import Logger

from .badge import prepare_badge
from .document_inspector import inspect
from .format_normalizer import docx_to_pdf, image_to_pdf
from .metadata_embedder import embed
from .page_compositor import compose_protected, compose_unprotected
from .stamp_planner import plan
from .token_generator import QrTokenGenerator
from .token_lifecycle import TokenLifecycle, purge_scratch_dir
from ..exceptions.errors import (
    ActivationError,
    DocumentIOError,
    FatalSetupError,
    FormatError,
    StampingError,
)
from ..models.output_document import OutputDocument
from ..models.source_document import SourceDocument, SourceFormat
from ..models.stamp_options import BatchReport, FileOutcome, StampOptions

logger = logging.getLogger(__name__)

_FEATURE_ID = "stamping"

Converter = Callable[[Path, Path], Path]


class StampingService:
    """
    Sequential batch front end of the stamping core.

    One input file is fully processed (inspected, planned, composited,
    embedded, written, cleaned up) before the next begins. File-scoped errors
    are logged and recorded; only workspace setup errors propagate.
    """

    def __init__(
        self,
        *,
        config: Optional[AppConfig] = None,
        audit: Optional[Logger] = None,
        licenses: Optional[LicenseManager] = None,
        docx_converter: Converter = docx_to_pdf,
        image_converter: Converter = image_to_pdf,
    ) -> None:
        self.config = config or config_service.app_config()
        self._audit = audit
        self.licenses = licenses or license_manager
        self.docx_converter = docx_converter
        self.image_converter = image_converter

    # -------- Workspace ------------------------------------------------------
    @property
    def audit(self) -> Logger:
        if self._audit is None:
            self._audit = Logger(
                self.config.database.logging,
                enabled=self.config.logging.audit_enabled,
            )
        return self._audit

    @property
    def output_dir(self) -> Path:
        return Path(self.config.paths.output_dir)

    @property
    def scratch_dir(self) -> Path:
        return Path(self.config.paths.scratch_dir)

    def prepare_workspace(self) -> None:
        for folder in (self.output_dir, self.scratch_dir):
            try:
                folder.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise FatalSetupError(f"Cannot create working directory {folder}: {exc}") from exc

    def output_path_for(self, source: Path) -> Path:
        return self.output_dir / (Path(source).stem + ".pdf")

    # -------- Batch ----------------------------------------------------------
    def process_directory(self, input_dir: Path, options: Optional[StampOptions] = None) -> BatchReport:
        """
        Stamp every eligible file of *input_dir*.

        Raises FatalSetupError when the working directories cannot be created
        or the input directory cannot be listed.
        """
        options = options or StampOptions()
        input_dir = Path(input_dir)
        self.prepare_workspace()
        try:
            entries = sorted(p for p in input_dir.iterdir() if not p.is_dir())
        except OSError as exc:
            raise FatalSetupError(f"Cannot list input directory {input_dir}: {exc}") from exc

        report = BatchReport(input_dir=input_dir)
        self.audit.log(_FEATURE_ID, "batch_started", reference_id=str(input_dir),
                       message=f"{len(entries)} entries")

        produced: Set[Path] = set()
        for entry in entries:
            outcome = self.process_file(entry, options)
            if outcome.output is not None:
                if outcome.output in produced:
                    logger.warning("Output %s was overwritten by %s", outcome.output, entry.name)
                produced.add(outcome.output)
            report.outcomes.append(outcome)
            logger.info("Processed file: %s", entry)

        report.cleanup_failures.extend(purge_scratch_dir(self.scratch_dir))
        self.audit.log(
            _FEATURE_ID, "batch_finished", reference_id=str(input_dir),
            message=f"ok={len(report.succeeded)} failed={len(report.failed)} skipped={len(report.skipped)}",
        )
        return report

    def process_file(self, path: Path, options: StampOptions) -> FileOutcome:
        """Per-file error boundary: never raises for file-scoped failures."""
        path = Path(path)
        fmt = SourceFormat.from_path(path)
        if fmt is None:
            reason = f"Unsupported file format: {path.suffix or '<none>'}"
            logger.warning("%s (%s)", reason, path)
            self.audit.log(_FEATURE_ID, "file_skipped", level="WARNING",
                           reference_id=str(path), message=reason)
            return FileOutcome(source=path, ok=False, error=reason, skipped=True)

        try:
            output = self._process(self.describe(path, fmt, options), options)
        except (StampingError, OSError) as exc:
            cause = f"{type(exc).__name__}: {exc}"
            logger.error("Error processing file %s: %s", path, cause)
            self.audit.log(_FEATURE_ID, "file_failed", level="ERROR",
                           reference_id=str(path), message=cause)
            return FileOutcome(source=path, ok=False, error=cause)

        self.audit.log(_FEATURE_ID, "file_stamped", reference_id=str(path), message=str(output))
        return FileOutcome(source=path, ok=True, output=output)

    # -------- Per-format pipeline -------------------------------------------
    def _activate(self, feature_id: str) -> None:
        state = self.licenses.activate(feature_id)
        if not state.is_valid:
            raise ActivationError(f"{feature_id} unavailable: {state.reason}")

    def describe(self, path: Path, fmt: SourceFormat, options: StampOptions) -> SourceDocument:
        """Build the source record; PDFs are inspected for access control."""
        encrypted = fmt == SourceFormat.PDF and inspect(path).encrypted
        return SourceDocument(path=Path(path), format=fmt, encrypted=encrypted,
                              password=options.pdf_password)

    def _process(self, source: SourceDocument, options: StampOptions) -> Path:
        output_path = self.output_path_for(source.path)

        if source.format == SourceFormat.PDF:
            if source.encrypted:
                self._activate(ENCRYPTED_PDF)
            self.stamp_pdf(source.path, output_path, options, protected=source.encrypted)
            return output_path

        with tempfile.TemporaryDirectory(prefix="qrstamp_") as tmp:
            baseline = Path(tmp) / (source.path.stem + ".pdf")
            if source.format == SourceFormat.DOCX:
                self._activate(DOCX_CONVERSION)
                self.docx_converter(source.path, baseline)
            elif source.format.is_image:
                self.image_converter(source.path, baseline)
            else:
                raise FormatError(f"Unsupported file format: {source.format.value}")
            if not baseline.is_file():
                raise DocumentIOError(f"Baseline PDF was not produced for {source.path}")
            self.stamp_pdf(baseline, output_path, options, protected=False)
        return output_path

    def stamp_pdf(self, source_pdf: Path, output_path: Path, options: StampOptions,
                  *, protected: bool) -> OutputDocument:
        """
        Plan, compose, embed and write one document. Token images and the
        scratch badge are deleted afterwards, whether or not this succeeded.
        """
        stamp_cfg = self.config.stamp
        lifecycle = TokenLifecycle()
        try:
            badge = lifecycle.track(
                prepare_badge(self.config.paths.badge_image, self.scratch_dir, size=int(stamp_cfg.footprint))
            )
            generator = QrTokenGenerator(
                self.scratch_dir, domain=stamp_cfg.verification_domain, pixels=stamp_cfg.qr_pixels
            )
            stamp_plan = plan(generator, options.custom_xy, on_mint=lifecycle.track_token)

            geometry = {
                "footprint": stamp_cfg.footprint,
                "badge_size": stamp_cfg.badge_size,
                "token_size": stamp_cfg.token_size,
            }
            if protected:
                doc = compose_protected(source_pdf, options.pdf_password, stamp_plan, badge, **geometry)
                data = embed(doc, password=options.pdf_password, settings=self.config.metadata)
            else:
                doc = compose_unprotected(source_pdf, stamp_plan, badge, **geometry)
                data = embed(doc, settings=self.config.metadata)

            _atomic_write(output_path, data)
            logger.debug("Wrote %s (%d pages)", output_path, doc.page_count)
            return doc
        finally:
            lifecycle.cleanup()


def _atomic_write(path: Path, data: bytes) -> None:
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError as exc:
        tmp.unlink(missing_ok=True)
        raise DocumentIOError(f"Cannot write {path}: {exc}") from exc
