# stamping/models/stamp_options.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class StampOptions:
    """
    Per-call options of a batch run.

    ``x`` and ``y`` enable the fifth, custom stamp position only together.
    ``pdf_password`` decrypts encrypted sources and re-encrypts their outputs.
    """
    x: Optional[float] = None
    y: Optional[float] = None
    pdf_password: Optional[str] = field(default=None, repr=False)

    @property
    def custom_xy(self) -> Optional[Tuple[float, float]]:
        if self.x is None or self.y is None:
            return None
        return float(self.x), float(self.y)


@dataclass(frozen=True)
class FileOutcome:
    source: Path
    ok: bool
    output: Optional[Path] = None
    error: Optional[str] = None
    skipped: bool = False

    def summary(self) -> str:
        if self.skipped:
            return f"SKIPPED {self.source.name}: {self.error}"
        if self.ok:
            return f"OK      {self.source.name} -> {self.output}"
        return f"FAILED  {self.source.name}: {self.error}"


@dataclass
class BatchReport:
    input_dir: Path
    outcomes: List[FileOutcome] = field(default_factory=list)
    cleanup_failures: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok and not o.skipped]

    @property
    def skipped(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.skipped]

    @property
    def ok(self) -> bool:
        return not self.failed
