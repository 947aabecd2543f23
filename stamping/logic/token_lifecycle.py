from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List

from ..models.stamp_plan import TokenRef

logger = logging.getLogger(__name__)


class TokenLifecycle:
    """
    File-scoped register of scratch images (QR tokens, resized badge).

    Usage::

        lifecycle = TokenLifecycle()
        try:
            ...  # plan, compose, embed, write
        finally:
            lifecycle.cleanup()
    """

    def __init__(self) -> None:
        self._paths: List[Path] = []

    def track(self, path: Path) -> Path:
        self._paths.append(Path(path))
        return path

    def track_token(self, token: TokenRef) -> None:
        self.track(token.image_path)

    @property
    def tracked(self) -> List[Path]:
        return list(self._paths)

    def cleanup(self) -> List[str]:
        """
        Delete every tracked file. Failures are logged and returned, never
        raised: the file they belong to is already finished.
        """
        failures: List[str] = []
        for path in self._paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not delete scratch file %s: %s", path, exc)
                failures.append(f"{path}: {exc}")
        self._paths.clear()
        return failures


def purge_scratch_dir(folder: Path) -> List[str]:
    """Empty *folder* at the end of a batch run; returns deletion failures."""
    failures: List[str] = []
    folder = Path(folder)
    if not folder.is_dir():
        return failures
    for entry in folder.iterdir():
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as exc:
            logger.warning("Could not purge %s: %s", entry, exc)
            failures.append(f"{entry}: {exc}")
    return failures
