from __future__ import annotations

import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..exceptions.errors import DocumentIOError, FormatError


def prepare_badge(source: Path, scratch_dir: Path, size: int = 75) -> Path:
    """
    Resize the badge image to *size* x *size* (Lanczos) into a scratch PNG.

    One scratch badge is created per stamped document; the caller tracks it
    for deletion once the document is written.
    """
    source = Path(source)
    target = Path(scratch_dir) / f"badge_{uuid.uuid4().hex}.png"
    try:
        with Image.open(source) as img:
            img = img.convert("RGBA")
            img.resize((size, size), Image.Resampling.LANCZOS).save(target, format="PNG")
    except FileNotFoundError as exc:
        raise DocumentIOError(f"Badge image not found: {source}") from exc
    except UnidentifiedImageError as exc:
        raise FormatError(f"Badge image is not a readable image: {source}") from exc
    except OSError as exc:
        raise DocumentIOError(f"Cannot prepare badge {source}: {exc}") from exc
    return target
