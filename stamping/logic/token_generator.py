from __future__ import annotations

import io
import logging
import uuid
from pathlib import Path
from typing import Protocol

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from PIL import Image

from ..exceptions.errors import DocumentIOError
from ..models.stamp_plan import TokenRef

logger = logging.getLogger(__name__)


class TokenGenerator(Protocol):
    def mint(self) -> TokenRef: ...


def verification_url(domain: str, token_id: uuid.UUID) -> str:
    return f"https://{domain}/verify/{token_id}"


class QrTokenGenerator:
    """Writes one QR PNG per token into the scratch directory: <uuid>.png"""

    def __init__(self, scratch_dir: Path, *, domain: str = "privy.id", pixels: int = 125) -> None:
        self.scratch_dir = Path(scratch_dir)
        self.domain = domain
        self.pixels = int(pixels)

    def _render(self, payload: str) -> Image.Image:
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, border=2)
        qr.add_data(payload)
        qr.make(fit=True)
        buf = io.BytesIO()
        qr.make_image(fill_color="black", back_color="white").save(buf)
        buf.seek(0)
        img = Image.open(buf).convert("RGB")
        # NEAREST keeps module edges crisp for scanners
        return img.resize((self.pixels, self.pixels), Image.Resampling.NEAREST)

    def mint(self) -> TokenRef:
        token_id = uuid.uuid4()
        url = verification_url(self.domain, token_id)
        path = self.scratch_dir / f"{token_id}.png"
        try:
            self._render(url).save(path, format="PNG")
        except OSError as exc:
            raise DocumentIOError(f"Cannot write token image {path}: {exc}") from exc
        logger.debug("Minted token %s -> %s", token_id, path)
        return TokenRef(id=token_id, image_path=path, target_url=url)
