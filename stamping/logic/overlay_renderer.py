from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Tuple

from pypdf import PageObject, PdfReader
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..exceptions.errors import DocumentIOError, FormatError
from ..models.output_document import OverlayInstruction, OverlayKind
from ..models.stamp_plan import BADGE_SIZE, QR_FOOTPRINT, TOKEN_SIZE, StampPlan

logger = logging.getLogger(__name__)


@dataclass
class RenderedOverlay:
    page: PageObject
    instructions: List[OverlayInstruction]


def _clamp(value: float, extent: float, size: float) -> float:
    return min(max(value, 0.0), max(extent - size, 0.0))


class OverlayRenderer:
    """
    Renders the stamp constellation of one plan as a single-page PDF overlay
    (same size as the target page) that both compositor strategies merge on
    top of the original content.

    Plan coordinates are measured from the top-left page corner; reportlab
    draws from the bottom-left, so y is flipped against the page height.
    A marker that would cross the page edge (custom positions, pages smaller
    than A4) is pulled back inside; token and badge move together.
    One overlay is rendered per distinct page size and then reused.
    """

    def __init__(
        self,
        plan: StampPlan,
        badge_path: Path,
        *,
        footprint: float = QR_FOOTPRINT,
        badge_size: float = BADGE_SIZE,
        token_size: float = TOKEN_SIZE,
    ) -> None:
        self.plan = plan
        self.badge_path = Path(badge_path)
        self.footprint = float(footprint)
        self.badge_size = float(badge_size)
        self.token_size = float(token_size)
        self._cache: Dict[Tuple[float, float], RenderedOverlay] = {}

    def instructions(self, page_w: float, page_h: float) -> List[OverlayInstruction]:
        """Token then badge, for every position of the plan, in plan order."""
        out: List[OverlayInstruction] = []
        for pos in self.plan.positions():
            x = _clamp(pos.x, page_w, self.token_size)
            y = _clamp(pos.y, page_h, self.token_size)
            if (x, y) != (pos.x, pos.y):
                logger.debug("Stamp at (%s, %s) moved to (%s, %s) to stay on a %sx%s page",
                             pos.x, pos.y, x, y, page_w, page_h)
            out.append(OverlayInstruction(
                kind=OverlayKind.TOKEN, token_id=pos.token.id,
                x=x, y=y, width=self.token_size, height=self.token_size,
            ))
            bx, by = replace(pos, x=x, y=y).badge_origin(self.footprint, self.badge_size)
            out.append(OverlayInstruction(
                kind=OverlayKind.BADGE, token_id=pos.token.id,
                x=bx, y=by, width=self.badge_size, height=self.badge_size,
            ))
        return out

    def _image_for(self, ins: OverlayInstruction) -> Path:
        if ins.kind == OverlayKind.BADGE:
            return self.badge_path
        for pos in self.plan.positions():
            if pos.token.id == ins.token_id:
                return pos.token.image_path
        raise KeyError(ins.token_id)

    def _render(self, page_w: float, page_h: float) -> RenderedOverlay:
        instructions = self.instructions(page_w, page_h)
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))
        for ins in instructions:
            img_path = self._image_for(ins)
            try:
                c.drawImage(
                    ImageReader(str(img_path)),
                    ins.x,
                    page_h - ins.y - ins.height,
                    width=ins.width,
                    height=ins.height,
                    mask="auto",
                )
            except OSError as exc:
                raise DocumentIOError(f"Cannot read overlay image {img_path}: {exc}") from exc
        c.showPage()
        c.save()
        buf.seek(0)
        try:
            page = PdfReader(buf).pages[0]
        except IndexError as exc:
            raise FormatError("Overlay rendering produced an empty PDF") from exc
        return RenderedOverlay(page=page, instructions=instructions)

    def overlay_for(self, page_w: float, page_h: float) -> RenderedOverlay:
        key = (round(float(page_w), 2), round(float(page_h), 2))
        rendered = self._cache.get(key)
        if rendered is None:
            rendered = self._render(*key)
            self._cache[key] = rendered
        return rendered
