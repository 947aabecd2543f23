# stamping/models/stamp_plan.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

# A4 in points (1 pt = 1/72 inch)
A4_WIDTH = 595.28
A4_HEIGHT = 841.89

# Corner anchors, measured from the top-left page corner
DEFAULT_MARGIN = 5.0
RIGHT_CORNER = 520.0
BOTTOM_CORNER = 770.0

# Marker footprint, the QR image drawn in it, and the badge inset by
# (footprint - badge) / 2 on both axes
QR_FOOTPRINT = 75.0
TOKEN_SIZE = 70.0
BADGE_SIZE = 15.0


@dataclass(frozen=True)
class TokenRef:
    """One verification token: a QR image on disk plus the URL it encodes."""
    id: uuid.UUID
    image_path: Path
    target_url: str


@dataclass(frozen=True)
class StampPosition:
    """
    One overlay location, in points from the top-left page corner.
    """
    x: float
    y: float
    token: TokenRef

    def badge_origin(self, footprint: float = QR_FOOTPRINT,
                     badge_size: float = BADGE_SIZE) -> Tuple[float, float]:
        """Top-left corner of the badge centered inside this footprint."""
        inset = (footprint - badge_size) / 2
        return self.x + inset, self.y + inset


@dataclass(frozen=True)
class StampPlan:
    """
    Four mandatory corner positions plus an optional custom one.

    Built once per input file and reused unchanged for every page.
    """
    top_left: StampPosition
    top_right: StampPosition
    bottom_left: StampPosition
    bottom_right: StampPosition
    custom: Optional[StampPosition] = None

    def positions(self) -> Iterator[StampPosition]:
        yield self.top_left
        yield self.top_right
        yield self.bottom_left
        yield self.bottom_right
        if self.custom is not None:
            yield self.custom

    def tokens(self) -> list[TokenRef]:
        return [pos.token for pos in self.positions()]

    def __len__(self) -> int:
        return 4 if self.custom is None else 5
