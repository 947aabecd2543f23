"""
Stamp planning shared by both compositor strategies.

The corner constants live in ``stamping.models.stamp_plan`` and are read only
here, so the unprotected and the protected path can never drift apart.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

from .token_generator import TokenGenerator
from ..models.stamp_plan import (
    BOTTOM_CORNER,
    DEFAULT_MARGIN,
    RIGHT_CORNER,
    StampPlan,
    StampPosition,
    TokenRef,
)


def plan(
    token_generator: TokenGenerator,
    custom_xy: Optional[Tuple[float, float]] = None,
    *,
    on_mint: Optional[Callable[[TokenRef], None]] = None,
) -> StampPlan:
    """
    Place the four corner positions (and the custom one, if requested) and
    mint exactly one fresh token per position.

    ``on_mint`` sees every token as soon as it exists, so a caller can track
    the image file for cleanup even if a later mint fails.
    """

    def _at(x: float, y: float) -> StampPosition:
        token = token_generator.mint()
        if on_mint is not None:
            on_mint(token)
        return StampPosition(x=float(x), y=float(y), token=token)

    stamp = StampPlan(
        top_left=_at(DEFAULT_MARGIN, DEFAULT_MARGIN),
        top_right=_at(RIGHT_CORNER, DEFAULT_MARGIN),
        bottom_left=_at(DEFAULT_MARGIN, BOTTOM_CORNER),
        bottom_right=_at(RIGHT_CORNER, BOTTOM_CORNER),
        custom=_at(*custom_xy) if custom_xy is not None else None,
    )

    ids = {tok.id for tok in stamp.tokens()}
    if len(ids) != len(stamp):
        raise RuntimeError("Token generator returned a duplicate token id")
    return stamp
