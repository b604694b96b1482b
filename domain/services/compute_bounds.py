from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from domain.models import (
    DEFAULT_MARGIN,
    FALLBACK_EXTENT_HEIGHT,
    FALLBACK_EXTENT_WIDTH,
    Bounds,
)
from domain.services.geometry import coerce_number, finite_number, nested


def compute_bounds(elements: Sequence[Any] | None, margin: int = DEFAULT_MARGIN) -> Bounds:
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    has_geometry = False

    for element in elements or []:
        if not isinstance(element, dict):
            continue
        x = coerce_number(nested(element, "position", "x"), 0)
        y = coerce_number(nested(element, "position", "y"), 0)
        width = finite_number(nested(element, "size", "width"), 0)
        height = finite_number(nested(element, "size", "height"), 0)
        if not math.isfinite(x) or not math.isfinite(y):
            continue

        has_geometry = True
        min_x = min(min_x, x)
        min_y = min(min_y, y)
        max_x = max(max_x, x + width)
        max_y = max(max_y, y + height)

    if not has_geometry:
        min_x, min_y = 0, 0
        max_x, max_y = FALLBACK_EXTENT_WIDTH, FALLBACK_EXTENT_HEIGHT

    return Bounds(
        min_x=min_x,
        min_y=min_y,
        max_x=max_x,
        max_y=max_y,
        width=max(1, math.ceil(max_x - min_x) + margin * 2),
        height=max(1, math.ceil(max_y - min_y) + margin * 2),
        margin=margin,
        offset_x=margin - min_x,
        offset_y=margin - min_y,
    )
