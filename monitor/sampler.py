from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

MIN_RENDER_POINTS = 200
MAX_RENDER_POINTS = 1000
DEFAULT_WIDTH_PX = 800


def sample(points: Sequence[T], max_points: int) -> list[T]:
    """Stride-downsample to roughly ``max_points``, keeping both endpoints."""
    if max_points <= 0 or len(points) <= max_points:
        return list(points)
    step = int(math.ceil(len(points) / max_points))
    out = list(points[::step])
    # Always keep the last point so the chart ends at the window edge.
    if out and out[-1] is not points[-1]:
        if len(out) >= max_points:
            out[-1] = points[-1]
        else:
            out.append(points[-1])
    return out


def max_points_for_width(width_px: float | str | None) -> int:
    # Roughly one point per pixel.
    try:
        w = int(width_px) if width_px is not None else DEFAULT_WIDTH_PX
    except (TypeError, ValueError):
        w = DEFAULT_WIDTH_PX
    if w <= 0:
        w = DEFAULT_WIDTH_PX
    return min(MAX_RENDER_POINTS, max(MIN_RENDER_POINTS, w))
