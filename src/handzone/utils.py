from __future__ import annotations

from typing import Iterable, Tuple


def bbox_from_points(points: Iterable[Tuple[float, float]]) -> Tuple[float, float, float, float]:
    xs = []
    ys = []
    for x, y in points:
        xs.append(x)
        ys.append(y)
    if not xs:
        return (0.0, 0.0, 0.0, 0.0)
    return (min(xs), min(ys), max(xs), max(ys))


def to_px(pt: Tuple[float, float]) -> Tuple[int, int]:
    """Round a float point to integer pixel coordinates for OpenCV drawing calls."""
    return (int(round(pt[0])), int(round(pt[1])))
