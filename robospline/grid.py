"""Snap lattice, world clamping and grid line layout."""

from __future__ import annotations

import math
from typing import List, Tuple

from .config import Settings

XY = Tuple[float, float]

MAJOR_EVERY = 5


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def snap_to_grid(pos: XY, settings: Settings) -> XY:
    """Round each coordinate to the nearest multiple of ``snap_size``."""

    if not settings.enable_snap:
        return pos
    size = settings.snap_size
    x = _round_half_up(pos[0] / size) * size
    y = _round_half_up(pos[1] / size) * size
    return round(x, 2) + 0.0, round(y, 2) + 0.0


def clamp_to_graph_limits(pos: XY, settings: Settings) -> XY:
    x = min(max(pos[0], settings.min_x), settings.max_x)
    y = min(max(pos[1], settings.min_y), settings.max_y)
    return x, y


def _axis_lines(lo: float, hi: float, step: float) -> List[Tuple[float, bool]]:
    major = step * MAJOR_EVERY
    out: List[Tuple[float, bool]] = []
    k = math.ceil(lo / step - 1e-9)
    while True:
        value = round(k * step, 9) + 0.0
        if value > hi + 1e-9:
            break
        ratio = value / major
        out.append((value, abs(ratio - round(ratio)) < 1e-9))
        k += 1
    return out


def grid_lines(settings: Settings) -> Tuple[List[Tuple[float, bool]], List[Tuple[float, bool]]]:
    """Return ``(vertical, horizontal)`` world positions flagged as major lines."""

    return (
        _axis_lines(settings.min_x, settings.max_x, settings.grid_size),
        _axis_lines(settings.min_y, settings.max_y, settings.grid_size),
    )


__all__ = ["snap_to_grid", "clamp_to_graph_limits", "grid_lines"]
