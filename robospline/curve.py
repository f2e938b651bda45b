"""Interpolating curve through path points.

Two points form a straight segment.  Three or more points are joined by one
cubic Bezier per segment whose control points follow a Catmull-Rom style
tangent rule: the tangent at ``p[i]`` is ``(p[i+1] - p[i-1]) * smoothing * 0.2``
with the missing neighbours at both ends replaced by the end points
themselves.

Lengths are approximated by summing :data:`ARC_LENGTH_SAMPLES` chords per
segment.  Every length and timing computation in the package uses this same
approximation, so playback and export stay consistent with each other.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .geometry import XY

ARC_LENGTH_SAMPLES = 20
TANGENT_SCALE = 0.2


@dataclass(frozen=True)
class CurvePosition:
    x: float
    y: float
    segment_index: int
    local_parameter: float

    @property
    def xy(self) -> XY:
        return (self.x, self.y)


class CurveModel:
    """Evaluate, measure and invert the curve through ``points``."""

    def __init__(self, points: Sequence[XY], smoothing: float = 0.5) -> None:
        self.points: Tuple[XY, ...] = tuple((float(x), float(y)) for x, y in points)
        self.smoothing = float(smoothing)
        self._lengths: Optional[List[float]] = None

    def __len__(self) -> int:
        return len(self.points)

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)

    @property
    def is_linear(self) -> bool:
        return len(self.points) == 2

    def _check_segment(self, index: int) -> None:
        if not 0 <= index < self.segment_count:
            raise IndexError(f"segment {index} out of range (0..{self.segment_count - 1})")

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def control_points(self, index: int) -> Tuple[XY, XY, XY, XY]:
        """Return ``(P0, C1, C2, P3)`` for segment ``index``."""

        self._check_segment(index)
        pts = self.points
        last = len(pts) - 1
        p0 = pts[index]
        p3 = pts[index + 1]
        if self.is_linear:
            return p0, p0, p3, p3
        prev = pts[max(index - 1, 0)]
        nxt = pts[min(index + 2, last)]
        k = self.smoothing * TANGENT_SCALE
        c1 = (p0[0] + (p3[0] - prev[0]) * k, p0[1] + (p3[1] - prev[1]) * k)
        c2 = (p3[0] - (nxt[0] - p0[0]) * k, p3[1] - (nxt[1] - p0[1]) * k)
        return p0, c1, c2, p3

    def get_point_at(self, index: int, t: float) -> XY:
        self._check_segment(index)
        if self.is_linear:
            (x0, y0), (x1, y1) = self.points
            u = 1.0 - t
            return u * x0 + t * x1, u * y0 + t * y1
        p0, c1, c2, p3 = self.control_points(index)
        u = 1.0 - t
        b0 = u * u * u
        b1 = 3.0 * u * u * t
        b2 = 3.0 * u * t * t
        b3 = t * t * t
        return (
            b0 * p0[0] + b1 * c1[0] + b2 * c2[0] + b3 * p3[0],
            b0 * p0[1] + b1 * c1[1] + b2 * c2[1] + b3 * p3[1],
        )

    def sample_segment(self, index: int, steps: int = ARC_LENGTH_SAMPLES, *, until: float = 1.0) -> List[XY]:
        """Points at ``steps`` equal parameter steps over ``[0, until]``."""

        return [self.get_point_at(index, until * i / steps) for i in range(steps + 1)]

    # ------------------------------------------------------------------
    # Arc length
    # ------------------------------------------------------------------
    def segment_length(self, index: int) -> float:
        samples = self.sample_segment(index, ARC_LENGTH_SAMPLES)
        return sum(math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in zip(samples, samples[1:]))

    def segment_lengths(self) -> List[float]:
        if self._lengths is None:
            self._lengths = [self.segment_length(i) for i in range(self.segment_count)]
        return list(self._lengths)

    def calculate_spline_length(self) -> float:
        total = 0.0
        for length in self.segment_lengths():
            total += length
        return total

    total_length = calculate_spline_length

    def get_position_at_distance(self, distance: float) -> Optional[CurvePosition]:
        """Map an arc-length distance to a curve position.

        Inside a segment the remaining distance is mapped linearly onto ``t``;
        the Bezier's non-uniform speed is not corrected.
        """

        if not self.points:
            return None
        if self.segment_count == 0:
            x, y = self.points[0]
            return CurvePosition(x, y, 0, 0.0)
        d = max(0.0, distance)
        accumulated = 0.0
        for i, length in enumerate(self.segment_lengths()):
            if accumulated + length > d:
                t = (d - accumulated) / length if length > 0 else 0.0
                x, y = self.get_point_at(i, t)
                return CurvePosition(x, y, i, t)
            accumulated += length
        last = self.segment_count - 1
        x, y = self.points[-1]
        return CurvePosition(x, y, last, 1.0)

    def straight_length(self) -> float:
        pts = self.points
        return sum(math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in zip(pts, pts[1:]))


__all__ = ["ARC_LENGTH_SAMPLES", "TANGENT_SCALE", "CurveModel", "CurvePosition"]
