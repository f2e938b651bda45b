"""Freehand and click-to-add point capture."""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import List

from .geometry import DEFAULT_VELOCITY, XY, Path, distance

logger = logging.getLogger(__name__)

# Gaps wider than this many sampling distances are filled by interpolation.
FILL_TRIGGER = 3.0


class SamplerState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


class SamplingMode(str, Enum):
    DRAG = "drag"
    CLICK = "click"


class PathSampler:
    """Turn a stream of pointer positions into a sparse point sequence.

    In drag mode every pointer move is offered to :meth:`continue_to` and
    points are kept once they are at least ``sampling_distance`` apart.  In
    click mode each press adds one discrete point and the gesture stays open
    until :meth:`end`.
    """

    def __init__(self, path: Path, sampling_distance: float, *, mode: SamplingMode = SamplingMode.DRAG) -> None:
        self.path = path
        self.sampling_distance = float(sampling_distance)
        self.mode = SamplingMode(mode)
        self.state = SamplerState.IDLE

    @property
    def is_drawing(self) -> bool:
        return self.state is SamplerState.DRAWING

    def begin(self, pos: XY) -> None:
        if self.state is SamplerState.IDLE:
            self.path.reset(pos)
            self.state = SamplerState.DRAWING
        else:
            self.path.append(pos)

    def continue_to(self, pos: XY) -> List[XY]:
        """Offer a pointer position; returns the points actually added."""

        if self.state is not SamplerState.DRAWING or self.mode is not SamplingMode.DRAG:
            return []
        last = self.path.last
        if last is None:
            self.path.reset(pos)
            return [pos]
        added: List[XY] = []
        step = self.sampling_distance
        gap = distance(last.xy, pos)
        if gap > FILL_TRIGGER * step:
            ux = (pos[0] - last.x) / gap
            uy = (pos[1] - last.y) / gap
            origin = last.xy
            for k in range(1, int(math.floor(gap / step))):
                fill = (origin[0] + ux * k * step, origin[1] + uy * k * step)
                self.path.append(fill, DEFAULT_VELOCITY)
                added.append(fill)
            logger.debug("Interpolated %d points over a %.2f mm gap", len(added), gap)
        if distance(self.path.last.xy, pos) >= step:
            self.path.append(pos)
            added.append(pos)
        return added

    def release(self) -> None:
        """Pointer released: closes a drag gesture, keeps a click session open."""

        if self.mode is SamplingMode.DRAG:
            self.end()

    def end(self) -> None:
        self.state = SamplerState.IDLE


__all__ = ["PathSampler", "SamplerState", "SamplingMode", "FILL_TRIGGER"]
