"""World (millimeter) to drawing-surface (pixel) coordinate mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .config import Settings

XY = Tuple[float, float]

DEFAULT_CANVAS_SIZE: Tuple[int, int] = (1200, 800)


@dataclass
class CoordinateMapper:
    """Uniformly scaled, centered mapping between world and screen space.

    A single scale keeps the aspect ratio 1:1; the used area is centered inside
    the canvas.  Screen y grows downward.  Inputs are never clamped.
    """

    min_x: float
    max_x: float
    min_y: float
    max_y: float
    canvas_width: float = DEFAULT_CANVAS_SIZE[0]
    canvas_height: float = DEFAULT_CANVAS_SIZE[1]

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        canvas_width: float = DEFAULT_CANVAS_SIZE[0],
        canvas_height: float = DEFAULT_CANVAS_SIZE[1],
    ) -> "CoordinateMapper":
        return cls(settings.min_x, settings.max_x, settings.min_y, settings.max_y, canvas_width, canvas_height)

    @property
    def scale(self) -> float:
        return min(
            self.canvas_width / (self.max_x - self.min_x),
            self.canvas_height / (self.max_y - self.min_y),
        )

    @property
    def offset(self) -> XY:
        scale = self.scale
        return (
            (self.canvas_width - (self.max_x - self.min_x) * scale) / 2.0,
            (self.canvas_height - (self.max_y - self.min_y) * scale) / 2.0,
        )

    def world_to_screen(self, x: float, y: float) -> XY:
        scale = self.scale
        ox, oy = self.offset
        return ox + (x - self.min_x) * scale, oy + (self.max_y - y) * scale

    def screen_to_world(self, px: float, py: float) -> XY:
        scale = self.scale
        ox, oy = self.offset
        return self.min_x + (px - ox) / scale, self.max_y - (py - oy) / scale

    def used_area(self) -> Tuple[float, float, float, float]:
        """Screen rectangle ``(x, y, width, height)`` covered by the world bounds."""

        ox, oy = self.offset
        scale = self.scale
        return ox, oy, (self.max_x - self.min_x) * scale, (self.max_y - self.min_y) * scale


__all__ = ["CoordinateMapper", "DEFAULT_CANVAS_SIZE", "XY"]
