"""Drawing surfaces and the scene renderer.

The renderer only issues path primitives (move/line/bezier/arc/rect, stroke,
fill, clear) against a :class:`DrawingSurface`; it never touches pixels.  Two
surfaces ship with the package: :class:`RecordingSurface` keeps the call list
for tests and tooling, :class:`SvgSurface` turns the calls into SVG elements
using :mod:`svgpathtools` segments.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from svgpathtools import Arc, CubicBezier, Line
from svgpathtools import Path as SVGPathObject

from .config import Settings
from .curve import ARC_LENGTH_SAMPLES, CurveModel, CurvePosition
from .geometry import XY, Shape
from .grid import grid_lines
from .mapping import CoordinateMapper

Rect = Tuple[float, float, float, float]

GRID_MINOR_COLOR = "#e8e8e8"
GRID_MAJOR_COLOR = "#d0d0d0"
AXIS_COLOR = "#333333"
BACKGROUND_COLOR = "#ffffff"
SNAP_COLOR = "#ff6600"
PLAYBACK_COLOR = "#00a651"
POINT_RADIUS_PX = 3.0
MARKER_RADIUS_PX = 6.0
LAYERS = ("grid", "shapes", "path", "overlay", "cursor")


class DrawingSurface(Protocol):
    def set_style(
        self,
        *,
        stroke_style: Optional[str] = None,
        fill_style: Optional[str] = None,
        line_width: Optional[float] = None,
        dash: Optional[Sequence[float]] = None,
    ) -> None: ...

    def begin_path(self) -> None: ...

    def move_to(self, x: float, y: float) -> None: ...

    def line_to(self, x: float, y: float) -> None: ...

    def bezier_curve_to(self, c1x: float, c1y: float, c2x: float, c2y: float, x: float, y: float) -> None: ...

    def arc(self, cx: float, cy: float, radius: float, start_angle: float, end_angle: float) -> None: ...

    def rect(self, x: float, y: float, width: float, height: float) -> None: ...

    def stroke(self) -> None: ...

    def fill(self) -> None: ...

    def clear(self, rect: Optional[Rect] = None) -> None: ...


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------


class RecordingSurface:
    """Records every drawing call as ``(name, args)``."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def set_style(self, *, stroke_style=None, fill_style=None, line_width=None, dash=None) -> None:
        self._record("set_style", stroke_style, fill_style, line_width, tuple(dash) if dash is not None else None)

    def begin_path(self) -> None:
        self._record("begin_path")

    def move_to(self, x: float, y: float) -> None:
        self._record("move_to", x, y)

    def line_to(self, x: float, y: float) -> None:
        self._record("line_to", x, y)

    def bezier_curve_to(self, c1x, c1y, c2x, c2y, x, y) -> None:
        self._record("bezier_curve_to", c1x, c1y, c2x, c2y, x, y)

    def arc(self, cx, cy, radius, start_angle, end_angle) -> None:
        self._record("arc", cx, cy, radius, start_angle, end_angle)

    def rect(self, x, y, width, height) -> None:
        self._record("rect", x, y, width, height)

    def stroke(self) -> None:
        self._record("stroke")

    def fill(self) -> None:
        self._record("fill")

    def clear(self, rect: Optional[Rect] = None) -> None:
        self.calls = [("clear", (rect,))]


def _split_color(color: Optional[str]) -> Tuple[str, Optional[float]]:
    if not color:
        return "none", None
    if color.startswith("#") and len(color) == 9:
        return color[:7], int(color[7:], 16) / 255.0
    return color, None


@dataclass
class _Style:
    stroke_style: str = "#000000"
    fill_style: str = "#000000"
    line_width: float = 1.0
    dash: Tuple[float, ...] = ()


@dataclass
class SvgSurface:
    """Surface that accumulates SVG ``<path>`` elements."""

    width: float = 1200.0
    height: float = 800.0
    elements: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._style = _Style()
        self._segments: list = []
        self._current: Optional[complex] = None
        self._subpath_start: Optional[complex] = None

    def set_style(self, *, stroke_style=None, fill_style=None, line_width=None, dash=None) -> None:
        if stroke_style is not None:
            self._style.stroke_style = stroke_style
        if fill_style is not None:
            self._style.fill_style = fill_style
        if line_width is not None:
            self._style.line_width = float(line_width)
        if dash is not None:
            self._style.dash = tuple(float(d) for d in dash)

    def begin_path(self) -> None:
        self._segments = []
        self._current = None
        self._subpath_start = None

    def move_to(self, x: float, y: float) -> None:
        self._current = complex(x, y)
        self._subpath_start = self._current

    def line_to(self, x: float, y: float) -> None:
        end = complex(x, y)
        if self._current is None:
            self.move_to(x, y)
            return
        if end != self._current:
            self._segments.append(Line(self._current, end))
        self._current = end

    def bezier_curve_to(self, c1x, c1y, c2x, c2y, x, y) -> None:
        if self._current is None:
            self.move_to(c1x, c1y)
        end = complex(x, y)
        self._segments.append(CubicBezier(self._current, complex(c1x, c1y), complex(c2x, c2y), end))
        self._current = end

    def arc(self, cx, cy, radius, start_angle, end_angle) -> None:
        if radius <= 0:
            return
        center = complex(cx, cy)
        start = center + radius * complex(math.cos(start_angle), math.sin(start_angle))
        if self._current is not None and abs(self._current - start) > 1e-9:
            self._segments.append(Line(self._current, start))
        sweep = end_angle - start_angle
        r = complex(radius, radius)
        if abs(sweep) >= 2 * math.pi - 1e-9:
            mid = center - (start - center)
            positive = sweep > 0
            self._segments.append(Arc(start, r, 0.0, False, positive, mid))
            self._segments.append(Arc(mid, r, 0.0, False, positive, start))
            end = start
        else:
            end = center + radius * complex(math.cos(end_angle), math.sin(end_angle))
            self._segments.append(Arc(start, r, 0.0, abs(sweep) > math.pi, sweep > 0, end))
        self._current = end
        if self._subpath_start is None:
            self._subpath_start = start

    def rect(self, x, y, width, height) -> None:
        self.move_to(x, y)
        self.line_to(x + width, y)
        self.line_to(x + width, y + height)
        self.line_to(x, y + height)
        self.line_to(x, y)

    def _d(self) -> str:
        if not self._segments:
            return ""
        return SVGPathObject(*self._segments).d()

    def stroke(self) -> None:
        d = self._d()
        if not d:
            return
        color, opacity = _split_color(self._style.stroke_style)
        attrs = [
            f'd="{d}"',
            'fill="none"',
            f'stroke="{color}"',
            f'stroke-width="{self._style.line_width:g}"',
            'stroke-linecap="round"',
            'stroke-linejoin="round"',
        ]
        if opacity is not None:
            attrs.append(f'stroke-opacity="{opacity:.3f}"')
        if self._style.dash:
            attrs.append(f'stroke-dasharray="{",".join(f"{v:g}" for v in self._style.dash)}"')
        self.elements.append(f"<path {' '.join(attrs)} />")

    def fill(self) -> None:
        d = self._d()
        if not d:
            return
        color, opacity = _split_color(self._style.fill_style)
        attrs = [f'd="{d}"', f'fill="{color}"', 'stroke="none"']
        if opacity is not None:
            attrs.append(f'fill-opacity="{opacity:.3f}"')
        self.elements.append(f"<path {' '.join(attrs)} />")

    def clear(self, rect: Optional[Rect] = None) -> None:
        self.elements = []
        self.begin_path()

    def to_svg(self) -> str:
        return svg_document(self.width, self.height, [self])


def svg_document(width: float, height: float, surfaces: Iterable[SvgSurface]) -> str:
    """Stack the elements of several surfaces into one SVG document."""

    body = []
    for surface in surfaces:
        body.append("<g>" + "".join(surface.elements) + "</g>")
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}" '
        f'width="{width:g}" height="{height:g}">' + "".join(body) + "</svg>"
    )


# ---------------------------------------------------------------------------
# Scene
# ---------------------------------------------------------------------------


class SceneRenderer:
    """draw grid, shapes, the path curve, the playback overlay and the cursor."""

    def __init__(self, mapper: CoordinateMapper, settings: Settings, layers: Dict[str, DrawingSurface]) -> None:
        missing = [name for name in LAYERS if name not in layers]
        if missing:
            raise ValueError(f"Missing drawing layers: {', '.join(missing)}")
        self.mapper = mapper
        self.settings = settings
        self.layers = layers

    def _screen(self, pos: XY) -> XY:
        return self.mapper.world_to_screen(pos[0], pos[1])

    # ------------------------------------------------------------------
    def draw_grid(self) -> None:
        s = self.layers["grid"]
        m = self.mapper
        s.clear(None)
        s.set_style(fill_style=BACKGROUND_COLOR, dash=())
        s.begin_path()
        s.rect(0, 0, m.canvas_width, m.canvas_height)
        s.fill()

        x0, y0, w, h = m.used_area()
        vertical, horizontal = grid_lines(self.settings)
        for major, color, width in ((False, GRID_MINOR_COLOR, 0.5), (True, GRID_MAJOR_COLOR, 1.0)):
            s.set_style(stroke_style=color, line_width=width)
            s.begin_path()
            for x, is_major in vertical:
                if is_major == major:
                    px, _ = m.world_to_screen(x, 0.0)
                    s.move_to(px, y0)
                    s.line_to(px, y0 + h)
            for y, is_major in horizontal:
                if is_major == major:
                    _, py = m.world_to_screen(0.0, y)
                    s.move_to(x0, py)
                    s.line_to(x0 + w, py)
            s.stroke()

        s.set_style(stroke_style=AXIS_COLOR, line_width=2)
        s.begin_path()
        zx, zy = m.world_to_screen(0.0, 0.0)
        if self.settings.min_x <= 0 <= self.settings.max_x:
            s.move_to(zx, y0)
            s.line_to(zx, y0 + h)
        if self.settings.min_y <= 0 <= self.settings.max_y:
            s.move_to(x0, zy)
            s.line_to(x0 + w, zy)
        s.stroke()

    # ------------------------------------------------------------------
    def draw_shapes(self, shapes: Sequence[Shape], preview: Optional[Shape] = None) -> None:
        s = self.layers["shapes"]
        s.clear(None)
        color = self.settings.shape_color
        s.set_style(stroke_style=color, fill_style=color + "20", line_width=2, dash=())
        for shape in shapes:
            self._draw_shape(s, shape)
        if preview is not None:
            s.set_style(dash=(5, 5))
            self._draw_shape(s, preview)
            s.set_style(dash=())

    def _draw_shape(self, s: DrawingSurface, shape: Shape) -> None:
        sx, sy = self._screen(shape.start)
        ex, ey = self._screen(shape.end)
        s.begin_path()
        if shape.type == "rectangle":
            s.rect(sx, sy, ex - sx, ey - sy)
        else:
            s.arc(sx, sy, math.hypot(ex - sx, ey - sy), 0.0, 2 * math.pi)
        s.fill()
        s.stroke()

    # ------------------------------------------------------------------
    def draw_path(self, curve: CurveModel) -> None:
        s = self.layers["path"]
        s.clear(None)
        if not curve.points:
            return
        color = self.settings.spline_color
        s.set_style(stroke_style=color, fill_style=color, line_width=2, dash=())
        if curve.segment_count > 0:
            s.begin_path()
            s.move_to(*self._screen(curve.points[0]))
            for i in range(curve.segment_count):
                p0, c1, c2, p3 = curve.control_points(i)
                if curve.is_linear:
                    s.line_to(*self._screen(p3))
                else:
                    s.bezier_curve_to(*self._screen(c1), *self._screen(c2), *self._screen(p3))
            s.stroke()
        for point in curve.points:
            px, py = self._screen(point)
            s.begin_path()
            s.arc(px, py, POINT_RADIUS_PX, 0.0, 2 * math.pi)
            s.fill()

    def draw_snap_indicator(self, pos: XY) -> None:
        s = self.layers["cursor"]
        s.clear(None)
        if not self.settings.enable_snap:
            return
        px, py = self._screen(pos)
        s.set_style(stroke_style=SNAP_COLOR, fill_style=SNAP_COLOR, line_width=1, dash=(2, 2))
        s.begin_path()
        s.move_to(px - 8, py)
        s.line_to(px + 8, py)
        s.move_to(px, py - 8)
        s.line_to(px, py + 8)
        s.stroke()
        s.set_style(dash=())
        s.begin_path()
        s.arc(px, py, 3, 0.0, 2 * math.pi)
        s.fill()

    # ------------------------------------------------------------------
    def draw_playback(self, curve: CurveModel, position: CurvePosition) -> None:
        """Draw the traversed part of the curve and the current position."""

        s = self.layers["overlay"]
        s.clear(None)
        s.set_style(stroke_style=PLAYBACK_COLOR, fill_style=PLAYBACK_COLOR, line_width=3, dash=())
        if curve.segment_count > 0:
            s.begin_path()
            s.move_to(*self._screen(curve.points[0]))
            for i in range(position.segment_index):
                for pt in curve.sample_segment(i, ARC_LENGTH_SAMPLES)[1:]:
                    s.line_to(*self._screen(pt))
            if position.local_parameter > 0:
                partial = curve.sample_segment(
                    position.segment_index, ARC_LENGTH_SAMPLES, until=position.local_parameter
                )
                for pt in partial[1:]:
                    s.line_to(*self._screen(pt))
            s.stroke()
        px, py = self._screen(position.xy)
        s.begin_path()
        s.arc(px, py, MARKER_RADIUS_PX, 0.0, 2 * math.pi)
        s.fill()

    def clear_overlay(self) -> None:
        self.layers["overlay"].clear(None)

    def clear_cursor(self) -> None:
        self.layers["cursor"].clear(None)


__all__ = [
    "DrawingSurface",
    "RecordingSurface",
    "SvgSurface",
    "SceneRenderer",
    "svg_document",
    "LAYERS",
]
