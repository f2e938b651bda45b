"""Path and shape primitives.

A :class:`Path` is the ordered list of points a robot traverses; its point ids
are always the 1-based list positions.  Shapes are two-point rectangles and
circles drawn as reference geometry next to the path.
"""
from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .config import ValidationError

XY = Tuple[float, float]

DEFAULT_VELOCITY = 30.0  # mm/s

SHAPE_TYPES = ("rectangle", "circle")


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{name} must be finite")
    return number


def _velocity(value: Any) -> float:
    velocity = _number(value, "velocity")
    if velocity <= 0:
        raise ValidationError("velocity must be positive")
    return velocity


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------


@dataclass
class Point:
    x: float
    y: float
    velocity: float = DEFAULT_VELOCITY  # mm/s
    id: int = 0

    @property
    def xy(self) -> XY:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "velocity": self.velocity, "id": self.id}


@dataclass
class Path:
    """Ordered point sequence; order is traversal order."""

    points: List[Point] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.renumber()

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    @classmethod
    def from_xy(cls, pts: Iterable[XY], velocity: float = DEFAULT_VELOCITY) -> "Path":
        return cls([Point(float(x), float(y), velocity) for x, y in pts])

    def renumber(self) -> None:
        for i, p in enumerate(self.points, start=1):
            p.id = i

    def xy(self) -> List[XY]:
        return [p.xy for p in self.points]

    def velocities(self) -> List[float]:
        return [p.velocity for p in self.points]

    def clone(self) -> "Path":
        return copy.deepcopy(self)

    @property
    def last(self) -> Optional[Point]:
        return self.points[-1] if self.points else None

    # ---------------------------- mutation ----------------------------------
    def reset(self, pos: XY, velocity: float = DEFAULT_VELOCITY) -> None:
        self.points = [Point(pos[0], pos[1], velocity)]
        self.renumber()

    def append(self, pos: XY, velocity: float = DEFAULT_VELOCITY) -> Point:
        point = Point(pos[0], pos[1], velocity)
        self.points.append(point)
        self.renumber()
        return point

    def add_point(self, x: Any, y: Any, velocity: Any = DEFAULT_VELOCITY, *, index: Optional[int] = None) -> Point:
        """Insert a manually entered point; ``index`` is a 0-based insert position."""

        point = Point(_number(x, "x"), _number(y, "y"), _velocity(velocity))
        if index is None:
            self.points.append(point)
        else:
            if not 0 <= index <= len(self.points):
                raise ValidationError(f"insert position {index} out of range")
            self.points.insert(index, point)
        self.renumber()
        return point

    def _index_of(self, point_id: int) -> int:
        if isinstance(point_id, bool) or not isinstance(point_id, int) or not 1 <= point_id <= len(self.points):
            raise ValidationError(f"no point with id {point_id!r}")
        return point_id - 1

    def update_point(
        self,
        point_id: int,
        *,
        x: Any = None,
        y: Any = None,
        velocity: Any = None,
    ) -> Point:
        idx = self._index_of(point_id)
        new_x = None if x is None else _number(x, "x")
        new_y = None if y is None else _number(y, "y")
        new_v = None if velocity is None else _velocity(velocity)
        point = self.points[idx]
        if new_x is not None:
            point.x = new_x
        if new_y is not None:
            point.y = new_y
        if new_v is not None:
            point.velocity = new_v
        return point

    def remove_point(self, point_id: int) -> Point:
        idx = self._index_of(point_id)
        point = self.points.pop(idx)
        self.renumber()
        return point

    def set_all_velocities(self, velocity: Any) -> None:
        value = _velocity(velocity)
        for p in self.points:
            p.velocity = value

    def clear(self) -> None:
        self.points = []

    # ------------------------------- serialisation ---------------------------
    def to_list(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.points]

    @staticmethod
    def from_list(data: Iterable[Dict[str, Any]]) -> "Path":
        points = []
        for item in data:
            if not isinstance(item, dict):
                raise ValidationError(f"point entry must be an object, got {item!r}")
            if "x" not in item or "y" not in item:
                raise ValidationError("point entry requires x and y")
            velocity = item.get("velocity")
            points.append(
                Point(
                    _number(item["x"], "x"),
                    _number(item["y"], "y"),
                    DEFAULT_VELOCITY if velocity is None else _velocity(velocity),
                )
            )
        return Path(points)


def distance(a: XY, b: XY) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass
class Shape:
    """Rectangle (opposite corners) or circle (center + point on rim)."""

    type: str
    start: XY
    end: XY

    def __post_init__(self) -> None:
        if self.type not in SHAPE_TYPES:
            raise ValidationError(f"Unsupported shape type: {self.type!r}")

    @property
    def width(self) -> float:
        return abs(self.end[0] - self.start[0])

    @property
    def height(self) -> float:
        return abs(self.end[1] - self.start[1])

    @property
    def radius(self) -> float:
        return distance(self.start, self.end)

    @property
    def diameter(self) -> float:
        return 2.0 * self.radius

    def clone(self) -> "Shape":
        return Shape(self.type, tuple(self.start), tuple(self.end))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "start": {"x": self.start[0], "y": self.start[1]},
            "end": {"x": self.end[0], "y": self.end[1]},
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Shape":
        if not isinstance(data, dict):
            raise ValidationError(f"shape entry must be an object, got {data!r}")
        try:
            start = data["start"]
            end = data["end"]
            return Shape(
                str(data["type"]),
                (_number(start["x"], "start.x"), _number(start["y"], "start.y")),
                (_number(end["x"], "end.x"), _number(end["y"], "end.y")),
            )
        except (KeyError, TypeError) as exc:
            raise ValidationError(f"malformed shape entry: {data!r}") from exc


def _dimension(value: Any, name: str) -> float:
    number = _number(value, name)
    if number < 0:
        raise ValidationError(f"{name} must not be negative")
    return number


def _sign(value: float) -> float:
    return -1.0 if value < 0 else 1.0


def set_width(shape: Shape, width: Any) -> Shape:
    if shape.type != "rectangle":
        raise ValidationError("width applies to rectangles only")
    w = _dimension(width, "width")
    sx, sy = shape.start
    shape.end = (sx + _sign(shape.end[0] - sx) * w, shape.end[1])
    return shape


def set_height(shape: Shape, height: Any) -> Shape:
    if shape.type != "rectangle":
        raise ValidationError("height applies to rectangles only")
    h = _dimension(height, "height")
    sx, sy = shape.start
    shape.end = (shape.end[0], sy + _sign(shape.end[1] - sy) * h)
    return shape


def set_diameter(shape: Shape, diameter: Any) -> Shape:
    """Resize a circle keeping the direction of its stored rim point."""

    if shape.type != "circle":
        raise ValidationError("diameter applies to circles only")
    r = _dimension(diameter, "diameter") / 2.0
    cx, cy = shape.start
    dx, dy = shape.end[0] - cx, shape.end[1] - cy
    length = math.hypot(dx, dy)
    if length == 0:
        ux, uy = 1.0, 0.0
    else:
        ux, uy = dx / length, dy / length
    shape.end = (cx + ux * r, cy + uy * r)
    return shape


def set_position(shape: Shape, x: Any, y: Any) -> Shape:
    """Move a shape so that ``start`` lands on ``(x, y)``.

    Circles keep their radius but the rim point is normalised onto +x.
    """

    nx, ny = _number(x, "x"), _number(y, "y")
    if shape.type == "rectangle":
        dx, dy = nx - shape.start[0], ny - shape.start[1]
        shape.start = (nx, ny)
        shape.end = (shape.end[0] + dx, shape.end[1] + dy)
    else:
        r = shape.radius
        shape.start = (nx, ny)
        shape.end = (nx + r, ny)
    return shape


class ShapeTool:
    """Two-point shape creation: press, drag (preview), release (commit)."""

    def __init__(self, shapes: Optional[List[Shape]] = None) -> None:
        self.shapes: List[Shape] = shapes if shapes is not None else []
        self.preview: Optional[Shape] = None

    def create(self, shape_type: str, start: XY) -> Shape:
        self.preview = Shape(shape_type, start, start)
        return self.preview

    def update_end(self, end: XY) -> Optional[Shape]:
        if self.preview is not None:
            self.preview.end = end
        return self.preview

    def commit(self, end: Optional[XY] = None) -> Optional[Shape]:
        if self.preview is None:
            return None
        if end is not None:
            self.preview.end = end
        shape = self.preview.clone()
        self.shapes.append(shape)
        self.preview = None
        return shape

    def cancel(self) -> None:
        self.preview = None


__all__ = [
    "XY",
    "DEFAULT_VELOCITY",
    "SHAPE_TYPES",
    "Point",
    "Path",
    "Shape",
    "ShapeTool",
    "distance",
    "set_width",
    "set_height",
    "set_diameter",
    "set_position",
]
