"""Import SVG outlines as path points."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path as FilePath
from typing import List, Optional, Tuple, Union
from xml.parsers.expat import ExpatError

from svgpathtools import Path as SVGPathObject, svg2paths2, svgstr2paths

from .config import Settings
from .geometry import XY, Path
from .grid import clamp_to_graph_limits

logger = logging.getLogger(__name__)


@dataclass
class SVGDocument:
    """Paths found in an SVG file, in document order."""

    paths: List[SVGPathObject] = field(default_factory=list)
    source_path: Optional[FilePath] = None

    @classmethod
    def from_file(cls, path: Union[str, FilePath]) -> "SVGDocument":
        try:
            paths, _, _ = svg2paths2(str(path))
        except ExpatError as exc:
            raise ValueError(f"{path} is not a valid SVG document: {exc}") from exc
        return cls(paths=[p for p in paths if len(p)], source_path=FilePath(path))

    @classmethod
    def from_bytes(cls, data: bytes) -> "SVGDocument":
        try:
            paths, _, _ = svgstr2paths(data.decode("utf-8"), return_svg_attributes=True)
        except ExpatError as exc:
            raise ValueError(f"not a valid SVG document: {exc}") from exc
        return cls(paths=[p for p in paths if len(p)])

    def bounds(self) -> Tuple[float, float, float, float]:
        if not self.paths:
            return (0.0, 0.0, 0.0, 0.0)
        boxes = [p.bbox() for p in self.paths]
        return (
            float(min(b[0] for b in boxes)),
            float(max(b[1] for b in boxes)),
            float(min(b[2] for b in boxes)),
            float(max(b[3] for b in boxes)),
        )


def sample_path(path: SVGPathObject, spacing: float) -> List[XY]:
    """Sample an svgpathtools path at roughly ``spacing`` units of arc length."""

    length = max(path.length(), spacing)
    steps = max(int(length / max(spacing, 1e-3)), 1)
    points: List[XY] = []
    for i in range(steps + 1):
        point = path.point(i / steps)
        points.append((float(point.real), float(point.imag)))
    return points


def import_svg_path(document: SVGDocument, settings: Settings, *, index: int = 0, scale: float = 1.0) -> Path:
    """Convert one SVG path into a :class:`Path` in world coordinates.

    SVG y grows downward, so it is flipped; the outline is centered on the
    world origin and clamped into the world bounds.
    """

    if not 0 <= index < len(document.paths):
        raise IndexError(f"SVG path {index} not found ({len(document.paths)} available)")
    xmin, xmax, ymin, ymax = document.bounds()
    cx, cy = (xmin + xmax) / 2.0, (ymin + ymax) / 2.0
    pts = sample_path(document.paths[index], settings.sampling_distance / max(scale, 1e-9))
    world = [
        clamp_to_graph_limits(((x - cx) * scale, (cy - y) * scale), settings)
        for x, y in pts
    ]
    logger.info("Imported SVG path %d with %d points", index, len(world))
    return Path.from_xy(world)


__all__ = ["SVGDocument", "sample_path", "import_svg_path"]
