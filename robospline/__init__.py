"""Top-level package for the robot spline path toolkit.

This package exposes the curve and playback primitives used to author robot
paths on a millimeter plane, the program slot store, and the KRL exporter.
"""

from .config import Settings, ValidationError
from .controller import PathController
from .curve import CurveModel, CurvePosition
from .geometry import Path, Point, Shape, XY
from .playback import PlaybackScheduler
from .programs import ProgramStore

__all__ = [
    "Settings",
    "ValidationError",
    "PathController",
    "CurveModel",
    "CurvePosition",
    "Path",
    "Point",
    "Shape",
    "XY",
    "PlaybackScheduler",
    "ProgramStore",
]
