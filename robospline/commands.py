"""Typed commands produced by a user interface and consumed by the controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class Command:
    """Base class for everything :meth:`PathController.dispatch` accepts."""


# Pointer input (screen coordinates) -----------------------------------------


@dataclass(frozen=True)
class PointerDown(Command):
    px: float
    py: float


@dataclass(frozen=True)
class PointerMove(Command):
    px: float
    py: float


@dataclass(frozen=True)
class PointerUp(Command):
    px: float
    py: float


@dataclass(frozen=True)
class SelectTool(Command):
    tool: str  # spline | rectangle | circle


@dataclass(frozen=True)
class SetSamplingMode(Command):
    mode: str  # drag | click


@dataclass(frozen=True)
class FinishPath(Command):
    """Close an open click-to-add session."""


# Point table ----------------------------------------------------------------


@dataclass(frozen=True)
class AddPoint(Command):
    x: float
    y: float
    velocity: float = 30.0
    index: Optional[int] = None


@dataclass(frozen=True)
class UpdatePoint(Command):
    point_id: int
    x: Optional[float] = None
    y: Optional[float] = None
    velocity: Optional[float] = None


@dataclass(frozen=True)
class RemovePoint(Command):
    point_id: int


@dataclass(frozen=True)
class SetAllVelocities(Command):
    velocity: float


@dataclass(frozen=True)
class ReplacePath(Command):
    points: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ClearPath(Command):
    pass


@dataclass(frozen=True)
class ClearAll(Command):
    pass


# Shapes -----------------------------------------------------------------------


@dataclass(frozen=True)
class EditShape(Command):
    index: int
    width: Optional[float] = None
    height: Optional[float] = None
    diameter: Optional[float] = None
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass(frozen=True)
class RemoveShape(Command):
    index: int


# Programs ---------------------------------------------------------------------


@dataclass(frozen=True)
class SwitchProgram(Command):
    index: int


@dataclass(frozen=True)
class CopyProgram(Command):
    index: int


@dataclass(frozen=True)
class ClearProgram(Command):
    index: int


@dataclass(frozen=True)
class SetDescription(Command):
    text: str


# Settings / project -------------------------------------------------------------


@dataclass(frozen=True)
class UpdateSettings(Command):
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResetSettings(Command):
    pass


@dataclass(frozen=True)
class SetTheme(Command):
    theme: str


@dataclass(frozen=True)
class ResizeCanvas(Command):
    width: float
    height: float


@dataclass(frozen=True)
class LoadProject(Command):
    text: str


@dataclass(frozen=True)
class ImportSvg(Command):
    data: bytes
    path_index: int = 0
    scale: float = 1.0


# Playback -----------------------------------------------------------------------


@dataclass(frozen=True)
class Play(Command):
    pass


@dataclass(frozen=True)
class Pause(Command):
    pass


@dataclass(frozen=True)
class Stop(Command):
    pass


@dataclass(frozen=True)
class Seek(Command):
    progress: float


@dataclass(frozen=True)
class SetSpeed(Command):
    speed: float


@dataclass(frozen=True)
class Tick(Command):
    """Run the pending playback frame using the controller's clock."""


@dataclass(frozen=True)
class AdvancePlayback(Command):
    delta_ms: float
