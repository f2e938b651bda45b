"""Application controller.

:class:`PathController` owns the application state (settings, program slots,
active tool, playback) and is the single entry point for user input, which
arrives as :mod:`robospline.commands` objects.  It is UI agnostic; the HTTP
server and the CLI both drive it.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from . import commands as cmd
from .config import Settings, SettingsManager, ValidationError
from .curve import CurveModel
from .export import export_bundle, export_program
from .geometry import SHAPE_TYPES, XY, Path, Shape, ShapeTool, set_diameter, set_height, set_position, set_width
from .grid import clamp_to_graph_limits, snap_to_grid
from .mapping import DEFAULT_CANVAS_SIZE, CoordinateMapper
from .playback import Clock, FrameHost, ManualFrameHost, MonotonicClock, PlaybackScheduler
from .programs import ProgramStore
from .project import dumps as dump_project
from .project import loads as load_project
from .rendering import LAYERS, SceneRenderer, SvgSurface, svg_document
from .sampler import PathSampler, SamplingMode
from .storage import KeyValueStore, MemoryStore
from .svg_loader import SVGDocument, import_svg_path

logger = logging.getLogger(__name__)

TOOLS = ("spline",) + SHAPE_TYPES


@dataclass
class AppState:
    """Mutable application state shared between UI and core."""

    settings: Settings = field(default_factory=Settings)
    tool: str = "spline"
    pointer_down: bool = False
    pointer_world: Optional[XY] = None
    project_name: str = "project"
    canvas_size: Tuple[float, float] = DEFAULT_CANVAS_SIZE


class PathController:
    """Coordinate path editing, program slots, playback and export."""

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        *,
        clock: Optional[Clock] = None,
        host: Optional[FrameHost] = None,
        canvas_size: Tuple[float, float] = DEFAULT_CANVAS_SIZE,
    ) -> None:
        self._lock = threading.RLock()
        self.settings_manager = SettingsManager(store if store is not None else MemoryStore())
        settings = self.settings_manager.load()
        self.state = AppState(settings=settings, canvas_size=canvas_size)
        self.programs = ProgramStore(settings.max_program_num)
        self.sampler = PathSampler(self.programs.path, settings.sampling_distance)
        self.shape_tool = ShapeTool(self.programs.shapes)
        self.layers = {name: SvgSurface(*canvas_size) for name in LAYERS}
        self.mapper = CoordinateMapper.from_settings(settings, *canvas_size)
        self.renderer = SceneRenderer(self.mapper, settings, self.layers)
        self.frame_host = host or ManualFrameHost()
        self.playback = PlaybackScheduler(
            clock=clock or MonotonicClock(),
            host=self.frame_host,
            draw_cb=self.renderer.draw_playback,
            clear_cb=self.renderer.clear_overlay,
        )
        self._curve: Optional[CurveModel] = None
        self._handlers: Dict[type, Callable[[Any], Any]] = {
            cmd.PointerDown: self._pointer_down,
            cmd.PointerMove: self._pointer_move,
            cmd.PointerUp: self._pointer_up,
            cmd.SelectTool: self._select_tool,
            cmd.SetSamplingMode: self._set_sampling_mode,
            cmd.FinishPath: self._finish_path,
            cmd.AddPoint: self._add_point,
            cmd.UpdatePoint: self._update_point,
            cmd.RemovePoint: self._remove_point,
            cmd.SetAllVelocities: self._set_all_velocities,
            cmd.ReplacePath: self._replace_path,
            cmd.ClearPath: self._clear_path,
            cmd.ClearAll: self._clear_all,
            cmd.EditShape: self._edit_shape,
            cmd.RemoveShape: self._remove_shape,
            cmd.SwitchProgram: self._switch_program,
            cmd.CopyProgram: self._copy_program,
            cmd.ClearProgram: self._clear_program,
            cmd.SetDescription: self._set_description,
            cmd.UpdateSettings: self._update_settings,
            cmd.ResetSettings: self._reset_settings,
            cmd.SetTheme: self._set_theme,
            cmd.ResizeCanvas: self._resize_canvas,
            cmd.LoadProject: self._load_project,
            cmd.ImportSvg: self._import_svg,
            cmd.Play: lambda c: self.playback.start(),
            cmd.Pause: lambda c: self.playback.pause(),
            cmd.Stop: lambda c: self.playback.stop(),
            cmd.Seek: lambda c: self.playback.seek(c.progress),
            cmd.SetSpeed: lambda c: self.playback.set_speed(c.speed),
            cmd.Tick: lambda c: self.frame_host.run_pending() if isinstance(self.frame_host, ManualFrameHost) else None,
            cmd.AdvancePlayback: lambda c: self.playback.advance(c.delta_ms),
        }
        self._redraw_all()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def settings(self) -> Settings:
        return self.state.settings

    @property
    def path(self) -> Path:
        return self.programs.path

    @property
    def shapes(self):
        return self.programs.shapes

    @property
    def curve(self) -> CurveModel:
        if self._curve is None:
            self._curve = CurveModel(self.path.xy(), self.settings.spline_smoothing)
        return self._curve

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, command: cmd.Command) -> Any:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        with self._lock:
            return handler(command)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _to_world(self, px: float, py: float) -> XY:
        if not (math.isfinite(px) and math.isfinite(py)):
            raise ValidationError("pointer position must be finite")
        raw = self.mapper.screen_to_world(px, py)
        return clamp_to_graph_limits(snap_to_grid(raw, self.settings), self.settings)

    def _path_changed(self) -> None:
        self._curve = None
        self.playback.set_path(self.curve, self.path.velocities())
        self.renderer.draw_path(self.curve)

    def _shapes_changed(self) -> None:
        self.renderer.draw_shapes(self.shapes, self.shape_tool.preview)

    def _redraw_all(self) -> None:
        self.renderer.draw_grid()
        self._shapes_changed()
        self._path_changed()

    def _rebind(self) -> None:
        """Point the sampler and shape tool at the active slot's working data."""

        self.sampler.end()
        self.sampler.path = self.programs.path
        self.shape_tool.shapes = self.programs.shapes
        self.shape_tool.cancel()

    def _apply_settings(self, settings: Settings) -> None:
        self.state.settings = settings
        self.programs.max_program_num = settings.max_program_num
        self.sampler.sampling_distance = settings.sampling_distance
        self.mapper = CoordinateMapper.from_settings(settings, *self.state.canvas_size)
        self.renderer.mapper = self.mapper
        self.renderer.settings = settings
        self._redraw_all()

    # ------------------------------------------------------------------
    # Pointer handling
    # ------------------------------------------------------------------
    def _pointer_down(self, c: cmd.PointerDown) -> XY:
        world = self._to_world(c.px, c.py)
        self.state.pointer_down = True
        self.state.pointer_world = world
        if self.state.tool == "spline":
            if self.playback.state.is_animating:
                self.playback.stop()
            self.sampler.path = self.programs.path
            self.sampler.begin(world)
            self._path_changed()
        else:
            self.shape_tool.shapes = self.programs.shapes
            self.shape_tool.create(self.state.tool, world)
            self._shapes_changed()
        return world

    def _pointer_move(self, c: cmd.PointerMove) -> XY:
        world = self._to_world(c.px, c.py)
        self.state.pointer_world = world
        if self.state.pointer_down:
            if self.state.tool == "spline":
                if self.sampler.continue_to(world):
                    self._path_changed()
            elif self.shape_tool.update_end(world) is not None:
                self._shapes_changed()
        if self.playback.state.is_animating:
            self.renderer.clear_cursor()
        else:
            self.renderer.draw_snap_indicator(world)
        return world

    def _pointer_up(self, c: cmd.PointerUp) -> XY:
        world = self._to_world(c.px, c.py)
        if self.state.pointer_down:
            if self.state.tool == "spline":
                self.sampler.release()
            elif self.shape_tool.commit(world) is not None:
                self._shapes_changed()
        self.state.pointer_down = False
        self.renderer.clear_cursor()
        return world

    def _select_tool(self, c: cmd.SelectTool) -> str:
        if c.tool not in TOOLS:
            raise ValidationError(f"Unknown tool {c.tool!r}; expected one of {', '.join(TOOLS)}")
        self.sampler.end()
        self.shape_tool.cancel()
        self.state.tool = c.tool
        self._shapes_changed()
        return c.tool

    def _set_sampling_mode(self, c: cmd.SetSamplingMode) -> str:
        try:
            mode = SamplingMode(c.mode)
        except ValueError as exc:
            raise ValidationError(f"Unknown sampling mode {c.mode!r}") from exc
        self.sampler.end()
        self.sampler.mode = mode
        return mode.value

    def _finish_path(self, c: cmd.FinishPath) -> int:
        self.sampler.end()
        return len(self.path)

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------
    def _add_point(self, c: cmd.AddPoint):
        point = self.path.add_point(c.x, c.y, c.velocity, index=c.index)
        self._path_changed()
        return point

    def _update_point(self, c: cmd.UpdatePoint):
        point = self.path.update_point(c.point_id, x=c.x, y=c.y, velocity=c.velocity)
        self._path_changed()
        return point

    def _remove_point(self, c: cmd.RemovePoint):
        point = self.path.remove_point(c.point_id)
        self._path_changed()
        return point

    def _set_all_velocities(self, c: cmd.SetAllVelocities) -> int:
        self.path.set_all_velocities(c.velocity)
        self._path_changed()
        return len(self.path)

    def _replace_path(self, c: cmd.ReplacePath) -> int:
        path = Path.from_list(c.points)
        self.programs.path.points = path.points
        self._rebind()
        self._path_changed()
        return len(self.path)

    def _clear_path(self, c: cmd.ClearPath) -> None:
        self.playback.stop()
        self.sampler.end()
        self.path.clear()
        self._path_changed()

    def _clear_all(self, c: cmd.ClearAll) -> None:
        self.playback.stop()
        self.programs.clear_current()
        self._rebind()
        self._redraw_all()

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------
    def _shape(self, index: int) -> Shape:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self.shapes):
            raise ValidationError(f"no shape at index {index!r}")
        return self.shapes[index]

    def _edit_shape(self, c: cmd.EditShape) -> Shape:
        edited = self._shape(c.index).clone()
        if c.width is not None:
            set_width(edited, c.width)
        if c.height is not None:
            set_height(edited, c.height)
        if c.diameter is not None:
            set_diameter(edited, c.diameter)
        if c.x is not None or c.y is not None:
            x = edited.start[0] if c.x is None else c.x
            y = edited.start[1] if c.y is None else c.y
            set_position(edited, x, y)
        self.shapes[c.index] = edited
        self._shapes_changed()
        return edited

    def _remove_shape(self, c: cmd.RemoveShape) -> Shape:
        self._shape(c.index)
        shape = self.shapes.pop(c.index)
        self._shapes_changed()
        return shape

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------
    def _switch_program(self, c: cmd.SwitchProgram) -> bool:
        self.programs.validate_index(c.index)
        self.playback.stop()
        self.sampler.end()
        changed = self.programs.switch_to(c.index)
        if changed:
            self._rebind()
            self._redraw_all()
        return changed

    def _copy_program(self, c: cmd.CopyProgram):
        return self.programs.copy_to(c.index)

    def _clear_program(self, c: cmd.ClearProgram) -> None:
        self.programs.clear_slot(c.index)
        if c.index == self.programs.current_index:
            self.playback.stop()
            self._rebind()
            self._redraw_all()

    def _set_description(self, c: cmd.SetDescription) -> str:
        self.programs.set_description(c.text)
        return self.programs.description

    # ------------------------------------------------------------------
    # Settings / project
    # ------------------------------------------------------------------
    def _update_settings(self, c: cmd.UpdateSettings) -> Settings:
        settings = self.settings.updated(**c.changes)
        self.programs.set_max_program_num(settings.max_program_num)
        self._apply_settings(settings)
        self.settings_manager.replace(settings)
        logger.info("Settings updated: %s", ", ".join(sorted(c.changes)))
        return settings

    def _reset_settings(self, c: cmd.ResetSettings) -> Settings:
        defaults = Settings()
        self.programs.set_max_program_num(defaults.max_program_num)
        self._apply_settings(defaults)
        self.settings_manager.replace(defaults)
        return defaults

    def _set_theme(self, c: cmd.SetTheme) -> str:
        return self.settings_manager.set_theme(c.theme)

    def _resize_canvas(self, c: cmd.ResizeCanvas) -> Tuple[float, float]:
        try:
            width, height = float(c.width), float(c.height)
        except (TypeError, ValueError) as exc:
            raise ValidationError("canvas size must be numeric") from exc
        if not (0 < width < math.inf and 0 < height < math.inf):
            raise ValidationError("canvas size must be positive and finite")
        self.state.canvas_size = (width, height)
        for surface in self.layers.values():
            surface.width, surface.height = width, height
        self._apply_settings(self.settings)
        return self.state.canvas_size

    def _load_project(self, c: cmd.LoadProject) -> int:
        project = load_project(c.text)
        self.playback.stop()
        self.sampler.end()
        self.programs.max_program_num = project.settings.max_program_num
        self.programs.restore(project.slots, project.current_index)
        self.state.project_name = project.name
        self._rebind()
        self._apply_settings(project.settings)
        self.settings_manager.replace(project.settings)
        logger.info("Loaded project %s (version %s, %d programs)", project.name, project.version, len(project.slots))
        return project.current_index

    def _import_svg(self, c: cmd.ImportSvg) -> int:
        document = SVGDocument.from_bytes(c.data)
        path = import_svg_path(document, self.settings, index=c.path_index, scale=c.scale)
        self.playback.stop()
        self.programs.path.points = path.points
        self._rebind()
        self._path_changed()
        return len(self.path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def preview_svg(self) -> str:
        with self._lock:
            width, height = self.state.canvas_size
            return svg_document(width, height, [self.layers[name] for name in LAYERS])

    def summary(self) -> Dict[str, Any]:
        with self._lock:
            curve = self.curve
            return {
                "tool": self.state.tool,
                "sampling_mode": self.sampler.mode.value,
                "current_program": self.programs.current_index,
                "description": self.programs.description,
                "points": len(self.path),
                "shapes": len(self.shapes),
                "length_mm": curve.calculate_spline_length(),
                "playback": {"status": self.playback.status, **self.playback.state.to_dict()},
                "programs": self.programs.summary(),
                "theme": self.settings_manager.theme,
            }

    def project_json(self, name: Optional[str] = None) -> str:
        with self._lock:
            return dump_project(self.programs, self.settings, name=name or self.state.project_name)

    def export_files(self, index: Optional[int] = None) -> Dict[str, str]:
        with self._lock:
            slot = self.programs.get(self.programs.current_index if index is None else index)
            return export_program(slot, self.settings)

    def export_zip(self, name: Optional[str] = None) -> bytes:
        with self._lock:
            return export_bundle(self.programs, self.settings, project_name=name or self.state.project_name)


__all__ = ["AppState", "PathController", "TOOLS"]
