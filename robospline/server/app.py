"""FastAPI application exposing the path controller over HTTP.

Playback frames are pulled: every ``GET /api/playback/frame`` runs the pending
frame callback against the wall clock, so the browser's animation loop acts as
the frame host.
"""
from __future__ import annotations

import json
import logging
import math
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response

from .. import commands as cmd
from ..config import ValidationError
from ..controller import PathController
from ..playback import MAX_SPEED, MIN_SPEED
from ..project import ProjectFormatError
from ..storage import JsonFileStore, MemoryStore

logger = logging.getLogger(__name__)

STORE_ENV = "ROBOSPLINE_STORE"


def create_controller(store_path: Optional[str] = None) -> PathController:
    store_path = store_path or os.environ.get(STORE_ENV)
    if store_path:
        logger.info("Persisting settings to %s", store_path)
        return PathController(JsonFileStore(store_path))
    return PathController(MemoryStore())


def _float(payload: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    value = payload.get(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"{key} must be a number") from exc
    if not math.isfinite(number):
        raise HTTPException(status_code=400, detail=f"{key} must be a finite number")
    return number


def _int(payload: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    try:
        return int(payload[key] if default is None else payload.get(key, default))
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise HTTPException(status_code=400, detail=f"{key} must be an integer") from exc


def create_app(controller: PathController) -> FastAPI:
    app = FastAPI(title="Robot Spline Path Server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.controller = controller

    def run(command: cmd.Command) -> Any:
        try:
            return controller.dispatch(command)
        except (ValidationError, ProjectFormatError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    def path_payload() -> Dict[str, Any]:
        return {"points": controller.path.to_list(), "length_mm": controller.curve.calculate_spline_length()}

    @app.get("/")
    def index() -> Response:
        return Response(content=controller.preview_svg(), media_type="image/svg+xml")

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/status")
    def status() -> Dict[str, Any]:
        return controller.summary()

    # -------------------------------------------------------------- input
    @app.post("/api/pointer/{action}")
    def pointer(action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        kinds = {"down": cmd.PointerDown, "move": cmd.PointerMove, "up": cmd.PointerUp}
        if action not in kinds:
            raise HTTPException(status_code=404, detail=f"unknown pointer action {action}")
        x, y = run(kinds[action](_float(payload, "px"), _float(payload, "py")))
        return {"x": x, "y": y, "points": len(controller.path)}

    @app.post("/api/tool")
    def tool(payload: Dict[str, Any]) -> Dict[str, Any]:
        result = {"tool": run(cmd.SelectTool(str(payload.get("tool", ""))))}
        if "mode" in payload:
            result["mode"] = run(cmd.SetSamplingMode(str(payload["mode"])))
        return result

    # --------------------------------------------------------------- path
    @app.get("/api/path")
    def get_path() -> Dict[str, Any]:
        return path_payload()

    @app.post("/api/path")
    def post_path(payload: Dict[str, Any]) -> Dict[str, Any]:
        points = payload.get("points")
        if not isinstance(points, list):
            raise HTTPException(status_code=400, detail="points must be a list")
        run(cmd.ReplacePath(points))
        return path_payload()

    @app.delete("/api/path")
    def clear_path() -> Dict[str, Any]:
        run(cmd.ClearPath())
        return {"ok": True}

    @app.post("/api/path/points")
    def add_point(payload: Dict[str, Any]) -> Dict[str, Any]:
        index = payload.get("index")
        point = run(cmd.AddPoint(payload.get("x"), payload.get("y"), payload.get("velocity", 30.0),
                                 None if index is None else _int(payload, "index")))
        return point.to_dict()

    @app.patch("/api/path/points/{point_id}")
    def update_point(point_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        point = run(cmd.UpdatePoint(point_id, payload.get("x"), payload.get("y"), payload.get("velocity")))
        return point.to_dict()

    @app.delete("/api/path/points/{point_id}")
    def remove_point(point_id: int) -> Dict[str, Any]:
        run(cmd.RemovePoint(point_id))
        return path_payload()

    @app.post("/api/path/velocity")
    def set_velocity(payload: Dict[str, Any]) -> Dict[str, Any]:
        run(cmd.SetAllVelocities(payload.get("velocity")))
        return path_payload()

    @app.post("/api/path/import-svg")
    def import_svg(payload: Dict[str, Any]) -> Dict[str, Any]:
        svg = payload.get("svg")
        if not isinstance(svg, str):
            raise HTTPException(status_code=400, detail="svg must be the SVG document text")
        try:
            count = run(cmd.ImportSvg(svg.encode("utf-8"), _int(payload, "path_index", 0), _float(payload, "scale", 1.0)))
        except (IndexError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"ok": True, "points": count}

    # ------------------------------------------------------------- shapes
    @app.get("/api/shapes")
    def get_shapes() -> Dict[str, Any]:
        return {"shapes": [s.to_dict() for s in controller.shapes]}

    @app.patch("/api/shapes/{index}")
    def edit_shape(index: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        keys = ("width", "height", "diameter", "x", "y")
        shape = run(cmd.EditShape(index, **{k: payload[k] for k in keys if k in payload}))
        return shape.to_dict()

    @app.delete("/api/shapes/{index}")
    def remove_shape(index: int) -> Dict[str, Any]:
        run(cmd.RemoveShape(index))
        return {"ok": True}

    # ----------------------------------------------------------- programs
    @app.post("/api/programs/{index}/switch")
    def switch_program(index: int) -> Dict[str, Any]:
        return {"changed": run(cmd.SwitchProgram(index)), "current": controller.programs.current_index}

    @app.post("/api/programs/{index}/copy")
    def copy_program(index: int) -> Dict[str, Any]:
        run(cmd.CopyProgram(index))
        return {"ok": True}

    @app.delete("/api/programs/{index}")
    def clear_program(index: int) -> Dict[str, Any]:
        run(cmd.ClearProgram(index))
        return {"ok": True}

    @app.put("/api/programs/current/description")
    def set_description(payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"description": run(cmd.SetDescription(str(payload.get("description", ""))))}

    # ----------------------------------------------------------- settings
    @app.get("/api/settings")
    def get_settings() -> Dict[str, Any]:
        return controller.settings.to_dict()

    @app.put("/api/settings")
    def put_settings(payload: Dict[str, Any]) -> Dict[str, Any]:
        return run(cmd.UpdateSettings(dict(payload))).to_dict()

    @app.post("/api/settings/reset")
    def reset_settings() -> Dict[str, Any]:
        return run(cmd.ResetSettings()).to_dict()

    @app.put("/api/theme")
    def set_theme(payload: Dict[str, Any]) -> Dict[str, Any]:
        return {"theme": run(cmd.SetTheme(str(payload.get("theme", ""))))}

    # ----------------------------------------------------------- playback
    @app.post("/api/playback/{action}")
    def playback(action: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = payload or {}
        if action == "play":
            if not run(cmd.Play()):
                raise HTTPException(status_code=409, detail="at least two points are required")
        elif action == "pause":
            run(cmd.Pause())
        elif action == "stop":
            run(cmd.Stop())
        elif action == "seek":
            run(cmd.Seek(_float(payload, "progress")))
        elif action == "speed":
            speed = _float(payload, "speed")
            run(cmd.SetSpeed(min(MAX_SPEED, max(MIN_SPEED, speed)) if speed > 0 else speed))
        else:
            raise HTTPException(status_code=404, detail=f"unknown playback action {action}")
        return frame_payload()

    def frame_payload() -> Dict[str, Any]:
        position = controller.playback.position
        return {
            "status": controller.playback.status,
            **controller.playback.state.to_dict(),
            "position": None if position is None else {
                "x": position.x,
                "y": position.y,
                "segment_index": position.segment_index,
                "local_parameter": position.local_parameter,
            },
        }

    @app.get("/api/playback/frame")
    def playback_frame() -> Dict[str, Any]:
        run(cmd.Tick())
        return frame_payload()

    # ------------------------------------------------------------ project
    @app.get("/api/project")
    def get_project() -> Response:
        return Response(content=controller.project_json(), media_type="application/json")

    @app.post("/api/project")
    def post_project(payload: Dict[str, Any]) -> Dict[str, Any]:
        current = run(cmd.LoadProject(json.dumps(payload)))
        return {"ok": True, "currentProgramIndex": current}

    @app.get("/api/export/{index}")
    def export_program(index: int) -> Dict[str, str]:
        try:
            return controller.export_files(index)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.get("/api/export/{index}/{filename}")
    def export_file(index: int, filename: str) -> PlainTextResponse:
        try:
            files = controller.export_files(index)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if filename not in files:
            raise HTTPException(status_code=404, detail=f"{filename} not part of program {index}")
        return PlainTextResponse(files[filename])

    @app.get("/api/bundle")
    def export_bundle() -> Response:
        name = controller.state.project_name
        return Response(
            content=controller.export_zip(),
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{name}.zip"'},
        )

    return app


controller = create_controller()
app = create_app(controller)


__all__ = ["app", "controller", "create_app", "create_controller"]
