"""Project file format.

Version ``2.0``::

    {"version": "2.0", "timestamp": ..., "projectName": ...,
     "currentProgramIndex": 1, "settings": {...},
     "programPaths": {"1": {"splinePoints": [...], "shapes": [...],
                            "description": ""}}}

Version ``1.0`` files carry a single path (``splinePoints`` / ``shapes`` at
the top level) and are upgraded into program slot 1 on load.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path as FilePath
from typing import Any, Dict, Optional, Union

from .config import Settings, ValidationError
from .geometry import Path, Shape
from .programs import ProgramSlot, ProgramStore

logger = logging.getLogger(__name__)

PROJECT_VERSION = "2.0"
LEGACY_VERSION = "1.0"


class ProjectFormatError(ValueError):
    """Raised for malformed, unversioned or unsupported project files."""


@dataclass
class Project:
    settings: Settings
    slots: Dict[int, ProgramSlot] = field(default_factory=dict)
    current_index: int = 1
    name: str = "project"
    timestamp: Optional[str] = None
    version: str = PROJECT_VERSION


def project_to_dict(store: ProgramStore, settings: Settings, *, name: str = "project") -> Dict[str, Any]:
    slots = store.snapshot()
    return {
        "version": PROJECT_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "projectName": name,
        "currentProgramIndex": store.current_index,
        "settings": settings.to_dict(),
        "programPaths": {
            str(index): {
                "splinePoints": slot.path.to_list(),
                "shapes": [s.to_dict() for s in slot.shapes],
                "description": slot.description,
            }
            for index, slot in sorted(slots.items())
            if not slot.is_empty or slot.description
        },
    }


def dumps(store: ProgramStore, settings: Settings, *, name: str = "project") -> str:
    return json.dumps(project_to_dict(store, settings, name=name), indent=2)


def _slot_from_dict(index: int, data: Any) -> ProgramSlot:
    if not isinstance(data, dict):
        raise ProjectFormatError(f"program {index} must be an object")
    points = data.get("splinePoints", [])
    shapes = data.get("shapes", [])
    if not isinstance(points, list) or not isinstance(shapes, list):
        raise ProjectFormatError(f"program {index}: splinePoints and shapes must be lists")
    description = data.get("description", "") or ""
    try:
        return ProgramSlot(
            index=index,
            path=Path.from_list(points),
            shapes=[Shape.from_dict(s) for s in shapes],
            description=str(description),
        )
    except ValidationError as exc:
        raise ProjectFormatError(f"program {index}: {exc}") from exc


def project_from_dict(data: Any) -> Project:
    """Parse and fully validate a project mapping without touching any state."""

    if not isinstance(data, dict):
        raise ProjectFormatError("project file must contain a JSON object")
    version = data.get("version")
    if version is None:
        raise ProjectFormatError("project file has no version")
    version = str(version)

    raw_settings = data.get("settings", {})
    if not isinstance(raw_settings, dict):
        raise ProjectFormatError("settings must be an object")
    try:
        settings = Settings.from_dict(raw_settings)
    except ValidationError as exc:
        raise ProjectFormatError(f"invalid settings: {exc}") from exc

    if version == LEGACY_VERSION:
        slot = _slot_from_dict(1, {"splinePoints": data.get("splinePoints", []), "shapes": data.get("shapes", [])})
        logger.info("Upgrading version %s project into program slot 1", LEGACY_VERSION)
        return Project(settings=settings, slots={1: slot}, current_index=1, version=version,
                       name=str(data.get("projectName", "project")), timestamp=data.get("timestamp"))
    if version != PROJECT_VERSION:
        raise ProjectFormatError(f"unsupported project version {version!r}")

    programs = data.get("programPaths", {})
    if not isinstance(programs, dict):
        raise ProjectFormatError("programPaths must be an object")
    slots: Dict[int, ProgramSlot] = {}
    for key, value in programs.items():
        try:
            index = int(key)
        except (TypeError, ValueError) as exc:
            raise ProjectFormatError(f"invalid program index {key!r}") from exc
        if not 1 <= index <= settings.max_program_num:
            raise ProjectFormatError(f"program index {index} outside 1..{settings.max_program_num}")
        slots[index] = _slot_from_dict(index, value)

    current = data.get("currentProgramIndex", 1)
    if isinstance(current, bool) or not isinstance(current, int) or not 1 <= current <= settings.max_program_num:
        raise ProjectFormatError(f"invalid currentProgramIndex {current!r}")
    return Project(
        settings=settings,
        slots=slots,
        current_index=current,
        name=str(data.get("projectName", "project")),
        timestamp=data.get("timestamp"),
        version=version,
    )


def loads(text: Union[str, bytes]) -> Project:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ProjectFormatError(f"project file is not valid JSON: {exc}") from exc
    return project_from_dict(data)


def load_file(path: Union[str, FilePath]) -> Project:
    with open(path, "r", encoding="utf-8") as f:
        return loads(f.read())


def save_file(path: Union[str, FilePath], store: ProgramStore, settings: Settings, *, name: str = "project") -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(dumps(store, settings, name=name))


__all__ = [
    "Project",
    "ProjectFormatError",
    "PROJECT_VERSION",
    "LEGACY_VERSION",
    "project_to_dict",
    "project_from_dict",
    "dumps",
    "loads",
    "load_file",
    "save_file",
]
