"""Robot program export.

Each exportable program slot becomes two KRL text files named after
``{basename}{index}``:

* ``.dat`` declares one ``E6POS`` position and one ``REAL`` speed per point.
  Positions are written with three decimals; the path's x goes to the axis
  named by ``axis1``, y to ``axis2`` and the remaining axis is zero.  Speeds are
  the point velocity divided by 1000 (mm/s to m/s).
* ``.src`` holds one ``SLIN`` statement per point in path order; the first
  one also switches the controller to constant orientation.

Point numbers are 1-based and contiguous.
"""
from __future__ import annotations

import io
import logging
import zipfile
from datetime import datetime, timezone
from pathlib import Path as FilePath
from typing import Dict, Iterable, List, Optional

from .config import AXIS_LABELS, Settings
from .programs import ProgramSlot, ProgramStore
from .project import dumps as dump_project

logger = logging.getLogger(__name__)

TEMPLATE_DIR = FilePath(__file__).resolve().parent / "templates"

EMBEDDED_TEMPLATES = {
    "dat": (
        "&ACCESS RVP\n"
        "&REL 1\n"
        "DEFDAT {name} PUBLIC\n"
        ";{description}\n"
        ";generated by robospline {timestamp}\n"
        "{body}\n"
        "ENDDAT\n"
    ),
    "src": (
        "&ACCESS RVP\n"
        "&REL 1\n"
        "DEF {name}( )\n"
        ";{description}\n"
        ";generated by robospline {timestamp}\n"
        "{body}\n"
        "END\n"
    ),
}


def load_template(kind: str, template_dir: Optional[FilePath] = None) -> str:
    """Read ``program.<kind>``, falling back to the embedded copy."""

    path = (template_dir or TEMPLATE_DIR) / f"program.{kind}"
    try:
        return path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Template %s not readable, using embedded template", path)
        return EMBEDDED_TEMPLATES[kind]


def program_name(settings: Settings, index: int) -> str:
    return f"{settings.basename}{index}"


def _fixed(value: float, digits: int) -> str:
    text = f"{value:.{digits}f}"
    if text.startswith("-") and float(text) == 0:
        text = text[1:]
    return text


def axis_triple(x: float, y: float, settings: Settings) -> Dict[str, float]:
    coords = {label: 0.0 for label in AXIS_LABELS}
    coords[settings.axis1] = x
    coords[settings.axis2] = y
    return coords


def _comment(text: str) -> str:
    return " ".join((text or "").split())


def encode_dat(slot: ProgramSlot, settings: Settings, *, timestamp: str = "", template: Optional[str] = None) -> str:
    lines: List[str] = [f"DECL INT POINT_COUNT={len(slot.path)}"]
    for n, point in enumerate(slot.path, start=1):
        coords = axis_triple(point.x, point.y, settings)
        pos = ",".join(f"{label} {_fixed(coords[label], 3)}" for label in AXIS_LABELS)
        lines.append(f"DECL E6POS XP{n}={{{pos}}}")
        lines.append(f"DECL REAL VP{n}={_fixed(point.velocity / 1000.0, 4)}")
    return (template or load_template("dat")).format(
        name=program_name(settings, slot.index),
        description=_comment(slot.description),
        timestamp=timestamp,
        body="\n".join(lines),
    )


def encode_src(slot: ProgramSlot, settings: Settings, *, timestamp: str = "", template: Optional[str] = None) -> str:
    lines: List[str] = []
    for n in range(1, len(slot.path) + 1):
        statement = f"SLIN XP{n} WITH $VEL.CP=VP{n}"
        if n == 1:
            statement += ", $ORI_TYPE=#CONSTANT"
        lines.append(statement)
    return (template or load_template("src")).format(
        name=program_name(settings, slot.index),
        description=_comment(slot.description),
        timestamp=timestamp,
        body="\n".join(lines),
    )


def export_program(slot: ProgramSlot, settings: Settings, *, timestamp: Optional[str] = None) -> Dict[str, str]:
    """Return ``{filename: text}`` for the ``.dat`` and ``.src`` of one slot."""

    stamp = timestamp if timestamp is not None else datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    name = program_name(settings, slot.index)
    return {
        f"{name}.dat": encode_dat(slot, settings, timestamp=stamp),
        f"{name}.src": encode_src(slot, settings, timestamp=stamp),
    }


def export_programs(slots: Iterable[ProgramSlot], settings: Settings, *, timestamp: Optional[str] = None) -> Dict[str, str]:
    files: Dict[str, str] = {}
    for slot in slots:
        files.update(export_program(slot, settings, timestamp=timestamp))
    return files


def export_bundle(
    store: ProgramStore,
    settings: Settings,
    *,
    project_name: str = "project",
    timestamp: Optional[str] = None,
) -> bytes:
    """Zip every exportable slot's files together with the project JSON."""

    files = export_programs(store.exportable_slots(), settings, timestamp=timestamp)
    files[f"{project_name}.json"] = dump_project(store, settings, name=project_name)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for filename, text in files.items():
            zf.writestr(filename, text)
    logger.info("Exported %d files for project %s", len(files), project_name)
    return buffer.getvalue()


def write_files(files: Dict[str, str], directory: FilePath) -> List[FilePath]:
    directory = FilePath(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for filename, text in files.items():
        target = directory / filename
        target.write_text(text, encoding="utf-8")
        written.append(target)
    return written


__all__ = [
    "EMBEDDED_TEMPLATES",
    "TEMPLATE_DIR",
    "axis_triple",
    "encode_dat",
    "encode_src",
    "export_bundle",
    "export_program",
    "export_programs",
    "load_template",
    "program_name",
    "write_files",
]
