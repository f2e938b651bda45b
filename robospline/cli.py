"""Command line entry point.

Run with::

    robospline serve [--host 0.0.0.0] [--port 8000] [--store settings.json]
    robospline export project.json --out build/
    robospline preview project.json --out preview.svg
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import commands as cmd
from .config import ValidationError
from .controller import PathController
from .export import write_files
from .project import ProjectFormatError

logger = logging.getLogger(__name__)


def _load(project_file: str) -> PathController:
    controller = PathController()
    with open(project_file, "r", encoding="utf-8") as f:
        controller.dispatch(cmd.LoadProject(f.read()))
    return controller


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    if args.store:
        os.environ["ROBOSPLINE_STORE"] = args.store
    uvicorn.run("robospline.server.app:app", host=args.host, port=args.port, reload=False)
    return 0


def _export(args: argparse.Namespace) -> int:
    controller = _load(args.project)
    out = Path(args.out)
    if args.zip:
        out.mkdir(parents=True, exist_ok=True)
        target = out / f"{controller.state.project_name}.zip"
        target.write_bytes(controller.export_zip())
        logger.info("Wrote %s", target)
        return 0
    slots = list(controller.programs.exportable_slots())
    if not slots:
        logger.warning("Project has no programs with points or shapes")
        return 1
    for slot in slots:
        for written in write_files(controller.export_files(slot.index), out):
            logger.info("Wrote %s", written)
    return 0


def _preview(args: argparse.Namespace) -> int:
    controller = _load(args.project)
    Path(args.out).write_text(controller.preview_svg(), encoding="utf-8")
    logger.info("Wrote %s", args.out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="robospline", description="Robot spline path authoring tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--store", help="JSON file used to persist settings")
    serve.set_defaults(func=_serve)

    export = sub.add_parser("export", help="write .dat/.src files for every program of a project")
    export.add_argument("project", help="project JSON file (version 1.0 or 2.0)")
    export.add_argument("--out", default=".", help="output directory")
    export.add_argument("--zip", action="store_true", help="write a single zip bundle instead")
    export.set_defaults(func=_export)

    preview = sub.add_parser("preview", help="render the active program as SVG")
    preview.add_argument("project")
    preview.add_argument("--out", default="preview.svg")
    preview.set_defaults(func=_preview)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (OSError, ProjectFormatError, ValidationError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
