"""Launch the robot spline FastAPI server; extra arguments go to ``robospline serve``."""
from __future__ import annotations

import sys

from robospline.cli import main


if __name__ == "__main__":
    sys.exit(main(["serve", *sys.argv[1:]]))
