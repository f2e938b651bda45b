"""Entry point for the robot spline path tools."""

import sys

from robospline.cli import main


if __name__ == "__main__":
    sys.exit(main())
