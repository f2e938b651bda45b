"""Example script that generates a spiral path, plays it back and exports it."""
from __future__ import annotations

import math
import requests

from robospline.geometry import Path

SERVER = "http://localhost:8000"


def build_spiral(turns: int = 3, radius: float = 80.0, steps: int = 120, velocity: float = 40.0) -> Path:
    pts = []
    for i in range(steps):
        t = i / (steps - 1)
        angle = turns * 2 * math.pi * t
        r = radius * t
        pts.append((round(r * math.cos(angle), 3), round(r * math.sin(angle), 3)))
    return Path.from_xy(pts, velocity=velocity)


def main() -> None:
    path = build_spiral()
    res = requests.post(f"{SERVER}/api/path", json={"points": path.to_list()}, timeout=5)
    res.raise_for_status()
    print(f"{len(path)} points, {res.json()['length_mm']:.1f} mm")

    res = requests.put(f"{SERVER}/api/programs/current/description", json={"description": "spiral"}, timeout=5)
    res.raise_for_status()

    res = requests.get(f"{SERVER}/api/export/1", timeout=5)
    res.raise_for_status()
    for filename, text in res.json().items():
        print(f"--- {filename}")
        print(text)


if __name__ == "__main__":
    main()
