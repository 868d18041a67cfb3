"""
conftest.py: Shared pytest fixtures for the timezone engine test suite.

Provides:
    - Synthetic rings (squares) with known inside/outside/boundary points.
    - A small on-disk dataset (bvh.json + tz_bin/) written into tmp_path.
    - A ready Engine built from that dataset with an isolated cache.

Dataset layout (all boxes inclusive):

    root                      [-180, -90] .. [180, 90]
    ├── leaf A                [-1, -1] .. [16, 16]
    │     Africa/Lagos #0     square (0,0)-(10,10)
    │     Africa/Porto-Novo #0  bbox (2,2)-(8,8), no file on disk
    └── internal B            [-81, -1] .. [16, 41]
          ├── leaf B1         [4, 4] .. [16, 16]
          │     Africa/Douala #0  square (5,5)-(15,15), overlaps Lagos
          └── leaf B2         [-81, 29] .. [-69, 41]
                America/New_York #0  square (-80,30)-(-70,40)
                America/New_York #1  square (-75,35)-(-72,38)
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import quote

import pytest

from tzengine.config import Settings
from tzengine.loader import Engine, load_engine
from tzengine.polygon_store import encode_ring


def square(x0: float, y0: float, x1: float, y1: float) -> list[tuple[float, float]]:
    """Clockwise square ring without a repeated closing vertex."""
    return [(x0, y0), (x0, y1), (x1, y1), (x1, y0)]


def box(x0: float, y0: float, x1: float, y1: float) -> list[list[float]]:
    return [[x0, y0], [x1, y1]]


def ref(tz: str, index: int, bbox: list[list[float]]) -> dict:
    return {"tz": quote(tz, safe=""), "i": index, "b": bbox}


# ── Ring fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def square_ring() -> list[tuple[float, float]]:
    """
    The square (0,0),(0,10),(10,10),(10,0).
    Inside: (5, 5). Outside: (20, 20). Boundary: (0, 5).
    """
    return square(0, 0, 10, 10)


# ── Dataset fixtures ──────────────────────────────────────────────────────────

RINGS = {
    ("Africa/Lagos", 0): square(0, 0, 10, 10),
    ("Africa/Douala", 0): square(5, 5, 15, 15),
    ("America/New_York", 0): square(-80, 30, -70, 40),
    ("America/New_York", 1): square(-75, 35, -72, 38),
}


@pytest.fixture
def bvh_tree() -> dict:
    return {
        "b": box(-180, -90, 180, 90),
        "l": {
            "b": box(-1, -1, 16, 16),
            "p": [
                ref("Africa/Lagos", 0, box(0, 0, 10, 10)),
                ref("Africa/Porto-Novo", 0, box(2, 2, 8, 8)),
            ],
        },
        "r": {
            "b": box(-81, -1, 16, 41),
            "l": {
                "b": box(4, 4, 16, 16),
                "p": [ref("Africa/Douala", 0, box(5, 5, 15, 15))],
            },
            "r": {
                "b": box(-81, 29, -69, 41),
                "p": [
                    ref("America/New_York", 0, box(-80, 30, -70, 40)),
                    ref("America/New_York", 1, box(-75, 35, -72, 38)),
                ],
            },
        },
    }


def write_ring(rings_dir: Path, tz: str, index: int, points) -> Path:
    path = rings_dir / quote(tz, safe="") / f"{index}.bin"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_ring(points))
    return path


@pytest.fixture
def settings(tmp_path, bvh_tree) -> Settings:
    """Settings pointing at a freshly written synthetic dataset."""
    settings = Settings(data_dir=tmp_path)
    settings.bvh_path.write_text(json.dumps(bvh_tree), encoding="utf-8")
    for (tz, index), points in RINGS.items():
        write_ring(settings.rings_dir, tz, index, points)
    return settings


@pytest.fixture
def engine(settings) -> Engine:
    """Engine over the synthetic dataset with its own cold cache."""
    return load_engine(settings)
