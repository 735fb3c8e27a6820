"""Shared pytest fixtures for the geoquery test suite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from geoquery.core.constants import STRICT_WINDING_CRS
from geoquery.query import GeoCollection

# ---------------------------------------------------------------------------
# Paths and data loading
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"
BIG_GEODATA_PATH = DATA_DIR / "big_geodata.json"


def load_big_geodata() -> list[dict]:
    """Load the frozen fixture set (6 points, 3 line strings, 11 polygons)."""
    with BIG_GEODATA_PATH.open(encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture()
def big_geodata() -> list[dict]:
    """Return the fixture documents as ``{"name", "geo"}`` dicts."""
    return load_big_geodata()


@pytest.fixture(scope="session")
def big_collection() -> GeoCollection:
    """A collection holding every fixture geometry, keyed by list position.

    Session-scoped: tests must not insert into or remove from it.
    """
    collection = GeoCollection()
    for k, doc in enumerate(load_big_geodata()):
        collection.insert(k, doc["geo"])
    return collection


# ---------------------------------------------------------------------------
# Wire geometry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def strict_crs() -> dict:
    """Named CRS member selecting strict winding."""
    return {"type": "name", "properties": {"name": STRICT_WINDING_CRS}}


@pytest.fixture()
def shenzhen_triangle() -> list[list[float]]:
    """Small counter-clockwise triangle over Shenzhen (closed ring)."""
    return [
        [114.0834046, 22.6648202],
        [113.8293457, 22.3819359],
        [114.2736054, 22.4047911],
        [114.0834046, 22.6648202],
    ]


@pytest.fixture()
def pole_band_ring() -> list[list[float]]:
    """Ring whose left side covers both poles, leaving two thin longitude bands.

    The bands run 120..130 and -130..-120 degrees from latitude -89 to
    89 and join in a thin sliver just short of the north pole.
    """
    return [
        [120.0, 89.0],
        [-120.0, 89.0],
        [-120.0, -89.0],
        [-130.0, -89.0],
        [-130.0, 89.0],
        [130.0, 89.0],
        [130.0, -89.0],
        [120.0, -89.0],
        [120.0, 89.0],
    ]


@pytest.fixture()
def square_ring() -> list[list[float]]:
    """Counter-clockwise 10-degree square (closed ring)."""
    return [[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0], [0.0, 0.0]]
