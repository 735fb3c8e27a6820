"""Degree ↔ unit-vector conversion and basic vector helpers.

Every predicate in the engine works on float64 unit vectors in
Earth-centred Cartesian coordinates (x towards lon 0, y towards lon 90,
z towards the north pole).  Points within ``pole_snap_degrees`` of a
pole are snapped to exactly ``(0, 0, ±1)`` so that a pole reached along
different meridians is one point, not many.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from geoquery.core.constants import MAX_LATITUDE

DEFAULT_POLE_SNAP_DEGREES = 1e-9

NORTH_POLE = np.array([0.0, 0.0, 1.0])
SOUTH_POLE = np.array([0.0, 0.0, -1.0])


def to_unit_vectors(
    coords: Sequence[tuple[float, float]],
    *,
    pole_snap_degrees: float = DEFAULT_POLE_SNAP_DEGREES,
) -> np.ndarray:
    """Convert ``(lon, lat)`` degree pairs to an ``(N, 3)`` array of unit vectors."""
    arr = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
    lon = np.radians(arr[:, 0])
    lat = np.radians(arr[:, 1])
    cos_lat = np.cos(lat)
    out = np.column_stack((cos_lat * np.cos(lon), cos_lat * np.sin(lon), np.sin(lat)))

    near_pole = np.abs(arr[:, 1]) >= MAX_LATITUDE - pole_snap_degrees
    if near_pole.any():
        out[near_pole] = 0.0
        out[near_pole, 2] = np.sign(arr[near_pole, 1])
    return out


def to_unit_vector(
    lon: float,
    lat: float,
    *,
    pole_snap_degrees: float = DEFAULT_POLE_SNAP_DEGREES,
) -> np.ndarray:
    """Convert a single ``(lon, lat)`` degree pair to a unit vector of shape ``(3,)``."""
    return to_unit_vectors([(lon, lat)], pole_snap_degrees=pole_snap_degrees)[0]


def to_lon_lat(v: np.ndarray) -> tuple[float, float]:
    """Convert a unit vector back to a ``(lon, lat)`` degree pair."""
    x, y, z = (float(c) for c in v)
    lat = float(np.degrees(np.arctan2(z, np.hypot(x, y))))
    lon = float(np.degrees(np.arctan2(y, x))) if (x or y) else 0.0
    return (lon, lat)


def normalize(v: np.ndarray) -> np.ndarray:
    """Scale vectors along the last axis to unit length (zero vectors stay zero)."""
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return np.divide(v, norm, out=np.zeros_like(v), where=norm > 0)


def dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Row-wise dot product over the last axis, broadcasting."""
    return np.einsum("...i,...i->...", a, b)


def angle_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Angle in radians between unit vectors, accurate for tiny and near-π angles."""
    return np.arctan2(np.linalg.norm(np.cross(a, b), axis=-1), dot(a, b))


def orthogonal(v: np.ndarray) -> np.ndarray:
    """Return a unit vector orthogonal to unit vector *v*."""
    axis = np.zeros(3)
    axis[int(np.argmin(np.abs(v)))] = 1.0
    return normalize(np.cross(v, axis))
