"""Orientation, crossing, distance and area predicates on the unit sphere.

Edges are minor great-circle arcs between two unit vectors that are
neither equal nor antipodal.  The normal of a directed edge ``a → b`` is
``normalize(a × b)``; the region where ``normal · p > 0`` lies to the
LEFT of the edge.

Tolerances are sines of angles.  A per-edge tolerance adds a term
inversely proportional to ``|a × b|`` because the normal of a short edge
carries a proportionally larger rounding error than that of a long one.

All functions broadcast over leading axes so that one call can test one
point against thousands of edges.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

import numpy as np

from geoquery.core.constants import DBL_EPSILON, HEMISPHERE_AREA, SPHERE_AREA
from geoquery.sphere._vectors import angle_between, dot, normalize

DEFAULT_EPSILON = 1e-12


class Side(enum.Enum):
    """Position of a point relative to a directed great-circle edge."""

    LEFT = "left"
    RIGHT = "right"
    ON = "on"


# ---------------------------------------------------------------------------
# Edge normals
# ---------------------------------------------------------------------------


def edge_normals(
    starts: np.ndarray,
    ends: np.ndarray,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> tuple[np.ndarray, np.ndarray]:
    """Return unit normals and per-edge tolerances for directed edges.

    Args:
        starts: ``(..., 3)`` edge start vectors.
        ends: ``(..., 3)`` edge end vectors.
        epsilon: Base tolerance.

    Returns:
        ``(normals, tolerances)``; normals of degenerate edges are zero.
    """
    cross = np.cross(starts, ends)
    norm = np.linalg.norm(cross, axis=-1)
    normals = np.divide(cross, norm[..., None], out=np.zeros_like(cross), where=norm[..., None] > 0)
    tolerances = epsilon + 4.0 * DBL_EPSILON / np.maximum(norm, DBL_EPSILON)
    return normals, tolerances


# ---------------------------------------------------------------------------
# Side / on-edge
# ---------------------------------------------------------------------------


def side_of_edge(
    point: np.ndarray,
    start: np.ndarray,
    end: np.ndarray,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> Side:
    """Classify *point* against the great circle through the directed edge."""
    normal, tol = edge_normals(start, end, epsilon=epsilon)
    s = float(dot(normal, point))
    if s > tol:
        return Side.LEFT
    if s < -tol:
        return Side.RIGHT
    return Side.ON


def points_on_edges(
    points: np.ndarray,
    starts: np.ndarray,
    ends: np.ndarray,
    normals: np.ndarray,
    tolerances: np.ndarray,
) -> np.ndarray:
    """Whether each point lies on the corresponding edge (endpoints included).

    Shapes broadcast: ``points (P, 1, 3)`` against edges ``(1, E, 3)``
    yields a ``(P, E)`` mask.
    """
    near_circle = np.abs(dot(normals, points)) <= tolerances
    after_start = dot(np.cross(starts, points), normals) >= -tolerances
    before_end = dot(np.cross(points, ends), normals) >= -tolerances
    # The two sine tests also accept the antipodal half of the circle; the
    # midpoint test rules it out for arcs shorter than a half circle.
    same_half = dot(points, starts + ends) > 0
    at_vertex = (angle_between(points, starts) <= tolerances) | (angle_between(points, ends) <= tolerances)
    return (near_circle & after_start & before_end & same_half) | at_vertex


def point_on_edge(
    point: np.ndarray,
    start: np.ndarray,
    end: np.ndarray,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> bool:
    """Whether *point* lies on the arc ``start → end`` (endpoints included)."""
    normal, tol = edge_normals(start, end, epsilon=epsilon)
    return bool(points_on_edges(point, start, end, normal, tol))


# ---------------------------------------------------------------------------
# Crossings
# ---------------------------------------------------------------------------


def proper_crossings(
    a1: np.ndarray,
    a2: np.ndarray,
    na: np.ndarray,
    tol_a: np.ndarray,
    b1: np.ndarray,
    b2: np.ndarray,
    nb: np.ndarray,
    tol_b: np.ndarray,
) -> np.ndarray:
    """Mask of edge pairs that cross at a point interior to both edges.

    All four endpoint orientations must be clear of the tolerance band;
    touching, collinear and shared-endpoint configurations are never
    reported as crossings.
    """
    s_c = dot(na, b1)
    s_d = dot(na, b2)
    s_a = dot(nb, a1)
    s_b = dot(nb, a2)
    robust = (np.abs(s_c) > tol_a) & (np.abs(s_d) > tol_a) & (np.abs(s_a) > tol_b) & (np.abs(s_b) > tol_b)
    sign_c = np.sign(s_c)
    return robust & (np.sign(s_d) == -sign_c) & (np.sign(s_b) == sign_c) & (np.sign(s_a) == -sign_c)


def crosses_edge(
    a1: np.ndarray,
    a2: np.ndarray,
    b1: np.ndarray,
    b2: np.ndarray,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> bool:
    """True iff arcs ``a1 → a2`` and ``b1 → b2`` cross at a point interior to both."""
    na, tol_a = edge_normals(a1, a2, epsilon=epsilon)
    nb, tol_b = edge_normals(b1, b2, epsilon=epsilon)
    return bool(proper_crossings(a1, a2, na, tol_a, b1, b2, nb, tol_b))


def arc_crossings(
    r1: np.ndarray,
    r2: np.ndarray,
    nr: np.ndarray,
    tol_r: np.ndarray,
    e1: np.ndarray,
    e2: np.ndarray,
    ne: np.ndarray,
    tol_e: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Crossing mask and degeneracy mask for probe arcs against ring edges.

    Used for crossing-number point location.  A pair is *degenerate* when
    the great circles coincide, or when their intersection falls within
    tolerance of an endpoint of either arc (the probe passes through a
    ring vertex, or a probe endpoint touches an edge).  Degenerate pairs
    make the crossing count unreliable and the caller must retry with a
    different probe.
    """
    x = np.cross(nr, ne)
    x_norm = np.linalg.norm(x, axis=-1)
    coincident = x_norm <= np.maximum(tol_r, tol_e)
    x = np.divide(x, x_norm[..., None], out=np.zeros_like(x), where=x_norm[..., None] > 0)
    # Of the two antipodal intersections keep the one on the edge's side.
    flip = dot(x, e1 + e2) < 0
    x = np.where(flip[..., None], -x, x)

    t_e1 = dot(np.cross(e1, x), ne)
    t_e2 = dot(np.cross(x, e2), ne)
    t_r1 = dot(np.cross(r1, x), nr)
    t_r2 = dot(np.cross(x, r2), nr)
    on_probe_half = dot(x, r1 + r2) > 0

    tol = np.maximum(tol_r, tol_e)
    inside_e = (t_e1 > tol) & (t_e2 > tol)
    inside_r = (t_r1 > tol) & (t_r2 > tol) & on_probe_half
    near_e_end = (np.abs(t_e1) <= tol) | (np.abs(t_e2) <= tol)
    near_r_end = ((np.abs(t_r1) <= tol) | (np.abs(t_r2) <= tol)) & on_probe_half
    maybe_e = inside_e | near_e_end
    maybe_r = inside_r | near_r_end

    degenerate = coincident | ((near_e_end & maybe_r) | (near_r_end & maybe_e))
    crossing = ~coincident & inside_e & inside_r
    return crossing, degenerate


# ---------------------------------------------------------------------------
# Distances
# ---------------------------------------------------------------------------


def arc_distances(
    point: np.ndarray,
    starts: np.ndarray,
    ends: np.ndarray,
    normals: np.ndarray,
) -> np.ndarray:
    """Angular distance (radians) from *point* to each arc."""
    d = dot(normals, point)
    proj = point - d[..., None] * normals
    within = (dot(np.cross(starts, proj), normals) >= 0) & (dot(np.cross(proj, ends), normals) >= 0)
    within &= np.linalg.norm(proj, axis=-1) > 0
    within &= dot(proj, starts + ends) > 0
    to_circle = np.arcsin(np.clip(np.abs(d), 0.0, 1.0))
    to_ends = np.minimum(angle_between(point, starts), angle_between(point, ends))
    return np.where(within, to_circle, to_ends)


@dataclass(frozen=True, slots=True)
class Cap:
    """Spherical cap: all points within ``radius`` radians of ``center``."""

    center: np.ndarray
    radius: float

    def contains_point(self, point: np.ndarray) -> bool:
        return float(angle_between(self.center, point)) <= self.radius

    def intersects_points(self, points: np.ndarray) -> bool:
        """Whether any of the ``(N, 3)`` points falls inside the cap."""
        return bool(np.any(angle_between(points, self.center) <= self.radius))


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


def turning_angles(vertices: np.ndarray) -> np.ndarray:
    """Signed turning angle at each vertex of a ring (left turns positive).

    Args:
        vertices: ``(N, 3)`` distinct ring vertices without the closing repeat.
    """
    prev = np.roll(vertices, 1, axis=0)
    nxt = np.roll(vertices, -1, axis=0)
    n_in = normalize(np.cross(prev, vertices))
    n_out = normalize(np.cross(vertices, nxt))
    return np.arctan2(dot(np.cross(n_in, n_out), vertices), dot(n_in, n_out))


def ring_area(vertices: np.ndarray) -> float:
    """Area in steradians of the region to the LEFT of the directed ring.

    Uses Gauss–Bonnet: a region bounded by geodesics has area
    ``2π − Σ turning angles``.  The result lies in ``[0, 4π]``; values
    above ``2π`` mean the left-hand region is larger than a hemisphere.
    """
    area = HEMISPHERE_AREA - float(np.sum(turning_angles(vertices)))
    return min(max(area, 0.0), SPHERE_AREA)


def signed_ring_area(vertices: np.ndarray) -> float:
    """Signed spherical excess of a ring in ``(−2π, 2π]``.

    Positive when the left-hand region is the smaller one
    (counter-clockwise as seen from outside the sphere), negative
    otherwise; the magnitude is the area of the smaller region.
    """
    area = ring_area(vertices)
    if area > HEMISPHERE_AREA:
        return area - SPHERE_AREA
    return area


def steradians_to_km2(area: float, *, radius_km: float = 6371.0088) -> float:
    """Convert an area on the unit sphere to square kilometres on Earth."""
    return area * radius_km * radius_km


def cap_area(radius: float) -> float:
    """Area in steradians of a spherical cap with angular *radius*."""
    return 2.0 * math.pi * (1.0 - math.cos(radius))
