"""Structural and topological validation of rings, lines and polygons.

Responsibilities:
- Ring structure (vertex count, closure, duplicate vertices)
- Edge well-definedness (antipodal neighbours, zero-width spikes)
- Ring simplicity via grid-bucketed edge pairs
- Polygon topology (ring crossings, shared edges, hole placement, big-polygon holes)
"""

from __future__ import annotations

import logging

import numpy as np

from geoquery.core.config import EngineConfig
from geoquery.core.constants import MIN_LINE_POINTS, MIN_RING_DISTINCT_VERTICES, MIN_RING_POSITIONS
from geoquery.core.exceptions import (
    DegenerateRingError,
    InvalidHoleError,
    InvalidVertexCountError,
    OpenRingError,
    SelfIntersectingRingError,
    UnsupportedHoleOnBigPolygonError,
)
from geoquery.models.geometry import Coord, LineString, Polygon, RingCoords, WindingMode
from geoquery.parse._constants import ANTIPODAL_TOLERANCE
from geoquery.parse._normalization import coerce_positions, drop_adjacent_duplicates, position_key
from geoquery.sphere import (
    PreparedPath,
    dot,
    edge_normals,
    normalize,
    points_on_edges,
    proper_crossings,
    to_unit_vectors,
)
from geoquery.winding import Location, PreparedRing, resolve_interior

logger = logging.getLogger("geoquery.parse")


# ---------------------------------------------------------------------------
# Line strings
# ---------------------------------------------------------------------------


def validate_line(raw: object, *, path: str, config: EngineConfig) -> LineString:
    """Validate a line string's positions.

    Raises:
        InvalidVertexCountError: If fewer than two distinct points remain.
        DegenerateRingError: If two consecutive points are antipodal.
    """
    coords = drop_adjacent_duplicates(
        coerce_positions(raw, path),
        pole_snap_degrees=config.pole_snap_degrees,
        path=path,
    )
    if len(coords) < MIN_LINE_POINTS:
        msg = f"LineString needs at least {MIN_LINE_POINTS} distinct points, got {len(coords)}"
        raise InvalidVertexCountError(msg, path=path)
    vectors = to_unit_vectors(coords, pole_snap_degrees=config.pole_snap_degrees)
    _check_antipodal(vectors[:-1], vectors[1:], path=path, what="LineString")
    return LineString(points=tuple(coords))


# ---------------------------------------------------------------------------
# Rings
# ---------------------------------------------------------------------------


def validate_ring(raw: object, *, path: str, config: EngineConfig) -> RingCoords:
    """Validate one polygon ring and return its cleaned, closed positions.

    Raises:
        InvalidVertexCountError: If the ring has fewer than 4 positions or
            fewer than 3 distinct vertices.
        OpenRingError: If the first and last positions differ.
        DegenerateRingError: On a duplicate non-adjacent vertex, an
            antipodal edge or a zero-width spike.
        SelfIntersectingRingError: If two edges cross or touch.
    """
    snap = config.pole_snap_degrees
    coords = coerce_positions(raw, path)
    if len(coords) < MIN_RING_POSITIONS:
        msg = f"Ring has {len(coords)} position(s), need at least {MIN_RING_POSITIONS} (including closure)"
        raise InvalidVertexCountError(msg, path=path)
    if position_key(coords[0], pole_snap_degrees=snap) != position_key(coords[-1], pole_snap_degrees=snap):
        msg = f"Ring is not closed: first {coords[0]} != last {coords[-1]}"
        raise OpenRingError(msg, path=path)

    coords = drop_adjacent_duplicates(coords, pole_snap_degrees=snap, path=path)
    distinct = coords[:-1]
    if len(distinct) < MIN_RING_DISTINCT_VERTICES:
        msg = f"Ring has {len(distinct)} distinct vertices, need at least {MIN_RING_DISTINCT_VERTICES}"
        raise InvalidVertexCountError(msg, path=path)

    _check_duplicate_vertices(distinct, snap=snap, path=path)

    vectors = to_unit_vectors(distinct, pole_snap_degrees=snap)
    _check_antipodal(vectors, np.roll(vectors, -1, axis=0), path=path, what="Ring")
    _check_spikes(vectors, path=path, epsilon=config.epsilon)
    _check_simple(PreparedPath(vectors, closed=True, epsilon=config.epsilon), path=path)
    # Closing position made identical to the first so the ring is closed by value.
    return (*distinct, distinct[0])


def _check_duplicate_vertices(distinct: list[Coord], *, snap: float, path: str) -> None:
    seen: dict[Coord, int] = {}
    for idx, coord in enumerate(distinct):
        key = position_key(coord, pole_snap_degrees=snap)
        if key in seen:
            msg = f"Duplicate vertex {coord} at positions {seen[key]} and {idx}"
            raise DegenerateRingError(msg, path=f"{path}[{idx}]")
        seen[key] = idx


def _check_antipodal(starts: np.ndarray, ends: np.ndarray, *, path: str, what: str) -> None:
    antipodal = np.nonzero(np.linalg.norm(starts + ends, axis=1) <= ANTIPODAL_TOLERANCE)[0]
    if len(antipodal):
        idx = int(antipodal[0])
        msg = f"{what} has antipodal consecutive vertices at positions {idx} and {idx + 1}; the edge is undefined"
        raise DegenerateRingError(msg, path=f"{path}[{idx}]")


def _check_spikes(vectors: np.ndarray, *, path: str, epsilon: float) -> None:
    """Reject vertices where the ring doubles back on itself."""
    prev = np.roll(vectors, 1, axis=0)
    nxt = np.roll(vectors, -1, axis=0)
    n_in, tol_in = edge_normals(prev, vectors, epsilon=epsilon)
    n_out, tol_out = edge_normals(vectors, nxt, epsilon=epsilon)
    sine = np.linalg.norm(np.cross(n_in, n_out), axis=1)
    folded = (sine <= np.maximum(tol_in, tol_out)) & (dot(n_in, n_out) < 0)
    # A fold can also hide behind a tiny turn: the next vertex lies back on the incoming edge.
    backtrack = dot(normalize(prev - vectors), normalize(nxt - vectors)) > 1.0 - epsilon
    spikes = np.nonzero(folded | backtrack)[0]
    if len(spikes):
        idx = int(spikes[0])
        msg = f"Ring folds back on itself at vertex {idx} (zero-width spike)"
        raise DegenerateRingError(msg, path=f"{path}[{idx}]")


def _check_simple(ring: PreparedPath, *, path: str) -> None:
    """Reject rings whose non-adjacent edges cross or touch."""
    count = ring.edge_count
    pairs = ring.grid.self_pairs()
    if not len(pairs):
        return
    i, j = pairs[:, 0], pairs[:, 1]
    adjacent = (j - i == 1) | ((i == 0) & (j == count - 1))
    pairs = pairs[~adjacent]
    if not len(pairs):
        return
    i, j = pairs[:, 0], pairs[:, 1]

    crossing = proper_crossings(
        ring.starts[i],
        ring.ends[i],
        ring.normals[i],
        ring.tolerances[i],
        ring.starts[j],
        ring.ends[j],
        ring.normals[j],
        ring.tolerances[j],
    )
    # Non-adjacent edges share no endpoint, so any incidence is a touch.
    touching = points_on_edges(ring.starts[i], ring.starts[j], ring.ends[j], ring.normals[j], ring.tolerances[j])
    touching |= points_on_edges(ring.ends[i], ring.starts[j], ring.ends[j], ring.normals[j], ring.tolerances[j])
    touching |= points_on_edges(ring.starts[j], ring.starts[i], ring.ends[i], ring.normals[i], ring.tolerances[i])
    touching |= points_on_edges(ring.ends[j], ring.starts[i], ring.ends[i], ring.normals[i], ring.tolerances[i])

    bad = np.nonzero(crossing | touching)[0]
    if len(bad):
        a, b = int(i[bad[0]]), int(j[bad[0]])
        kind = "cross" if crossing[bad[0]] else "touch"
        msg = f"Ring edges {a} and {b} {kind}"
        raise SelfIntersectingRingError(msg, path=path)


# ---------------------------------------------------------------------------
# Polygons
# ---------------------------------------------------------------------------


def validate_polygon(raw: object, *, winding: WindingMode, path: str, config: EngineConfig) -> Polygon:
    """Validate a polygon's rings and their mutual topology.

    Raises:
        InvalidVertexCountError: If the polygon has no rings.
        UnsupportedHoleOnBigPolygonError: If a strict-winding polygon
            carries more than one ring.
        AmbiguousWindingError: If a default-mode ring splits the sphere evenly.
        SelfIntersectingRingError: If two rings cross or share an edge.
        InvalidHoleError: If a hole leaves its shell or nests in another hole.
    """
    if not isinstance(raw, list | tuple) or not raw:
        msg = "Polygon needs at least one ring"
        raise InvalidVertexCountError(msg, path=path)

    rings = tuple(validate_ring(ring, path=f"{path}[{k}]", config=config) for k, ring in enumerate(raw))
    if winding is WindingMode.STRICT and len(rings) > 1:
        msg = f"Strict-winding polygon may only have one ring, got {len(rings)}"
        raise UnsupportedHoleOnBigPolygonError(msg, path=path)

    polygon = Polygon(rings=rings, winding=winding)
    interior = resolve_interior(polygon, config=config, path=path)
    if len(rings) > 1:
        _check_ring_topology(interior.rings, path=path)
    return polygon


def _check_ring_topology(rings: tuple[PreparedRing, ...], *, path: str) -> None:
    shell, holes = rings[0], rings[1:]
    for a in range(len(rings)):
        for b in range(a + 1, len(rings)):
            if rings[a].crosses(rings[b]):
                msg = f"Rings {a} and {b} cross"
                raise SelfIntersectingRingError(msg, path=path)
            if _shares_edge(rings[a], rings[b]):
                msg = f"Rings {a} and {b} share an edge"
                raise SelfIntersectingRingError(msg, path=path)

    # Midpoints settle holes whose vertices all touch another ring.
    samples = [np.concatenate([hole.vertices, _edge_midpoints(hole)]) for hole in holes]
    for k, points in enumerate(samples, start=1):
        if (shell.locate(points) == Location.OUTSIDE).any():
            msg = f"Hole {k} is not inside the shell"
            raise InvalidHoleError(msg, path=f"{path}[{k}]")

    for a, outer in enumerate(holes, start=1):
        for b, points in enumerate(samples, start=1):
            if a != b and (outer.locate(points) == Location.INSIDE).any():
                msg = f"Hole {b} lies inside hole {a}"
                raise InvalidHoleError(msg, path=f"{path}[{b}]")

    logger.debug("Polygon topology checked | path=%s | rings=%d", path or "<root>", len(rings))


def _shares_edge(a: PreparedRing, b: PreparedRing) -> bool:
    """Whether some stretch of *b* runs along *a*."""
    on_a = a.contains_points(b.vertices)
    samples = b.split_samples(a.vertices, boundary_ends=on_a)
    return bool(len(samples)) and bool(a.contains_points(samples).any())


def _edge_midpoints(ring: PreparedRing) -> np.ndarray:
    mids = ring.starts + ring.ends
    return mids / np.linalg.norm(mids, axis=1, keepdims=True)
