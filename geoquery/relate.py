"""Containment and intersection engine.

``relate(query, target)`` answers how a target geometry sits against a
query geometry:

- ``WITHIN``     — every point of the target lies in the query's closed
  interior (only areal queries have one);
- ``INTERSECTS`` — the two share at least one point but the target is
  not within the query;
- ``DISJOINT``   — no point in common.

Both geometries are flattened into *parts*: a block of standalone points,
polylines and polygons (each with its interior resolved by
``geoquery.winding``).  A target member is within the query if it is
within one query polygon; the target is within the query if every
member is.  Any shared point between a member and a query part makes the
pair intersect.

Boundaries are closed: a point on a ring is inside, and two geometries
that only touch intersect.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.core.exceptions import ContractError
from geoquery.models.geometry import (
    Geometry,
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    is_geometry,
)
from geoquery.sphere import PreparedPath, angle_between, to_unit_vectors
from geoquery.winding import InteriorSpec, Location, resolve_interior

Part = np.ndarray | PreparedPath | InteriorSpec


class Relation(enum.StrEnum):
    """Outcome of relating a target geometry to a query geometry."""

    WITHIN = "within"
    INTERSECTS = "intersects"
    DISJOINT = "disjoint"


@dataclass(frozen=True, slots=True, eq=False)
class PreparedGeometry:
    """A geometry flattened into vectorised parts.

    Attributes:
        geometry: The source geometry.
        points: ``(P, 3)`` unit vectors of standalone points.
        lines: Prepared polylines.
        polygons: Resolved polygon interiors.
    """

    geometry: Geometry
    points: np.ndarray
    lines: tuple[PreparedPath, ...]
    polygons: tuple[InteriorSpec, ...]

    @property
    def is_areal(self) -> bool:
        return bool(self.polygons)

    @property
    def parts(self) -> list[Part]:
        out: list[Part] = []
        if len(self.points):
            out.append(self.points)
        out.extend(self.lines)
        out.extend(self.polygons)
        return out

    @property
    def vertices(self) -> np.ndarray:
        """Every vertex of every part, stacked into one ``(N, 3)`` array."""
        blocks = [self.points] + [line.vertices for line in self.lines]
        blocks += [spec.vertices for spec in self.polygons]
        return np.concatenate(blocks) if blocks else np.zeros((0, 3))


# ---------------------------------------------------------------------------
# Preparation
# ---------------------------------------------------------------------------


def prepare(geometry: Geometry | PreparedGeometry, *, config: EngineConfig = DEFAULT_CONFIG) -> PreparedGeometry:
    """Flatten a validated geometry into vectorised parts.

    Raises:
        ContractError: If *geometry* is not a validated geometry value.
    """
    if isinstance(geometry, PreparedGeometry):
        return geometry
    if not is_geometry(geometry):
        msg = f"relate() expects a validated Geometry, got {type(geometry).__name__}"
        raise ContractError(msg)

    coords: list[tuple[float, float]] = []
    lines: list[PreparedPath] = []
    polygons: list[InteriorSpec] = []
    _flatten(geometry, coords, lines, polygons, config)
    points = to_unit_vectors(coords, pole_snap_degrees=config.pole_snap_degrees) if coords else np.zeros((0, 3))
    return PreparedGeometry(geometry=geometry, points=points, lines=tuple(lines), polygons=tuple(polygons))


def _flatten(
    geometry: Geometry,
    coords: list[tuple[float, float]],
    lines: list[PreparedPath],
    polygons: list[InteriorSpec],
    config: EngineConfig,
) -> None:
    if isinstance(geometry, Point):
        coords.append(geometry.coords)
    elif isinstance(geometry, MultiPoint):
        coords.extend(geometry.points)
    elif isinstance(geometry, LineString):
        lines.append(_line(geometry, config))
    elif isinstance(geometry, MultiLineString):
        lines.extend(_line(line, config) for line in geometry.lines)
    elif isinstance(geometry, Polygon):
        polygons.append(resolve_interior(geometry, config=config))
    elif isinstance(geometry, MultiPolygon):
        polygons.extend(resolve_interior(poly, config=config) for poly in geometry.polygons)
    elif isinstance(geometry, GeometryCollection):
        for member in geometry.geometries:
            _flatten(member, coords, lines, polygons, config)
    else:
        msg = f"Unsupported geometry variant {type(geometry).__name__}"
        raise ContractError(msg)


def _line(line: LineString, config: EngineConfig) -> PreparedPath:
    vertices = to_unit_vectors(line.points, pole_snap_degrees=config.pole_snap_degrees)
    return PreparedPath(vertices, closed=False, epsilon=config.epsilon)


# ---------------------------------------------------------------------------
# Relate
# ---------------------------------------------------------------------------


def relate(
    query: Geometry | PreparedGeometry,
    target: Geometry | PreparedGeometry,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Relation:
    """Relate *target* to *query*.

    Raises:
        ContractError: If either argument is not a validated geometry.
        ReferencePointError: If point location exhausts its reference points.
    """
    q = prepare(query, config=config)
    t = prepare(target, config=config)
    q_parts = q.parts

    all_within = True
    any_hit = False

    if len(t.points):
        within = np.zeros(len(t.points), dtype=bool)
        for spec in q.polygons:
            within |= spec.locate(t.points) != Location.OUTSIDE
        hit = within.copy()
        for part in q_parts:
            if hit.all():
                break
            if not isinstance(part, InteriorSpec):
                hit |= _points_hit(t.points, part, config.epsilon)
        all_within = bool(within.all())
        any_hit = bool(hit.any())
        if any_hit and not all_within:
            return Relation.INTERSECTS

    for member in (*t.lines, *t.polygons):
        if all_within and any(_within(member, spec) for spec in q.polygons):
            any_hit = True
            continue
        all_within = False
        if any_hit or any(_intersects(member, part, config.epsilon) for part in q_parts):
            return Relation.INTERSECTS

    if all_within and any_hit:
        return Relation.WITHIN
    return Relation.INTERSECTS if any_hit else Relation.DISJOINT


# ---------------------------------------------------------------------------
# Part predicates
# ---------------------------------------------------------------------------


def _vertices(part: Part) -> np.ndarray:
    if isinstance(part, np.ndarray):
        return part
    return part.vertices


def _paths(part: Part) -> tuple[PreparedPath, ...]:
    if isinstance(part, InteriorSpec):
        return part.rings
    if isinstance(part, PreparedPath):
        return (part,)
    return ()


def _points_hit(points: np.ndarray, part: Part, epsilon: float) -> np.ndarray:
    """Mask of *points* that lie on or in *part*."""
    if isinstance(part, InteriorSpec):
        return part.locate(points) != Location.OUTSIDE
    if isinstance(part, PreparedPath):
        return part.contains_points(points)
    if not len(part):
        return np.zeros(len(points), dtype=bool)
    return (angle_between(points[:, None, :], part[None, :, :]) <= epsilon).any(axis=1)


def _intersects(a: Part, b: Part, epsilon: float) -> bool:
    if _points_hit(_vertices(a), b, epsilon).any():
        return True
    if _points_hit(_vertices(b), a, epsilon).any():
        return True
    return any(pa.crosses(pb) for pa in _paths(a) for pb in _paths(b))


def _within(member: PreparedPath | InteriorSpec, spec: InteriorSpec) -> bool:
    if isinstance(member, InteriorSpec):
        return _polygon_within(member, spec)
    return _path_within(member, spec)


def _path_within(path: PreparedPath, spec: InteriorSpec) -> bool:
    """A path is within a polygon if it never leaves the closed interior."""
    locs = spec.locate(path.vertices)
    if (locs == Location.OUTSIDE).any():
        return False
    if any(path.crosses(ring) for ring in spec.rings):
        return False
    # Stretches between boundary contacts may still run outside.
    samples = path.split_samples(spec.vertices, boundary_ends=locs == Location.BOUNDARY)
    return not (len(samples) and (spec.locate(samples) == Location.OUTSIDE).any())


def _polygon_within(inner: InteriorSpec, outer: InteriorSpec) -> bool:
    """Whether polygon *inner* lies inside polygon *outer*."""
    if not all(_path_within(ring, outer) for ring in inner.rings):
        return False
    # The outer boundary must not enter the inner interior.
    if (inner.locate(outer.vertices) == Location.INSIDE).any():
        return False
    for ring in outer.rings:
        flags = inner.locate(ring.vertices) == Location.BOUNDARY
        samples = ring.split_samples(inner.vertices, boundary_ends=flags)
        if len(samples) and (inner.locate(samples) == Location.INSIDE).any():
            return False
    # Equal boundaries leave the sides undecided: test one interior point.
    probe = inner.shell.reference(0)
    if inner.locate(probe)[0] == Location.INSIDE:
        return bool(outer.locate(probe)[0] != Location.OUTSIDE)
    return True
