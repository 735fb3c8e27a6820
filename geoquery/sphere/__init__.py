"""Spherical primitives on float64 unit vectors.

The primitives are split into focused modules:
- **_vectors**: degree ↔ unit-vector conversion, pole snapping, dot/angle helpers
- **_predicates**: side-of-edge, point-on-edge, proper crossing, arc distance,
  caps and Gauss–Bonnet ring areas
- **_edge_grid**: grid bucketing of arcs for crossing enumeration
- **_paths**: vectorised line strings and rings (crossings, incidences, samples)

Numeric policy:
- Coordinates are converted once; degrees never enter a predicate.
- Tolerances are per edge: ``epsilon + 4·DBL_EPS / |a × b|``.
- Every predicate is total: degenerate input yields ``ON`` / ``False``,
  never an exception.
"""

from __future__ import annotations

from geoquery.sphere._edge_grid import EdgeGrid, arc_boxes
from geoquery.sphere._paths import PreparedPath
from geoquery.sphere._predicates import (
    DEFAULT_EPSILON,
    Cap,
    Side,
    arc_crossings,
    arc_distances,
    cap_area,
    crosses_edge,
    edge_normals,
    point_on_edge,
    points_on_edges,
    proper_crossings,
    ring_area,
    side_of_edge,
    signed_ring_area,
    steradians_to_km2,
    turning_angles,
)
from geoquery.sphere._vectors import (
    DEFAULT_POLE_SNAP_DEGREES,
    NORTH_POLE,
    SOUTH_POLE,
    angle_between,
    dot,
    normalize,
    orthogonal,
    to_lon_lat,
    to_unit_vector,
    to_unit_vectors,
)

__all__ = [
    "DEFAULT_EPSILON",
    "DEFAULT_POLE_SNAP_DEGREES",
    "NORTH_POLE",
    "SOUTH_POLE",
    "Cap",
    "EdgeGrid",
    "PreparedPath",
    "Side",
    "angle_between",
    "arc_boxes",
    "arc_crossings",
    "arc_distances",
    "cap_area",
    "crosses_edge",
    "dot",
    "edge_normals",
    "normalize",
    "orthogonal",
    "point_on_edge",
    "points_on_edges",
    "proper_crossings",
    "ring_area",
    "side_of_edge",
    "signed_ring_area",
    "steradians_to_km2",
    "to_lon_lat",
    "to_unit_vector",
    "to_unit_vectors",
    "turning_angles",
]
