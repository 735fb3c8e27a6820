"""Shared engine constants — single source of truth.

Centralises CRS identifiers, coordinate bounds and geometry type names
that would otherwise be duplicated across the parser, the winding
resolver and the index.
"""

from __future__ import annotations

import math

# ---------------------------------------------------------------------------
# CRS identifiers
# ---------------------------------------------------------------------------

STRICT_WINDING_CRS: str = "urn:mongodb:strictwindingcrs:EPSG:4326"
"""CRS name that enables strict winding (big polygon) semantics."""

DEFAULT_CRS_NAMES: frozenset[str] = frozenset(
    {
        "EPSG:4326",
        "urn:ogc:def:crs:OGC:1.3:CRS84",
        "urn:ogc:def:crs:EPSG::4326",
    }
)
"""CRS names that are plain WGS 84 and keep the default small-polygon rule."""

CRS_TYPE_NAME: str = "name"
"""The only supported ``crs.type`` value."""

# ---------------------------------------------------------------------------
# Coordinate bounds (degrees)
# ---------------------------------------------------------------------------

MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0

# ---------------------------------------------------------------------------
# Geometry structure
# ---------------------------------------------------------------------------

# Minimum positions for a ring (3 distinct + closing = 4)
MIN_RING_POSITIONS = 4
MIN_RING_DISTINCT_VERTICES = 3
MIN_LINE_POINTS = 2

POINT = "Point"
LINE_STRING = "LineString"
POLYGON = "Polygon"
MULTI_POINT = "MultiPoint"
MULTI_LINE_STRING = "MultiLineString"
MULTI_POLYGON = "MultiPolygon"
GEOMETRY_COLLECTION = "GeometryCollection"

GEOMETRY_TYPES: frozenset[str] = frozenset(
    {
        POINT,
        LINE_STRING,
        POLYGON,
        MULTI_POINT,
        MULTI_LINE_STRING,
        MULTI_POLYGON,
        GEOMETRY_COLLECTION,
    }
)

# ---------------------------------------------------------------------------
# Sphere
# ---------------------------------------------------------------------------

HEMISPHERE_AREA: float = 2.0 * math.pi
"""Area of a hemisphere on the unit sphere, in steradians."""

SPHERE_AREA: float = 4.0 * math.pi
"""Area of the unit sphere, in steradians."""

DBL_EPSILON: float = 2.220446049250313e-16
