"""Canonical payload contracts for the engine's external boundary.

Every wire-format object the engine consumes or produces is defined here
as a ``TypedDict``.  The surrounding query layer hands the engine plain
dicts; these contracts name their fields once.

Design notes:
- ``TypedDict`` was chosen over ``dataclass`` because callers exchange
  plain JSON-like dicts.  TypedDicts need no conversion.
- ``GeometryPayload`` uses ``total=False``: ``coordinates`` and
  ``geometries`` are mutually exclusive and ``crs`` is optional.
"""

from __future__ import annotations

from typing import TypedDict

# ---------------------------------------------------------------------------
# Geometry wire format
# ---------------------------------------------------------------------------


class CRSPropertiesPayload(TypedDict):
    """``crs.properties`` member."""

    name: str


class CRSPayload(TypedDict):
    """Named CRS member: ``{"type": "name", "properties": {"name": ...}}``."""

    type: str
    properties: CRSPropertiesPayload


class GeometryPayload(TypedDict, total=False):
    """GeoJSON-like geometry object consumed by ``geoquery.parse.validate``."""

    type: str
    coordinates: list[object]
    geometries: list[GeometryPayload]
    crs: CRSPayload


# ---------------------------------------------------------------------------
# Error surface
# ---------------------------------------------------------------------------


class ErrorPayload(TypedDict):
    """Output of ``GeoQueryError.to_error_dict()``."""

    category: str
    code: str
    kind: str
    stage: str
    message: str
    path: str
