"""Typed geometry model.

A closed set of immutable geometry variants mirroring the GeoJSON
geometry kinds.  Instances are produced by ``geoquery.parse.validate``
and are guaranteed structurally valid; constructing them directly skips
validation and is reserved for the parser and for tests.

Coordinates are ``(longitude, latitude)`` tuples in degrees.  Degrees
are an I/O format only: every predicate works on unit vectors derived
from these tuples (see ``geoquery.sphere``).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from geoquery.core.constants import (
    CRS_TYPE_NAME,
    GEOMETRY_COLLECTION,
    LINE_STRING,
    MULTI_LINE_STRING,
    MULTI_POINT,
    MULTI_POLYGON,
    POINT,
    POLYGON,
    STRICT_WINDING_CRS,
)

if TYPE_CHECKING:
    from geoquery.models.contracts import CRSPayload, GeometryPayload

Coord = tuple[float, float]
RingCoords = tuple[Coord, ...]


class WindingMode(enum.StrEnum):
    """Interior convention for polygon rings.

    ``DEFAULT``: the interior is the smaller of the two regions bounded
    by the ring, which must therefore not exceed a hemisphere.

    ``STRICT``: the interior is the region to the left of the ring
    walked in vertex order, whatever its size.
    """

    DEFAULT = "default"
    STRICT = "strict"


def _coords_out(coords: RingCoords) -> list[list[float]]:
    return [[lon, lat] for lon, lat in coords]


def _crs_payload() -> CRSPayload:
    return {"type": CRS_TYPE_NAME, "properties": {"name": STRICT_WINDING_CRS}}


@dataclass(frozen=True, slots=True)
class Point:
    """A single position."""

    type: ClassVar[str] = POINT

    lon: float
    lat: float

    @property
    def coords(self) -> Coord:
        return (self.lon, self.lat)

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        return {"type": self.type, "coordinates": [self.lon, self.lat]}


@dataclass(frozen=True, slots=True)
class LineString:
    """An ordered path of great-circle segments."""

    type: ClassVar[str] = LINE_STRING

    points: RingCoords

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        return {"type": self.type, "coordinates": _coords_out(self.points)}


@dataclass(frozen=True, slots=True)
class Polygon:
    """A shell ring followed by zero or more hole rings.

    Attributes:
        rings: Closed rings; ``rings[0]`` is the shell, the rest are holes.
            Each ring repeats its first position at the end.
        winding: Interior convention, set from the ``crs`` member.
    """

    type: ClassVar[str] = POLYGON

    rings: tuple[RingCoords, ...]
    winding: WindingMode = WindingMode.DEFAULT

    @property
    def shell(self) -> RingCoords:
        return self.rings[0]

    @property
    def holes(self) -> tuple[RingCoords, ...]:
        return self.rings[1:]

    @property
    def has_holes(self) -> bool:
        """Whether this polygon has hole rings."""
        return len(self.rings) > 1

    @property
    def vertex_count(self) -> int:
        """Number of distinct vertices in the shell ring."""
        return len(self.shell) - 1

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict.

        Strict-winding polygons carry the strict-winding ``crs`` member
        so the payload round-trips through ``validate``.
        """
        payload: GeometryPayload = {
            "type": self.type,
            "coordinates": [_coords_out(ring) for ring in self.rings],
        }
        if self.winding is WindingMode.STRICT:
            payload["crs"] = _crs_payload()
        return payload


@dataclass(frozen=True, slots=True)
class MultiPoint:
    """A set of positions."""

    type: ClassVar[str] = MULTI_POINT

    points: RingCoords

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        return {"type": self.type, "coordinates": _coords_out(self.points)}


@dataclass(frozen=True, slots=True)
class MultiLineString:
    """A set of line strings."""

    type: ClassVar[str] = MULTI_LINE_STRING

    lines: tuple[LineString, ...]

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        return {"type": self.type, "coordinates": [_coords_out(line.points) for line in self.lines]}


@dataclass(frozen=True, slots=True)
class MultiPolygon:
    """A set of polygons sharing one winding mode."""

    type: ClassVar[str] = MULTI_POLYGON

    polygons: tuple[Polygon, ...]

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        payload: GeometryPayload = {
            "type": self.type,
            "coordinates": [[_coords_out(ring) for ring in poly.rings] for poly in self.polygons],
        }
        if any(poly.winding is WindingMode.STRICT for poly in self.polygons):
            payload["crs"] = _crs_payload()
        return payload


@dataclass(frozen=True, slots=True)
class GeometryCollection:
    """A heterogeneous set of geometries."""

    type: ClassVar[str] = GEOMETRY_COLLECTION

    geometries: tuple[Geometry, ...]

    def to_dict(self) -> GeometryPayload:
        """Serialise to a GeoJSON-like dict."""
        return {"type": self.type, "geometries": [g.to_dict() for g in self.geometries]}


Geometry = Point | LineString | Polygon | MultiPoint | MultiLineString | MultiPolygon | GeometryCollection

GEOMETRY_CLASSES: tuple[type, ...] = (
    Point,
    LineString,
    Polygon,
    MultiPoint,
    MultiLineString,
    MultiPolygon,
    GeometryCollection,
)


def is_geometry(obj: object) -> bool:
    """Whether *obj* is one of the validated geometry variants."""
    return isinstance(obj, GEOMETRY_CLASSES)


def is_areal(geometry: Geometry) -> bool:
    """Whether *geometry* has an interior that can contain other geometries."""
    if isinstance(geometry, Polygon | MultiPolygon):
        return True
    if isinstance(geometry, GeometryCollection):
        return any(is_areal(g) for g in geometry.geometries)
    return False
