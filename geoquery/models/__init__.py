"""Data models and schemas.

Defines the data structures used throughout the engine:
- Geometry variants: Point, LineString, Polygon, Multi*, GeometryCollection
- WindingMode: explicit interior convention for polygons
- GeoJSONGeometry: pydantic model of the wire object
- Payload contracts: TypedDicts for wire geometry and error payloads
"""

from geoquery.models.geometry import (
    Geometry,
    GeometryCollection,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    WindingMode,
    is_areal,
    is_geometry,
)
from geoquery.models.wire import CRSObject, CRSProperties, GeoJSONGeometry

__all__ = [
    "CRSObject",
    "CRSProperties",
    "GeoJSONGeometry",
    "Geometry",
    "GeometryCollection",
    "LineString",
    "MultiLineString",
    "MultiPoint",
    "MultiPolygon",
    "Point",
    "Polygon",
    "WindingMode",
    "is_areal",
    "is_geometry",
]
