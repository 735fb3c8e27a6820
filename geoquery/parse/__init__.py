"""Geometry validation — wire object to typed ``Geometry``.

Validates a GeoJSON-like geometry object and builds the immutable
geometry model.  Every rule violation raises a ``GeometryValidationError``
subclass whose ``kind`` names the rule and whose ``path`` locates the
offending element (e.g. ``coordinates[0][3]``).

The pipeline is split into focused stages:
- **pydantic** (``geoquery.models.wire``): outer object shape
- **_crs**: CRS recognition and winding-mode selection
- **_normalization**: position coercion, bounds, duplicate removal
- **_validation**: ring, line and polygon structure and topology

Supported inputs:
- Wire dicts with ``type`` + ``coordinates`` (``geometries`` for
  collections) and an optional named ``crs``
- ``GeoJSONGeometry`` model instances
- Legacy ``[lon, lat]`` pairs (points only)

Engineering standards:
- Zero-assumption input handling: every level of nesting is checked
- Fail loudly: no partial geometry is ever returned
- Multi-geometries and collections are invalid if any member is invalid
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import pydantic

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.core.constants import (
    GEOMETRY_COLLECTION,
    GEOMETRY_TYPES,
    LINE_STRING,
    MULTI_LINE_STRING,
    MULTI_POINT,
    POINT,
    POLYGON,
)
from geoquery.core.exceptions import (
    InvalidGeometryError,
    UnrecognizedCRSError,
)
from geoquery.models.geometry import (
    Geometry,
    GeometryCollection,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    WindingMode,
)
from geoquery.models.wire import GeoJSONGeometry
from geoquery.parse._constants import LEGACY_PAIR_LENGTH
from geoquery.parse._crs import resolve_winding
from geoquery.parse._normalization import (
    coerce_position,
    coerce_positions,
    drop_adjacent_duplicates,
    position_key,
    validate_position,
)
from geoquery.parse._validation import validate_line, validate_polygon, validate_ring

logger = logging.getLogger("geoquery.parse")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "coerce_position",
    "coerce_positions",
    "drop_adjacent_duplicates",
    "parse_wire",
    "position_key",
    "resolve_winding",
    "validate",
    "validate_line",
    "validate_polygon",
    "validate_position",
    "validate_ring",
]


def validate(raw: object, *, config: EngineConfig = DEFAULT_CONFIG) -> Geometry:
    """Validate a wire geometry and build the typed geometry model.

    Args:
        raw: A wire dict, a ``GeoJSONGeometry`` or a legacy ``[lon, lat]`` pair.
        config: Engine configuration (tolerances, pole snapping).

    Returns:
        The validated, immutable geometry.

    Raises:
        GeometryValidationError: A subclass naming the violated rule.
    """
    if isinstance(raw, list | tuple):
        return _legacy_point(raw)
    model = parse_wire(raw)
    geometry = _build(model, path="", inherited=None, config=config)
    logger.debug("Geometry validated | type=%s", geometry.type)
    return geometry


def parse_wire(raw: object) -> GeoJSONGeometry:
    """Parse the outer shape of a wire object with pydantic.

    Raises:
        UnrecognizedCRSError: If the ``crs`` member is malformed.
        InvalidGeometryError: For any other shape violation.
    """
    if isinstance(raw, GeoJSONGeometry):
        return raw
    if not isinstance(raw, Mapping):
        msg = f"Expected a geometry object, got {type(raw).__name__}"
        raise InvalidGeometryError(msg)
    try:
        return GeoJSONGeometry.model_validate(raw)
    except pydantic.ValidationError as exc:
        errors = exc.errors()
        for error in errors:
            loc = error.get("loc", ())
            if "crs" in loc:
                msg = f"Malformed crs member: {error.get('msg', '')}"
                raise UnrecognizedCRSError(msg, path=_loc_to_path(loc)) from exc
        first = errors[0] if errors else {}
        msg = f"Malformed geometry object: {first.get('msg', exc)}"
        raise InvalidGeometryError(msg, path=_loc_to_path(first.get("loc", ()))) from exc


def _loc_to_path(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _join(path: str, member: str) -> str:
    return f"{path}.{member}" if path else member


def _legacy_point(raw: list | tuple) -> Point:
    if len(raw) != LEGACY_PAIR_LENGTH:
        msg = f"Legacy coordinate pair must have exactly {LEGACY_PAIR_LENGTH} numbers, got {len(raw)}"
        raise InvalidGeometryError(msg)
    lon, lat = coerce_position(raw, "")
    return Point(lon=lon, lat=lat)


def _build(
    model: GeoJSONGeometry,
    *,
    path: str,
    inherited: WindingMode | None,
    config: EngineConfig,
) -> Geometry:
    if model.type not in GEOMETRY_TYPES:
        msg = f"Unknown geometry type {model.type!r}"
        raise InvalidGeometryError(msg, path=_join(path, "type"))

    if model.crs is not None:
        winding = resolve_winding(model.crs, path=_join(path, "crs"))
    else:
        winding = inherited or WindingMode.DEFAULT

    if model.type == GEOMETRY_COLLECTION:
        members = model.geometries
        if not members:
            msg = "GeometryCollection needs at least one member"
            raise InvalidGeometryError(msg, path=_join(path, "geometries"))
        return GeometryCollection(
            geometries=tuple(
                _build(member, path=f"{_join(path, 'geometries')}[{k}]", inherited=winding, config=config)
                for k, member in enumerate(members)
            )
        )

    coords = model.coordinates
    where = _join(path, "coordinates")
    if coords is None:
        msg = f"{model.type} is missing coordinates"
        raise InvalidGeometryError(msg, path=where)

    if model.type == POINT:
        lon, lat = coerce_position(coords, where)
        return Point(lon=lon, lat=lat)
    if model.type == LINE_STRING:
        return validate_line(coords, path=where, config=config)
    if model.type == POLYGON:
        return validate_polygon(coords, winding=winding, path=where, config=config)

    if not isinstance(coords, list | tuple) or not coords:
        msg = f"{model.type} needs at least one member"
        raise InvalidGeometryError(msg, path=where)
    if model.type == MULTI_POINT:
        return MultiPoint(points=tuple(coerce_positions(coords, where)))
    if model.type == MULTI_LINE_STRING:
        return MultiLineString(
            lines=tuple(validate_line(line, path=f"{where}[{k}]", config=config) for k, line in enumerate(coords))
        )
    return MultiPolygon(
        polygons=tuple(
            validate_polygon(poly, winding=winding, path=f"{where}[{k}]", config=config)
            for k, poly in enumerate(coords)
        )
    )
