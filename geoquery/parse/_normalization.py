"""Coordinate normalization helpers for geometry validation.

Responsibilities:
- Convert raw position arrays to clean ``(lon, lat)`` tuples
- Range-check longitude and latitude (WGS 84)
- Build pole- and antimeridian-aware identity keys for vertices
- Remove adjacent duplicate vertices
"""

from __future__ import annotations

import logging
import math
import numbers

from geoquery.core.constants import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE
from geoquery.core.exceptions import InvalidCoordinateError, InvalidGeometryError
from geoquery.models.geometry import Coord
from geoquery.parse._constants import MIN_POSITION_LENGTH

logger = logging.getLogger("geoquery.parse")

# ---------------------------------------------------------------------------
# Position coercion
# ---------------------------------------------------------------------------


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def coerce_position(raw: object, path: str) -> Coord:
    """Convert one GeoJSON position to a ``(lon, lat)`` tuple.

    Drops altitude (third element) if present.

    Raises:
        InvalidGeometryError: If the position is not an array of numbers.
        InvalidCoordinateError: If a value is not finite or out of range.
    """
    if not isinstance(raw, list | tuple):
        msg = f"Malformed position: expected an array, got {type(raw).__name__}"
        raise InvalidGeometryError(msg, path=path)
    if len(raw) < MIN_POSITION_LENGTH:
        msg = f"Malformed position: expected at least {MIN_POSITION_LENGTH} elements, got {len(raw)}"
        raise InvalidGeometryError(msg, path=path)
    if not all(_is_number(value) for value in raw):
        msg = f"Malformed position: non-numeric value in {raw!r}"
        raise InvalidGeometryError(msg, path=path)

    lon = float(raw[0])
    lat = float(raw[1])
    validate_position(lon, lat, path)
    return (lon, lat)


def coerce_positions(raw: object, path: str) -> list[Coord]:
    """Convert an array of positions to ``(lon, lat)`` tuples.

    Raises:
        InvalidGeometryError: If *raw* is not an array of positions.
        InvalidCoordinateError: If any value is out of range.
    """
    if not isinstance(raw, list | tuple):
        msg = f"Malformed coordinates: expected an array of positions, got {type(raw).__name__}"
        raise InvalidGeometryError(msg, path=path)
    return [coerce_position(item, f"{path}[{idx}]") for idx, item in enumerate(raw)]


def validate_position(lon: float, lat: float, path: str) -> None:
    """Validate that a position lies within WGS 84 bounds.

    Raises:
        InvalidCoordinateError: If either value is not finite or out of range.
    """
    if not (math.isfinite(lon) and math.isfinite(lat)):
        msg = f"Non-finite coordinate ({lon}, {lat})"
        raise InvalidCoordinateError(msg, path=path)
    if not (MIN_LONGITUDE <= lon <= MAX_LONGITUDE):
        msg = f"Longitude {lon} out of WGS 84 range [{MIN_LONGITUDE}, {MAX_LONGITUDE}]"
        raise InvalidCoordinateError(msg, path=path)
    if not (MIN_LATITUDE <= lat <= MAX_LATITUDE):
        msg = f"Latitude {lat} out of WGS 84 range [{MIN_LATITUDE}, {MAX_LATITUDE}]"
        raise InvalidCoordinateError(msg, path=path)


# ---------------------------------------------------------------------------
# Vertex identity
# ---------------------------------------------------------------------------


def position_key(coord: Coord, *, pole_snap_degrees: float) -> Coord:
    """Identity key under which two positions denote the same sphere point.

    Every longitude at a pole is the same point, and longitudes -180 and
    180 are the same meridian.
    """
    lon, lat = coord
    if abs(lat) >= MAX_LATITUDE - pole_snap_degrees:
        return (0.0, math.copysign(MAX_LATITUDE, lat))
    if lon == MIN_LONGITUDE:
        lon = MAX_LONGITUDE
    return (lon, lat)


def drop_adjacent_duplicates(
    coords: list[Coord],
    *,
    pole_snap_degrees: float,
    path: str = "",
) -> list[Coord]:
    """Remove consecutive positions that denote the same point.

    The first position of each run is kept.  Removals are logged at
    DEBUG, not rejected.
    """
    if not coords:
        return coords
    out = [coords[0]]
    last_key = position_key(coords[0], pole_snap_degrees=pole_snap_degrees)
    for coord in coords[1:]:
        key = position_key(coord, pole_snap_degrees=pole_snap_degrees)
        if key == last_key:
            continue
        out.append(coord)
        last_key = key
    removed = len(coords) - len(out)
    if removed:
        logger.debug(
            "Adjacent duplicate vertices removed | path=%s | removed=%d | kept=%d",
            path or "<root>",
            removed,
            len(out),
        )
    return out
