"""Ring and polygon generators for fixtures and load tests.

Produces wire-format payloads (plain dicts) that go through
``geoquery.parse.validate`` like any caller input.
"""

from __future__ import annotations

import math

from geoquery.core.constants import CRS_TYPE_NAME, MIN_RING_POSITIONS, POLYGON, STRICT_WINDING_CRS
from geoquery.models.contracts import CRSPayload, GeometryPayload


def strict_crs() -> CRSPayload:
    """Return the named CRS member that selects strict winding."""
    return {"type": CRS_TYPE_NAME, "properties": {"name": STRICT_WINDING_CRS}}


def regular_ring(
    n: int,
    *,
    center: tuple[float, float] = (0.0, 0.0),
    radius: float = 10.0,
) -> list[list[float]]:
    """Build a closed ring of *n* positions approximating a circle.

    The first ``n - 1`` positions are spaced evenly (counter-clockwise)
    on the circle of *radius* degrees around *center* in lon/lat space;
    the last position repeats the first.

    Args:
        n: Total number of positions, closing position included.
        center: ``(lon, lat)`` of the circle centre in degrees.
        radius: Circle radius in degrees.

    Returns:
        ``[[lon, lat], ...]`` with ``ring[0] == ring[-1]``.

    Raises:
        ValueError: If *n* is below 4 or *radius* is not positive.
    """
    if n < MIN_RING_POSITIONS:
        msg = f"A ring needs at least {MIN_RING_POSITIONS} positions, got {n}"
        raise ValueError(msg)
    if radius <= 0:
        msg = f"radius must be positive, got {radius}"
        raise ValueError(msg)

    lon0, lat0 = center
    sides = n - 1
    ring = []
    for k in range(sides):
        theta = 2.0 * math.pi * k / sides
        ring.append([lon0 + radius * math.cos(theta), lat0 + radius * math.sin(theta)])
    ring.append(list(ring[0]))
    return ring


def ngon_polygon(
    n: int,
    *,
    center: tuple[float, float] = (0.0, 0.0),
    radius: float = 10.0,
    strict: bool = False,
) -> GeometryPayload:
    """Wire ``Polygon`` whose shell is ``regular_ring(n, ...)``."""
    payload: GeometryPayload = {
        "type": POLYGON,
        "coordinates": [regular_ring(n, center=center, radius=radius)],
    }
    if strict:
        payload["crs"] = strict_crs()
    return payload


def reversed_polygon(payload: GeometryPayload) -> GeometryPayload:
    """Copy of a wire ``Polygon`` with every ring walked the other way."""
    out = GeometryPayload(**payload)
    out["coordinates"] = [list(reversed(ring)) for ring in payload["coordinates"]]  # type: ignore[call-overload]
    return out
