"""CRS member recognition.

Only named CRS objects are understood.  The strict-winding name switches
polygons to ``WindingMode.STRICT``; plain WGS 84 names keep the default
convention; every other name is rejected rather than silently ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from geoquery.core.constants import CRS_TYPE_NAME, DEFAULT_CRS_NAMES, STRICT_WINDING_CRS
from geoquery.core.exceptions import UnrecognizedCRSError
from geoquery.models.geometry import WindingMode

if TYPE_CHECKING:
    from geoquery.models.wire import CRSObject


def resolve_winding(crs: CRSObject | None, *, path: str = "crs") -> WindingMode:
    """Map an optional CRS member to the winding mode it selects.

    Raises:
        UnrecognizedCRSError: If the CRS type is not ``"name"`` or its
            name is not a recognised identifier.
    """
    if crs is None:
        return WindingMode.DEFAULT
    if crs.type != CRS_TYPE_NAME:
        msg = f"Unsupported crs.type {crs.type!r}; expected {CRS_TYPE_NAME!r}"
        raise UnrecognizedCRSError(msg, path=path)
    name = crs.properties.name
    if name == STRICT_WINDING_CRS:
        return WindingMode.STRICT
    if name in DEFAULT_CRS_NAMES:
        return WindingMode.DEFAULT
    msg = f"Unrecognized crs name {name!r}"
    raise UnrecognizedCRSError(msg, path=f"{path}.properties.name")
