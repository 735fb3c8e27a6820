"""Pydantic model of the GeoJSON-like geometry wire object.

The wire object is a loose property bag: ``type`` selects the variant,
``coordinates`` holds nested arrays whose depth depends on the type,
``geometries`` holds members of a ``GeometryCollection`` and ``crs`` is
an optional named CRS.  This model checks the outer shape only; nesting
depth and coordinate values are checked by ``geoquery.parse``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CRSProperties(BaseModel):
    """``crs.properties`` member.

    Attributes:
        name: CRS identifier, e.g. ``"urn:mongodb:strictwindingcrs:EPSG:4326"``.
    """

    name: str


class CRSObject(BaseModel):
    """Named CRS member.

    Attributes:
        type: Always ``"name"`` for recognised CRS objects.
        properties: The CRS properties holding its name.
    """

    type: str
    properties: CRSProperties


class GeoJSONGeometry(BaseModel):
    """Outer shape of a geometry wire object.

    Attributes:
        type: GeoJSON geometry type name.
        coordinates: Nested coordinate arrays (absent for collections).
        geometries: Member geometries of a ``GeometryCollection``.
        crs: Optional named CRS.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    coordinates: Any = None
    geometries: list[GeoJSONGeometry] | None = Field(default=None)
    crs: CRSObject | None = None


GeoJSONGeometry.model_rebuild()
