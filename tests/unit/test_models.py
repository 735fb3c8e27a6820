"""Tests for the geometry model and wire schema.

Covers:
- Frozen dataclass invariants
- ``to_dict`` serialisation (and round-trip through ``validate``)
- ``is_geometry`` / ``is_areal`` helpers
- Pydantic wire model shape checks
"""

from __future__ import annotations

import dataclasses

import pydantic
import pytest

from geoquery.core.constants import STRICT_WINDING_CRS
from geoquery.models import (
    GeoJSONGeometry,
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
from geoquery.parse import validate

SQUARE = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0), (0.0, 0.0))


class TestGeometryVariants:
    """Geometry dataclasses are immutable value objects."""

    def test_point_is_frozen(self) -> None:
        pt = Point(lon=1.0, lat=2.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            pt.lon = 3.0  # type: ignore[misc]

    def test_point_equality_by_value(self) -> None:
        assert Point(1.0, 2.0) == Point(1.0, 2.0)
        assert Point(1.0, 2.0).coords == (1.0, 2.0)

    def test_polygon_shell_and_holes(self) -> None:
        hole = ((0.2, 0.2), (0.4, 0.2), (0.4, 0.4), (0.2, 0.4), (0.2, 0.2))
        poly = Polygon(rings=(SQUARE, hole))
        assert poly.shell == SQUARE
        assert poly.holes == (hole,)
        assert poly.has_holes
        assert poly.vertex_count == 4
        assert poly.winding is WindingMode.DEFAULT

    def test_type_names(self) -> None:
        assert Point.type == "Point"
        assert LineString.type == "LineString"
        assert Polygon.type == "Polygon"
        assert MultiPoint.type == "MultiPoint"
        assert MultiLineString.type == "MultiLineString"
        assert MultiPolygon.type == "MultiPolygon"
        assert GeometryCollection.type == "GeometryCollection"


class TestToDict:
    """Serialisation to wire dicts."""

    def test_point(self) -> None:
        assert Point(1.5, -2.5).to_dict() == {"type": "Point", "coordinates": [1.5, -2.5]}

    def test_default_polygon_has_no_crs(self) -> None:
        payload = Polygon(rings=(SQUARE,)).to_dict()
        assert "crs" not in payload
        assert payload["coordinates"][0][0] == [0.0, 0.0]

    def test_strict_polygon_carries_crs(self) -> None:
        payload = Polygon(rings=(SQUARE,), winding=WindingMode.STRICT).to_dict()
        assert payload["crs"]["properties"]["name"] == STRICT_WINDING_CRS

    def test_collection_nests_members(self) -> None:
        gc = GeometryCollection(geometries=(Point(0.0, 0.0), LineString(points=((0.0, 0.0), (1.0, 1.0)))))
        payload = gc.to_dict()
        assert [g["type"] for g in payload["geometries"]] == ["Point", "LineString"]

    @pytest.mark.parametrize(
        "geometry",
        [
            Point(10.0, 20.0),
            LineString(points=((0.0, 0.0), (5.0, 5.0), (10.0, 0.0))),
            Polygon(rings=(SQUARE,), winding=WindingMode.STRICT),
            MultiPoint(points=((0.0, 0.0), (1.0, 1.0))),
            MultiPolygon(polygons=(Polygon(rings=(SQUARE,)),)),
        ],
    )
    def test_round_trip_through_validate(self, geometry: object) -> None:
        assert validate(geometry.to_dict()) == geometry  # type: ignore[attr-defined]


class TestHelpers:
    """``is_geometry`` and ``is_areal``."""

    def test_is_geometry(self) -> None:
        assert is_geometry(Point(0.0, 0.0))
        assert not is_geometry({"type": "Point", "coordinates": [0, 0]})
        assert not is_geometry(None)

    def test_is_areal(self) -> None:
        assert is_areal(Polygon(rings=(SQUARE,)))
        assert is_areal(MultiPolygon(polygons=(Polygon(rings=(SQUARE,)),)))
        assert not is_areal(Point(0.0, 0.0))
        assert not is_areal(LineString(points=((0.0, 0.0), (1.0, 1.0))))

    def test_collection_is_areal_if_any_member_is(self) -> None:
        assert is_areal(GeometryCollection(geometries=(Point(0.0, 0.0), Polygon(rings=(SQUARE,)))))
        assert not is_areal(GeometryCollection(geometries=(Point(0.0, 0.0),)))


class TestWireModel:
    """Pydantic wire model."""

    def test_extra_members_ignored(self) -> None:
        model = GeoJSONGeometry.model_validate({"type": "Point", "coordinates": [0, 0], "bbox": [0, 0, 0, 0]})
        assert model.type == "Point"

    def test_crs_parsed(self) -> None:
        model = GeoJSONGeometry.model_validate(
            {
                "type": "Polygon",
                "coordinates": [],
                "crs": {"type": "name", "properties": {"name": STRICT_WINDING_CRS}},
            }
        )
        assert model.crs is not None
        assert model.crs.properties.name == STRICT_WINDING_CRS

    def test_missing_type_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            GeoJSONGeometry.model_validate({"coordinates": [0, 0]})

    def test_nested_geometries(self) -> None:
        model = GeoJSONGeometry.model_validate(
            {"type": "GeometryCollection", "geometries": [{"type": "Point", "coordinates": [1, 2]}]}
        )
        assert model.geometries is not None
        assert model.geometries[0].coordinates == [1, 2]
