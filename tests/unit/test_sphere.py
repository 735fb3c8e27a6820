"""Tests for the spherical primitives.

Covers:
- Degree ↔ unit-vector conversion and pole snapping
- Side-of-edge, point-on-edge and proper crossing predicates
- Ring areas (Gauss–Bonnet) and signed areas
- Arc distances and caps
- EdgeGrid candidate enumeration and PreparedPath incidences
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from geoquery.sphere import (
    NORTH_POLE,
    Cap,
    EdgeGrid,
    PreparedPath,
    Side,
    angle_between,
    arc_distances,
    cap_area,
    crosses_edge,
    edge_normals,
    point_on_edge,
    ring_area,
    side_of_edge,
    signed_ring_area,
    steradians_to_km2,
    to_lon_lat,
    to_unit_vector,
    to_unit_vectors,
)


def v(lon: float, lat: float) -> np.ndarray:
    return to_unit_vector(lon, lat)


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


class TestConversion:
    """Degree pairs to unit vectors and back."""

    def test_axes(self) -> None:
        np.testing.assert_allclose(v(0, 0), [1.0, 0.0, 0.0], atol=1e-15)
        np.testing.assert_allclose(v(90, 0), [0.0, 1.0, 0.0], atol=1e-15)

    def test_unit_length(self) -> None:
        vectors = to_unit_vectors([(-97.9, 0.1), (114.08, 22.66), (2.35, 48.86)])
        np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), 1.0)

    def test_pole_snapped_exactly(self) -> None:
        np.testing.assert_array_equal(v(-97.9, 90.0), NORTH_POLE)
        np.testing.assert_array_equal(v(2.349902, 90.0), NORTH_POLE)

    def test_near_pole_within_snap_distance(self) -> None:
        snapped = to_unit_vector(10.0, 90.0 - 1e-10, pole_snap_degrees=1e-9)
        np.testing.assert_array_equal(snapped, NORTH_POLE)

    def test_round_trip(self) -> None:
        lon, lat = to_lon_lat(v(114.0834046, 22.6648202))
        assert lon == pytest.approx(114.0834046)
        assert lat == pytest.approx(22.6648202)

    def test_pole_round_trip_longitude_zero(self) -> None:
        assert to_lon_lat(v(-97.9, -90.0)) == (0.0, -90.0)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class TestSideOfEdge:
    """Orientation against a directed great circle."""

    def test_left_and_right(self) -> None:
        a, b = v(0, 0), v(10, 0)
        assert side_of_edge(v(5, 1), a, b) is Side.LEFT
        assert side_of_edge(v(5, -1), a, b) is Side.RIGHT

    def test_on_circle(self) -> None:
        assert side_of_edge(v(45, 0), v(0, 0), v(10, 0)) is Side.ON

    def test_reversed_edge_flips_side(self) -> None:
        assert side_of_edge(v(5, 1), v(10, 0), v(0, 0)) is Side.RIGHT


class TestPointOnEdge:
    """Incidence of a point and an arc."""

    def test_interior_point(self) -> None:
        assert point_on_edge(v(5, 0), v(0, 0), v(10, 0))

    def test_endpoints_included(self) -> None:
        assert point_on_edge(v(0, 0), v(0, 0), v(10, 0))
        assert point_on_edge(v(10, 0), v(0, 0), v(10, 0))

    def test_same_circle_outside_arc(self) -> None:
        assert not point_on_edge(v(20, 0), v(0, 0), v(10, 0))

    def test_antipodal_half_rejected(self) -> None:
        assert not point_on_edge(v(-175, 0), v(0, 0), v(10, 0))

    def test_off_circle(self) -> None:
        assert not point_on_edge(v(5, 0.001), v(0, 0), v(10, 0))

    def test_meridian_arc_through_equator(self) -> None:
        assert point_on_edge(v(2.349902, 0.0), v(2.349902, -89.8), v(2.349902, 89.8))


class TestCrossesEdge:
    """Proper crossings only."""

    def test_crossing(self) -> None:
        assert crosses_edge(v(0, -5), v(0, 5), v(-5, 0), v(5, 0))

    def test_disjoint(self) -> None:
        assert not crosses_edge(v(0, 1), v(0, 5), v(-5, 0), v(5, 0))

    def test_shared_endpoint_is_not_crossing(self) -> None:
        assert not crosses_edge(v(0, 0), v(0, 5), v(0, 0), v(5, 0))

    def test_touching_is_not_crossing(self) -> None:
        assert not crosses_edge(v(0, 0), v(0, 5), v(-5, 0), v(5, 0))

    def test_collinear_overlap_is_not_crossing(self) -> None:
        assert not crosses_edge(v(0, 0), v(10, 0), v(5, 0), v(15, 0))

    def test_crossing_across_antimeridian(self) -> None:
        assert crosses_edge(v(170, 0), v(-170, 0), v(180, -5), v(180, 5))


class TestEdgeNormals:
    """Per-edge tolerances."""

    def test_short_edges_get_larger_tolerance(self) -> None:
        starts = np.array([v(0, 0), v(0, 0)])
        ends = np.array([v(10, 0), v(0.0001, 0)])
        normals, tolerances = edge_normals(starts, ends, epsilon=1e-12)
        np.testing.assert_allclose(normals[0], [0.0, 0.0, 1.0], atol=1e-15)
        assert tolerances[1] > tolerances[0] >= 1e-12

    def test_degenerate_edge_has_zero_normal(self) -> None:
        normals, _ = edge_normals(v(5, 5)[None], v(5, 5)[None])
        np.testing.assert_array_equal(normals[0], [0.0, 0.0, 0.0])


# ---------------------------------------------------------------------------
# Areas
# ---------------------------------------------------------------------------


class TestRingArea:
    """Gauss–Bonnet areas."""

    def test_octant(self) -> None:
        ring = to_unit_vectors([(0, 0), (90, 0), (0, 90)])
        assert ring_area(ring) == pytest.approx(math.pi / 2)

    def test_reversed_octant_is_complement(self) -> None:
        ring = to_unit_vectors([(0, 90), (90, 0), (0, 0)])
        assert ring_area(ring) == pytest.approx(4 * math.pi - math.pi / 2)

    def test_signed_area(self) -> None:
        ccw = to_unit_vectors([(0, 0), (90, 0), (0, 90)])
        assert signed_ring_area(ccw) == pytest.approx(math.pi / 2)
        assert signed_ring_area(ccw[::-1]) == pytest.approx(-math.pi / 2)

    def test_equator_splits_sphere_evenly(self) -> None:
        ring = to_unit_vectors([(0, 0), (90, 0), (180, 0), (-90, 0)])
        assert ring_area(ring) == pytest.approx(2 * math.pi)

    def test_small_square_matches_flat_estimate(self) -> None:
        ring = to_unit_vectors([(0, 0), (0.01, 0), (0.01, 0.01), (0, 0.01)])
        side = math.radians(0.01)
        assert ring_area(ring) == pytest.approx(side * side, rel=1e-4)

    def test_area_in_km2(self) -> None:
        assert steradians_to_km2(4 * math.pi) == pytest.approx(5.1007e8, rel=1e-3)

    def test_cap_area_hemisphere(self) -> None:
        assert cap_area(math.pi / 2) == pytest.approx(2 * math.pi)


# ---------------------------------------------------------------------------
# Distances and caps
# ---------------------------------------------------------------------------


class TestArcDistances:
    """Point-to-arc angular distance."""

    def test_distance_to_arc_interior(self) -> None:
        starts, ends = v(0, 0)[None], v(10, 0)[None]
        normals, _ = edge_normals(starts, ends)
        d = arc_distances(v(5, 3), starts, ends, normals)
        assert d[0] == pytest.approx(math.radians(3))

    def test_distance_to_nearest_endpoint(self) -> None:
        starts, ends = v(0, 0)[None], v(10, 0)[None]
        normals, _ = edge_normals(starts, ends)
        d = arc_distances(v(20, 0), starts, ends, normals)
        assert d[0] == pytest.approx(math.radians(10))

    def test_vectorised_over_edges(self) -> None:
        ring = to_unit_vectors([(0, 0), (10, 0), (10, 10), (0, 10)])
        starts, ends = ring, np.roll(ring, -1, axis=0)
        normals, _ = edge_normals(starts, ends)
        d = arc_distances(v(5, 5), starts, ends, normals)
        assert d.shape == (4,)
        assert float(d.min()) > math.radians(4.5)


class TestCap:
    """Spherical caps."""

    def test_contains_point(self) -> None:
        cap = Cap(center=v(0, 0), radius=math.radians(10))
        assert cap.contains_point(v(5, 5))
        assert not cap.contains_point(v(20, 0))

    def test_intersects_points(self) -> None:
        cap = Cap(center=NORTH_POLE, radius=math.radians(1))
        assert cap.intersects_points(to_unit_vectors([(0, 0), (-97.9, 90)]))
        assert not cap.intersects_points(to_unit_vectors([(0, 0), (10, 10)]))

    def test_angle_between_is_accurate_for_tiny_angles(self) -> None:
        assert float(angle_between(v(0, 0), v(1e-9, 0))) == pytest.approx(math.radians(1e-9), rel=1e-6)


# ---------------------------------------------------------------------------
# Edge grid and prepared paths
# ---------------------------------------------------------------------------


def _regular_vertices(n: int, radius: float = 10.0) -> np.ndarray:
    theta = np.linspace(0.0, 2 * math.pi, n, endpoint=False)
    return to_unit_vectors(np.column_stack((radius * np.cos(theta), radius * np.sin(theta))))


class TestEdgeGrid:
    """Candidate pair enumeration must never miss a touching pair."""

    def test_small_input_uses_all_pairs(self) -> None:
        ring = _regular_vertices(8)
        grid = EdgeGrid(ring, np.roll(ring, -1, axis=0))
        assert len(grid.self_pairs()) == 8 * 7 // 2

    def test_large_ring_keeps_neighbour_pairs(self) -> None:
        ring = _regular_vertices(500)
        grid = EdgeGrid(ring, np.roll(ring, -1, axis=0))
        pairs = {tuple(p) for p in grid.self_pairs().tolist()}
        assert all((k, k + 1) in pairs for k in range(499))
        assert len(pairs) < 500 * 499 // 2

    def test_query_finds_crossing_edge(self) -> None:
        ring = _regular_vertices(500)
        grid = EdgeGrid(ring, np.roll(ring, -1, axis=0))
        found = grid.query(v(10.5, -0.5), v(9.5, 0.5))
        assert 0 in found.tolist() or 499 in found.tolist()

    def test_pairs_with_other_path(self) -> None:
        ring = _regular_vertices(400)
        grid = EdgeGrid(ring, np.roll(ring, -1, axis=0))
        line = to_unit_vectors([(lon, 0.0) for lon in range(-20, 22, 2)])
        pairs = grid.pairs_with(line[:-1], line[1:])
        own = set(pairs[:, 0].tolist())
        assert 0 in own or 399 in own
        assert 199 in own or 200 in own
        assert len(pairs) < 400 * 20


class TestPreparedPath:
    """Vectorised path incidences, crossings and samples."""

    def test_closed_path_edges(self) -> None:
        ring = to_unit_vectors([(0, 0), (10, 0), (10, 10), (0, 10)])
        path = PreparedPath(ring, closed=True)
        assert path.edge_count == 4
        np.testing.assert_array_equal(path.ends[-1], ring[0])

    def test_open_path_edges(self) -> None:
        line = to_unit_vectors([(0, 0), (10, 0), (10, 10)])
        assert PreparedPath(line, closed=False).edge_count == 2

    def test_crosses(self) -> None:
        a = PreparedPath(to_unit_vectors([(0, -5), (0, 5)]), closed=False)
        b = PreparedPath(to_unit_vectors([(-5, 0), (5, 0)]), closed=False)
        c = PreparedPath(to_unit_vectors([(-5, 10), (5, 10)]), closed=False)
        assert a.crosses(b)
        assert not a.crosses(c)

    def test_contains_points(self) -> None:
        ring = to_unit_vectors([(0, 0), (10, 0), (10, 10), (0, 10)])
        path = PreparedPath(ring, closed=True)
        mask = path.contains_points(to_unit_vectors([(5, 0), (0, 0), (5, 5), (0, 5)]))
        assert mask.tolist() == [True, True, False, True]

    def test_split_samples_at_splitter(self) -> None:
        line = PreparedPath(to_unit_vectors([(0, 0), (10, 0)]), closed=False)
        samples = line.split_samples(to_unit_vectors([(4, 0)]))
        lon_lat = sorted(to_lon_lat(s) for s in samples)
        assert lon_lat[0][0] == pytest.approx(2.0)
        assert lon_lat[1][0] == pytest.approx(7.0)

    def test_split_samples_without_splitters_is_empty(self) -> None:
        line = PreparedPath(to_unit_vectors([(0, 0), (10, 0)]), closed=False)
        assert line.split_samples(to_unit_vectors([(4, 4)])).shape == (0, 3)

    def test_split_samples_for_boundary_ends(self) -> None:
        line = PreparedPath(to_unit_vectors([(0, 0), (10, 0)]), closed=False)
        samples = line.split_samples(np.zeros((0, 3)), boundary_ends=np.array([True, True]))
        assert to_lon_lat(samples[0])[0] == pytest.approx(5.0)
