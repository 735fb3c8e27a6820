"""Edge chains: the vectorised form of line strings and rings.

A ``PreparedPath`` holds the vertices of a polyline (or closed ring) as
unit vectors together with the per-edge normals and tolerances every
predicate needs.  Its ``EdgeGrid`` is built on first use.
"""

from __future__ import annotations

import numpy as np

from geoquery.sphere._edge_grid import EdgeGrid
from geoquery.sphere._predicates import (
    DEFAULT_EPSILON,
    edge_normals,
    points_on_edges,
    proper_crossings,
)
from geoquery.sphere._vectors import angle_between, dot

# Maximum point × edge pairs evaluated in one vectorised block.
CHUNK_PAIRS = 1 << 18


class PreparedPath:
    """Vertices plus cached edge data for one polyline or ring.

    Attributes:
        vertices: ``(N, 3)`` unit vectors.  For a closed ring the closing
            repeat is omitted and the last edge wraps to ``vertices[0]``.
        starts: ``(E, 3)`` edge start vectors.
        ends: ``(E, 3)`` edge end vectors.
        normals: ``(E, 3)`` unit edge normals (left side positive).
        tolerances: ``(E,)`` per-edge tolerances.
    """

    __slots__ = ("_grid", "closed", "ends", "epsilon", "normals", "starts", "tolerances", "vertices")

    def __init__(self, vertices: np.ndarray, *, closed: bool, epsilon: float = DEFAULT_EPSILON) -> None:
        self.vertices = vertices
        self.closed = closed
        self.epsilon = epsilon
        if closed:
            self.starts = vertices
            self.ends = np.roll(vertices, -1, axis=0)
        else:
            self.starts = vertices[:-1]
            self.ends = vertices[1:]
        self.normals, self.tolerances = edge_normals(self.starts, self.ends, epsilon=epsilon)
        self._grid: EdgeGrid | None = None

    @property
    def edge_count(self) -> int:
        return len(self.starts)

    @property
    def grid(self) -> EdgeGrid:
        if self._grid is None:
            self._grid = EdgeGrid(self.starts, self.ends)
        return self._grid

    def edge_pairs(self, other: PreparedPath) -> np.ndarray:
        """Candidate ``(own edge, other edge)`` pairs whose boxes overlap."""
        if self.edge_count >= other.edge_count:
            return self.grid.pairs_with(other.starts, other.ends)
        return other.grid.pairs_with(self.starts, self.ends)[:, ::-1]

    def crossing_pairs(self, other: PreparedPath) -> np.ndarray:
        """``(own edge, other edge)`` pairs that cross properly."""
        pairs = self.edge_pairs(other)
        if not len(pairs):
            return pairs
        i, j = pairs[:, 0], pairs[:, 1]
        mask = proper_crossings(
            self.starts[i],
            self.ends[i],
            self.normals[i],
            self.tolerances[i],
            other.starts[j],
            other.ends[j],
            other.normals[j],
            other.tolerances[j],
        )
        return pairs[mask]

    def crosses(self, other: PreparedPath) -> bool:
        """Whether any edge of this path properly crosses an edge of *other*."""
        return bool(len(self.crossing_pairs(other)))

    def point_hits(self, points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """All ``(point index, edge index)`` incidences of *points* lying on edges."""
        empty = np.zeros(0, dtype=np.int64)
        if not len(points) or not self.edge_count:
            return empty, empty
        point_idx: list[np.ndarray] = []
        edge_idx: list[np.ndarray] = []
        if len(points) * self.edge_count <= CHUNK_PAIRS * 16:
            rows = max(1, CHUNK_PAIRS // self.edge_count)
            for lo in range(0, len(points), rows):
                hits = points_on_edges(
                    points[lo : lo + rows, None, :],
                    self.starts[None],
                    self.ends[None],
                    self.normals[None],
                    self.tolerances[None],
                )
                p, e = np.nonzero(hits)
                point_idx.append(p + lo)
                edge_idx.append(e)
        else:
            grid = self.grid
            for k, point in enumerate(points):
                found = grid.query_box(point - grid.pad, point + grid.pad)
                if not len(found):
                    continue
                mask = points_on_edges(
                    point,
                    self.starts[found],
                    self.ends[found],
                    self.normals[found],
                    self.tolerances[found],
                )
                point_idx.append(np.full(int(mask.sum()), k, dtype=np.int64))
                edge_idx.append(found[mask])
        if not point_idx:
            return empty, empty
        return np.concatenate(point_idx).astype(np.int64), np.concatenate(edge_idx).astype(np.int64)

    def contains_points(self, points: np.ndarray) -> np.ndarray:
        """Mask of *points* lying on some edge of this path (vertices included)."""
        out = np.zeros(len(points), dtype=bool)
        point_idx, _ = self.point_hits(points)
        out[point_idx] = True
        return out

    def split_samples(self, splitters: np.ndarray, boundary_ends: np.ndarray | None = None) -> np.ndarray:
        """Midpoints of the sub-arcs left when edges are cut at *splitters*.

        Only edges that contain a splitter, or whose two endpoints are both
        flagged in *boundary_ends*, are sampled; for every other edge the
        endpoints already decide its location.

        Args:
            splitters: ``(S, 3)`` points (typically another path's vertices).
            boundary_ends: ``(N,)`` vertex mask; edges with both ends
                flagged are sampled even without splitters.
        """
        cuts: dict[int, list[np.ndarray]] = {}
        point_idx, edge_idx = self.point_hits(splitters)
        for p, e in zip(point_idx, edge_idx, strict=True):
            cuts.setdefault(int(e), []).append(splitters[p])

        if boundary_ends is not None and self.edge_count:
            if self.closed:
                both = boundary_ends & np.roll(boundary_ends, -1)
            else:
                both = boundary_ends[:-1] & boundary_ends[1:]
            for e in np.nonzero(both)[0]:
                cuts.setdefault(int(e), [])

        samples: list[np.ndarray] = []
        for e, points in cuts.items():
            start, end = self.starts[e], self.ends[e]
            chain = [start]
            if points:
                arr = np.asarray(points)
                along = np.arctan2(dot(np.cross(start, arr), self.normals[e]), dot(arr, start))
                chain.extend(arr[np.argsort(along)])
            chain.append(end)
            pts = np.asarray(chain)
            keep = angle_between(pts[:-1], pts[1:]) > self.tolerances[e]
            if keep.any():
                mids = (pts[:-1] + pts[1:])[keep]
                samples.append(mids / np.linalg.norm(mids, axis=1, keepdims=True))
        if not samples:
            return np.zeros((0, 3))
        return np.concatenate(samples)
