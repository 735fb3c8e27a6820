"""Cell-bucketed edge index for crossing enumeration.

Each great-circle arc is enclosed in an axis-aligned 3-D box (its chord's
box grown by the arc's sagitta and a padding term).  Boxes are hashed
into a uniform grid whose cell size follows the median edge extent, so
that edges sharing no grid cell cannot intersect.  Long edges that would
span many cells go to a ``large`` list and are paired with everything.

The grid turns ring self-intersection checks and ring-vs-ring crossing
enumeration from O(N²) into roughly O(N) for the usual case of many
short edges.
"""

from __future__ import annotations

import itertools
from collections import defaultdict

import numpy as np

from geoquery.sphere._vectors import dot

# Edges whose box spans more cells than this are kept out of the hash.
LARGE_CELL_SPAN = 64

# Edge counts below this product are paired exhaustively.
BRUTE_FORCE_PAIRS = 4096

_MIN_CELL_SIZE = 1e-7


def arc_boxes(starts: np.ndarray, ends: np.ndarray, *, pad: float = 0.0) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(lo, hi)`` boxes, each ``(E, 3)``, enclosing the given arcs."""
    cos_theta = np.clip(dot(starts, ends), -1.0, 1.0)
    # Sagitta of the arc: 1 - cos(θ/2).
    sagitta = 1.0 - np.sqrt((1.0 + cos_theta) / 2.0)
    grow = (sagitta + pad)[:, None]
    lo = np.minimum(starts, ends) - grow
    hi = np.maximum(starts, ends) + grow
    return lo, hi


class EdgeGrid:
    """Uniform-grid bucket index over a fixed set of arcs.

    Attributes:
        size: Number of indexed edges.
        cell_size: Grid spacing in Cartesian units.
        large: Indices of edges kept out of the grid.
    """

    def __init__(self, starts: np.ndarray, ends: np.ndarray, *, pad: float = 1e-9) -> None:
        self.starts = starts
        self.ends = ends
        self.size = len(starts)
        self.pad = pad
        self.lo, self.hi = arc_boxes(starts, ends, pad=pad)

        extents = np.max(self.hi - self.lo, axis=1) if self.size else np.zeros(0)
        self.cell_size = float(max(np.median(extents), _MIN_CELL_SIZE)) if self.size else 1.0

        self.cells: dict[tuple[int, int, int], list[int]] = defaultdict(list)
        large: list[int] = []
        lo_idx, hi_idx = self._cell_range(self.lo, self.hi)
        spans = np.prod((hi_idx - lo_idx + 1).astype(np.float64), axis=1) if self.size else np.zeros(0)
        for edge in range(self.size):
            if spans[edge] > LARGE_CELL_SPAN:
                large.append(edge)
                continue
            for key in self._keys(lo_idx[edge], hi_idx[edge]):
                self.cells[key].append(edge)
        self.large = np.asarray(large, dtype=np.int64)

    def __len__(self) -> int:
        return self.size

    # -- internals ----------------------------------------------------------

    def _cell_range(self, lo: np.ndarray, hi: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        return (
            np.floor(lo / self.cell_size).astype(np.int64),
            np.floor(hi / self.cell_size).astype(np.int64),
        )

    @staticmethod
    def _keys(lo: np.ndarray, hi: np.ndarray):
        return itertools.product(
            range(int(lo[0]), int(hi[0]) + 1),
            range(int(lo[1]), int(hi[1]) + 1),
            range(int(lo[2]), int(hi[2]) + 1),
        )

    # -- queries ------------------------------------------------------------

    def self_pairs(self) -> np.ndarray:
        """Return ``(K, 2)`` index pairs ``i < j`` of edges whose boxes may overlap."""
        if self.size * self.size <= BRUTE_FORCE_PAIRS:
            i, j = np.triu_indices(self.size, 1)
            return np.column_stack((i, j)).astype(np.int64)

        chunks: list[np.ndarray] = []
        for members in self.cells.values():
            if len(members) < 2:
                continue
            idx = np.asarray(members, dtype=np.int64)
            i, j = np.triu_indices(len(idx), 1)
            chunks.append(np.column_stack((idx[i], idx[j])))
        everything = np.arange(self.size, dtype=np.int64)
        for edge in self.large:
            others = everything[everything != edge]
            chunks.append(np.column_stack((np.full(len(others), edge), others)))
        if not chunks:
            return np.zeros((0, 2), dtype=np.int64)

        pairs = np.sort(np.concatenate(chunks), axis=1)
        pairs = np.unique(pairs, axis=0)
        i, j = pairs[:, 0], pairs[:, 1]
        keep = np.all((self.lo[i] <= self.hi[j]) & (self.hi[i] >= self.lo[j]), axis=1)
        return pairs[keep]

    def query(self, start: np.ndarray, end: np.ndarray) -> np.ndarray:
        """Indices of edges whose boxes may overlap the arc ``start → end``."""
        lo, hi = arc_boxes(start[None, :], end[None, :], pad=self.pad)
        return self.query_box(lo[0], hi[0])

    def query_box(self, lo: np.ndarray, hi: np.ndarray) -> np.ndarray:
        """Indices of edges whose boxes overlap the box ``[lo, hi]``."""
        lo_idx, hi_idx = self._cell_range(lo[None, :], hi[None, :])
        span = float(np.prod((hi_idx[0] - lo_idx[0] + 1).astype(np.float64)))
        if span > LARGE_CELL_SPAN * LARGE_CELL_SPAN:
            found = np.arange(self.size, dtype=np.int64)
        else:
            hits: set[int] = set(self.large.tolist())
            for key in self._keys(lo_idx[0], hi_idx[0]):
                members = self.cells.get(key)
                if members:
                    hits.update(members)
            found = np.fromiter(sorted(hits), dtype=np.int64, count=len(hits))
        keep = np.all((self.lo[found] <= hi) & (self.hi[found] >= lo), axis=1)
        return found[keep]

    def pairs_with(self, starts: np.ndarray, ends: np.ndarray) -> np.ndarray:
        """Return ``(K, 2)`` pairs ``(own edge, other edge)`` whose boxes may overlap."""
        if self.size * len(starts) <= BRUTE_FORCE_PAIRS:
            own, other = np.meshgrid(np.arange(self.size), np.arange(len(starts)), indexing="ij")
            return np.column_stack((own.ravel(), other.ravel())).astype(np.int64)

        chunks: list[np.ndarray] = []
        for k in range(len(starts)):
            found = self.query(starts[k], ends[k])
            if len(found):
                chunks.append(np.column_stack((found, np.full(len(found), k, dtype=np.int64))))
        if not chunks:
            return np.zeros((0, 2), dtype=np.int64)
        return np.concatenate(chunks)

