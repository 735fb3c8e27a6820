"""Cube-face quadtree cells.

The sphere is projected onto the six faces of the circumscribed cube;
each face is split recursively into four children down to level 30.
A cell is named by one integer::

    face (3 bits) | quadtree path (2 bits per level) | sentinel 1 | zeros

so that every descendant of a cell has an id in the contiguous range
``[id - lsb + 1, id + lsb - 1]`` where ``lsb`` is the sentinel bit.
Sorting ids therefore groups each subtree together, which the covering
index exploits with ``bisect``.

Face ``uv`` coordinates use the plain gnomonic projection; the edges of
every cell are great-circle arcs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from geoquery.sphere import Cap, angle_between, normalize

MAX_LEVEL = 30
FACE_COUNT = 6
_FACE_SHIFT = 61

# Grows cell caps a little past their corners to absorb rounding.
_CAP_PADDING = 1e-12


def _face_uv_to_xyz(face: int, u: float, v: float) -> np.ndarray:
    if face == 0:
        return np.array([1.0, u, v])
    if face == 1:
        return np.array([-u, 1.0, v])
    if face == 2:
        return np.array([-u, -v, 1.0])
    if face == 3:
        return np.array([-1.0, -v, -u])
    if face == 4:
        return np.array([v, -1.0, -u])
    return np.array([v, u, -1.0])


def xyz_to_face_uv(point: np.ndarray) -> tuple[int, float, float]:
    """Project a unit vector onto its cube face; return ``(face, u, v)``."""
    x, y, z = (float(c) for c in point)
    axis = int(np.argmax(np.abs(point)))
    if axis == 0:
        return (0, y / x, z / x) if x > 0 else (3, z / x, y / x)
    if axis == 1:
        return (1, -x / y, z / y) if y > 0 else (4, z / y, -x / y)
    return (2, -x / z, -y / z) if z > 0 else (5, -y / z, -x / z)


def _interleave(i: int, j: int, level: int) -> int:
    pos = 0
    for bit in range(level - 1, -1, -1):
        pos = (pos << 2) | (((i >> bit) & 1) << 1) | ((j >> bit) & 1)
    return pos


def _deinterleave(pos: int, level: int) -> tuple[int, int]:
    i = j = 0
    for bit in range(level - 1, -1, -1):
        pair = (pos >> (2 * bit)) & 3
        i = (i << 1) | (pair >> 1)
        j = (j << 1) | (pair & 1)
    return i, j


@dataclass(frozen=True, slots=True, order=True)
class CellId:
    """One quadtree cell on one cube face.

    Attributes:
        id: Packed integer identifier (see module docstring).
    """

    id: int

    # -- construction -------------------------------------------------------

    @classmethod
    def from_face_ij(cls, face: int, i: int, j: int, level: int) -> CellId:
        """Build the cell at grid position ``(i, j)`` on *face* at *level*."""
        if not 0 <= face < FACE_COUNT:
            msg = f"face must be in [0, {FACE_COUNT}), got {face}"
            raise ValueError(msg)
        if not 0 <= level <= MAX_LEVEL:
            msg = f"level must be in [0, {MAX_LEVEL}], got {level}"
            raise ValueError(msg)
        shift = 2 * (MAX_LEVEL - level)
        pos = _interleave(i, j, level)
        return cls((face << _FACE_SHIFT) | (pos << (shift + 1)) | (1 << shift))

    @classmethod
    def face_cell(cls, face: int) -> CellId:
        return cls.from_face_ij(face, 0, 0, 0)

    @classmethod
    def from_point(cls, point: np.ndarray, level: int = MAX_LEVEL) -> CellId:
        """The cell at *level* containing unit vector *point*."""
        face, u, v = xyz_to_face_uv(point)
        size = 1 << level
        i = min(max(int(math.floor((u + 1.0) / 2.0 * size)), 0), size - 1)
        j = min(max(int(math.floor((v + 1.0) / 2.0 * size)), 0), size - 1)
        return cls.from_face_ij(face, i, j, level)

    # -- decoding -----------------------------------------------------------

    @property
    def lsb(self) -> int:
        return self.id & -self.id

    @property
    def level(self) -> int:
        return MAX_LEVEL - (self.lsb.bit_length() - 1) // 2

    @property
    def face(self) -> int:
        return self.id >> _FACE_SHIFT

    @property
    def ij(self) -> tuple[int, int]:
        level = self.level
        pos = (self.id & ((1 << _FACE_SHIFT) - 1)) >> (2 * (MAX_LEVEL - level) + 1)
        return _deinterleave(pos, level)

    @property
    def range_min(self) -> int:
        return self.id - self.lsb + 1

    @property
    def range_max(self) -> int:
        return self.id + self.lsb - 1

    # -- hierarchy ----------------------------------------------------------

    def is_leaf(self) -> bool:
        return self.level == MAX_LEVEL

    def parent(self, level: int | None = None) -> CellId:
        """The ancestor at *level* (default: one level up)."""
        own = self.level
        target = own - 1 if level is None else level
        if not 0 <= target <= own:
            msg = f"ancestor level must be in [0, {own}], got {target}"
            raise ValueError(msg)
        new_lsb = 1 << (2 * (MAX_LEVEL - target))
        return CellId((self.id & -new_lsb) | new_lsb)

    def children(self) -> tuple[CellId, ...]:
        if self.is_leaf():
            return ()
        step = self.lsb >> 2
        first = self.id - self.lsb + step
        return tuple(CellId(first + 2 * step * k) for k in range(4))

    def contains(self, other: CellId) -> bool:
        return self.range_min <= other.id <= self.range_max

    def intersects(self, other: CellId) -> bool:
        return self.contains(other) or other.contains(self)

    # -- geometry -----------------------------------------------------------

    def corners(self) -> np.ndarray:
        """``(4, 3)`` unit vectors at the cell's corners."""
        level = self.level
        i, j = self.ij
        size = 1 << level
        u0, u1 = 2.0 * i / size - 1.0, 2.0 * (i + 1) / size - 1.0
        v0, v1 = 2.0 * j / size - 1.0, 2.0 * (j + 1) / size - 1.0
        face = self.face
        pts = [_face_uv_to_xyz(face, u, v) for u, v in ((u0, v0), (u1, v0), (u1, v1), (u0, v1))]
        return normalize(np.asarray(pts))

    def center(self) -> np.ndarray:
        level = self.level
        i, j = self.ij
        size = 1 << level
        u = 2.0 * (i + 0.5) / size - 1.0
        v = 2.0 * (j + 0.5) / size - 1.0
        return normalize(_face_uv_to_xyz(self.face, u, v))

    def cap(self) -> Cap:
        """A spherical cap enclosing the whole cell."""
        center = self.center()
        radius = float(np.max(angle_between(self.corners(), center)))
        return Cap(center=center, radius=radius + _CAP_PADDING)

    def __repr__(self) -> str:
        i, j = self.ij
        return f"CellId(face={self.face}, level={self.level}, i={i}, j={j})"
