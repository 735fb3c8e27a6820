"""Winding resolver: decide which side of each ring is the interior.

Two conventions exist:

- ``WindingMode.STRICT`` — the interior is the region to the left of the
  ring walked in vertex order, whatever its size.  A shell whose left
  region exceeds a hemisphere is a *big polygon*.
- ``WindingMode.DEFAULT`` — the interior is the smaller of the two
  regions a ring bounds.  A ring that splits the sphere into two equal
  halves has no smaller side and is rejected as ambiguous.

After resolution every ring is oriented so that its interior lies to the
left of its directed edges, which lets point location use one rule for
both conventions: a reference point placed just left of an edge is
inside the ring, and a point is inside iff the probe from the reference
point to it crosses the ring an even number of times.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.core.constants import HEMISPHERE_AREA
from geoquery.core.exceptions import AmbiguousWindingError, ReferencePointError
from geoquery.models.geometry import Polygon, RingCoords, WindingMode
from geoquery.sphere import (
    PreparedPath,
    angle_between,
    arc_crossings,
    arc_distances,
    dot,
    edge_normals,
    orthogonal,
    ring_area,
    to_unit_vectors,
)
from geoquery.sphere._paths import CHUNK_PAIRS

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("geoquery.winding")

# Probes longer than a quarter turn are routed through a midpoint.
_SPLIT_COS = 0.0
# Below this |R + p| the endpoints are treated as antipodal.
_ANTIPODAL_NORM = 1e-3


class Location(enum.IntEnum):
    """Position of a point relative to a closed region."""

    OUTSIDE = 0
    BOUNDARY = 1
    INSIDE = 2


class RingSize(enum.StrEnum):
    """Size class of a ring under a given winding mode."""

    SMALL = "small"
    BIG = "big"
    AMBIGUOUS = "ambiguous"


# ---------------------------------------------------------------------------
# Prepared rings
# ---------------------------------------------------------------------------


class PreparedRing(PreparedPath):
    """A ring oriented with its interior on the left, ready for point location.

    Attributes:
        area: Area (steradians) of the interior.
        max_attempts: Reference points tried before giving up on a point.
    """

    __slots__ = ("_order", "_references", "area", "max_attempts")

    def __init__(
        self,
        vertices: np.ndarray,
        *,
        epsilon: float = DEFAULT_CONFIG.epsilon,
        max_attempts: int = DEFAULT_CONFIG.max_reference_attempts,
        area: float | None = None,
    ) -> None:
        super().__init__(vertices, closed=True, epsilon=epsilon)
        self.area = ring_area(vertices) if area is None else area
        self.max_attempts = max_attempts
        # Long edges first: their reference points sit farthest from trouble.
        lengths = angle_between(self.starts, self.ends)
        self._order = np.argsort(-lengths, kind="stable")
        self._references: dict[int, np.ndarray] = {}

    @property
    def is_big(self) -> bool:
        return self.area > HEMISPHERE_AREA

    def reference(self, attempt: int) -> np.ndarray:
        """Return the reference point for the given attempt number.

        Attempt ``k`` uses the ``k``-th longest edge; once every edge has
        been used the offsets are halved and the cycle repeats.
        """
        cached = self._references.get(attempt)
        if cached is not None:
            return cached

        count = self.edge_count
        edge = int(self._order[attempt % count])
        shrink = 0.5 ** (attempt // count)
        start, end, normal = self.starts[edge], self.ends[edge], self.normals[edge]
        mid = start + end
        mid /= np.linalg.norm(mid)

        others = np.arange(count) != edge
        clearance = math.pi
        if others.any():
            distances = arc_distances(mid, self.starts[others], self.ends[others], self.normals[others])
            clearance = float(np.min(distances))
        offset = min(0.5 * clearance, 0.25 * float(angle_between(start, end))) * shrink

        ref = math.cos(offset) * mid + math.sin(offset) * normal
        self._references[attempt] = ref
        return ref

    def locate(self, points: np.ndarray) -> np.ndarray:
        """Classify ``(P, 3)`` points as ``Location`` codes against this ring.

        Raises:
            ReferencePointError: If some point stays degenerate against
                every reference point.
        """
        points = np.atleast_2d(points)
        result = np.full(len(points), Location.OUTSIDE, dtype=np.int8)
        on_ring = self.contains_points(points)
        result[on_ring] = Location.BOUNDARY

        pending = np.nonzero(~on_ring)[0]
        attempt = 0
        while len(pending):
            if attempt >= self.max_attempts:
                msg = f"No usable reference point after {attempt} attempts for {len(pending)} point(s)"
                raise ReferencePointError(msg)
            odd, degenerate = self._parity(self.reference(attempt), points[pending])
            settled = ~degenerate
            result[pending[settled & ~odd]] = Location.INSIDE
            if degenerate.any():
                logger.debug(
                    "Reference point perturbed | attempt=%d | degenerate=%d | edges=%d",
                    attempt,
                    int(degenerate.sum()),
                    self.edge_count,
                )
            pending = pending[degenerate]
            attempt += 1
        return result

    # -- crossing parity ----------------------------------------------------

    def _parity(self, ref: np.ndarray, points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        sums = ref + points
        norms = np.linalg.norm(sums, axis=1)
        split = dot(points, ref) < _SPLIT_COS
        antipodal = norms < _ANTIPODAL_NORM
        safe = np.where(antipodal, 1.0, norms)
        waypoints = np.where(antipodal[:, None], orthogonal(ref), sums / safe[:, None])

        first_leg = np.where(split[:, None], waypoints, points)
        count, degenerate = self._count(np.broadcast_to(ref, points.shape), first_leg)
        if split.any():
            extra, extra_bad = self._count(waypoints[split], points[split])
            count[split] += extra
            degenerate[split] |= extra_bad
        return count % 2 == 1, degenerate

    def _count(self, r1: np.ndarray, r2: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        nr, tol_r = edge_normals(r1, r2, epsilon=self.epsilon)
        count = np.zeros(len(r1), dtype=np.int64)
        degenerate = np.zeros(len(r1), dtype=bool)
        rows = max(1, CHUNK_PAIRS // self.edge_count)
        for lo in range(0, len(r1), rows):
            sl = slice(lo, lo + rows)
            crossing, bad = arc_crossings(
                r1[sl, None],
                r2[sl, None],
                nr[sl, None],
                tol_r[sl, None],
                self.starts[None],
                self.ends[None],
                self.normals[None],
                self.tolerances[None],
            )
            count[sl] = crossing.sum(axis=1)
            degenerate[sl] = bad.any(axis=1)
        # A probe that ends where it starts crosses nothing.
        empty = np.linalg.norm(np.cross(r1, r2), axis=1) == 0.0
        empty &= dot(r1, r2) > 0
        count[empty] = 0
        degenerate[empty] = False
        return count, degenerate


# ---------------------------------------------------------------------------
# Interior specification
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, eq=False)
class InteriorSpec:
    """Resolved interior of one polygon.

    Attributes:
        shell: Oriented shell ring.
        holes: Oriented hole rings; each hole's own interior is the
            region removed from the shell's interior.
        winding: Convention the interior was resolved under.
        is_big: Whether the shell interior exceeds a hemisphere.
        area: Shell interior area in steradians (holes not subtracted).
    """

    shell: PreparedRing
    holes: tuple[PreparedRing, ...]
    winding: WindingMode
    is_big: bool
    area: float

    @property
    def rings(self) -> tuple[PreparedRing, ...]:
        return (self.shell, *self.holes)

    @property
    def vertices(self) -> np.ndarray:
        """All ring vertices stacked into one ``(N, 3)`` array."""
        return np.concatenate([ring.vertices for ring in self.rings])

    def locate(self, points: np.ndarray) -> np.ndarray:
        """Classify points against the polygon (shell minus holes).

        Points on any ring are ``BOUNDARY``; the polygon is closed.
        """
        result = self.shell.locate(points)
        for hole in self.holes:
            candidates = np.nonzero(result != Location.OUTSIDE)[0]
            if not len(candidates):
                break
            in_hole = hole.locate(np.atleast_2d(points)[candidates])
            result[candidates[in_hole == Location.INSIDE]] = Location.OUTSIDE
            result[candidates[in_hole == Location.BOUNDARY]] = Location.BOUNDARY
        return result


def ring_vertices(
    coords: RingCoords | Sequence[tuple[float, float]],
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Unit vectors of a closed ring's distinct vertices (closing repeat dropped)."""
    return to_unit_vectors(list(coords[:-1]), pole_snap_degrees=config.pole_snap_degrees)


def classify_ring(
    coords: RingCoords,
    mode: WindingMode = WindingMode.DEFAULT,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> RingSize:
    """Classify a closed ring as small, big or ambiguous.

    Under ``STRICT`` the left-hand region decides; under ``DEFAULT`` a
    ring is small unless it splits the sphere evenly.
    """
    return _size_class(ring_area(ring_vertices(coords, config=config)), mode, config=config)


def _size_class(area: float, mode: WindingMode, *, config: EngineConfig) -> RingSize:
    if mode is WindingMode.STRICT:
        return RingSize.BIG if area > HEMISPHERE_AREA else RingSize.SMALL
    if abs(area - HEMISPHERE_AREA) <= config.area_tolerance:
        return RingSize.AMBIGUOUS
    return RingSize.SMALL


def orient_ring(
    coords: RingCoords,
    mode: WindingMode,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
    path: str = "",
) -> PreparedRing:
    """Prepare one ring with its interior on the left.

    Raises:
        AmbiguousWindingError: If a ``DEFAULT`` ring splits the sphere evenly.
    """
    vertices = ring_vertices(coords, config=config)
    area = ring_area(vertices)
    if _size_class(area, mode, config=config) is RingSize.AMBIGUOUS:
        msg = f"Ring splits the sphere into two equal halves (area={area:.12g} sr)"
        raise AmbiguousWindingError(msg, path=path)
    if mode is WindingMode.DEFAULT and area > HEMISPHERE_AREA:
        vertices = vertices[::-1].copy()
        area = ring_area(vertices)
    return PreparedRing(
        vertices,
        epsilon=config.epsilon,
        max_attempts=config.max_reference_attempts,
        area=area,
    )


def resolve_interior(polygon: Polygon, *, config: EngineConfig = DEFAULT_CONFIG, path: str = "") -> InteriorSpec:
    """Resolve which side of each ring of *polygon* is inside.

    Holes are always oriented as small rings: their interior is the
    region they cut out of the shell.

    Raises:
        AmbiguousWindingError: If a ring has no smaller side under ``DEFAULT``.
    """
    shell = orient_ring(polygon.shell, polygon.winding, config=config, path=f"{path}[0]" if path else "")
    holes = tuple(
        orient_ring(ring, WindingMode.DEFAULT, config=config, path=f"{path}[{k}]" if path else "")
        for k, ring in enumerate(polygon.holes, start=1)
    )
    return InteriorSpec(
        shell=shell,
        holes=holes,
        winding=polygon.winding,
        is_big=shell.is_big,
        area=shell.area,
    )
