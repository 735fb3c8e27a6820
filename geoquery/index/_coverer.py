"""Region coverer: approximate a geometry by a bounded set of cells.

Starting from the cube faces the geometry may touch, the coarsest
candidate cell is repeatedly replaced by those of its four children
that may touch the geometry, as long as the cell budget allows.  A cell
is kept whole once it lies entirely inside a polygon or reaches the
deepest allowed level.

"May touch" is decided on the cell's bounding cap, so the test is
conservative: a cell is only dropped when its cap provably misses the
geometry.  The union of the result therefore always covers the
geometry, which is what makes the index filter sound.
"""

from __future__ import annotations

import heapq
import logging

import numpy as np

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.index._cells import FACE_COUNT, CellId
from geoquery.models.geometry import Geometry
from geoquery.relate import PreparedGeometry, prepare
from geoquery.sphere import Cap, PreparedPath, arc_distances
from geoquery.winding import InteriorSpec, Location

logger = logging.getLogger("geoquery.index")


class _Region:
    """Cap predicates over a prepared geometry."""

    def __init__(self, prepared: PreparedGeometry) -> None:
        self.points = prepared.points
        self.paths: list[PreparedPath] = list(prepared.lines)
        self.polygons: tuple[InteriorSpec, ...] = prepared.polygons
        for spec in prepared.polygons:
            self.paths.extend(spec.rings)

    @staticmethod
    def _path_distance(center: np.ndarray, path: PreparedPath) -> float:
        return float(np.min(arc_distances(center, path.starts, path.ends, path.normals)))

    def may_intersect(self, cap: Cap) -> bool:
        if len(self.points) and cap.intersects_points(self.points):
            return True
        if any(self._path_distance(cap.center, path) <= cap.radius for path in self.paths):
            return True
        return any(spec.locate(cap.center)[0] != Location.OUTSIDE for spec in self.polygons)

    def contains(self, cap: Cap) -> bool:
        for spec in self.polygons:
            if spec.locate(cap.center)[0] != Location.INSIDE:
                continue
            if all(self._path_distance(cap.center, ring) > cap.radius for ring in spec.rings):
                return True
        return False


def cover(geometry: Geometry | PreparedGeometry, *, config: EngineConfig = DEFAULT_CONFIG) -> frozenset[CellId]:
    """Return a covering of *geometry* with at most ``max_covering_cells`` cells.

    Raises:
        ContractError: If *geometry* is not a validated geometry.
    """
    region = _Region(prepare(geometry, config=config))
    max_cells = config.max_covering_cells
    max_level = config.max_cell_level

    queue: list[tuple[int, int]] = []
    for face in range(FACE_COUNT):
        cell = CellId.face_cell(face)
        if region.may_intersect(cell.cap()):
            heapq.heappush(queue, (cell.level, cell.id))

    result: list[CellId] = []
    while queue:
        _, cell_id = heapq.heappop(queue)
        cell = CellId(cell_id)
        if cell.level >= max_level or region.contains(cell.cap()):
            result.append(cell)
            continue
        children = [child for child in cell.children() if region.may_intersect(child.cap())]
        if len(result) + len(queue) + len(children) <= max_cells:
            for child in children:
                heapq.heappush(queue, (child.level, child.id))
        else:
            result.append(cell)

    logger.debug(
        "Covering computed | cells=%d | max_cells=%d | deepest=%d",
        len(result),
        max_cells,
        max((c.level for c in result), default=-1),
    )
    return frozenset(result)

