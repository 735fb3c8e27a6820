"""In-memory covering index: document id → covering cells.

Readers never lock.  All state lives in an immutable ``_Snapshot``;
every mutation builds a new snapshot under a lock and swaps the
reference, so a lookup sees either the complete pre-mutation or the
complete post-mutation index, never a partial update.

Two cells overlap iff one contains the other.  A lookup therefore
checks, for each query cell, its ancestors (dict probes) and its
descendants (one contiguous id range located with ``bisect``).
"""

from __future__ import annotations

import bisect
import logging
import threading
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.index._cells import CellId
from geoquery.index._coverer import cover
from geoquery.models.geometry import Geometry
from geoquery.relate import PreparedGeometry

logger = logging.getLogger("geoquery.index")

DocumentId = Hashable


@dataclass(frozen=True, slots=True)
class _Snapshot:
    cell_ids: tuple[int, ...] = ()
    cell_docs: Mapping[int, frozenset[DocumentId]] = field(default_factory=lambda: MappingProxyType({}))
    doc_cells: Mapping[DocumentId, frozenset[CellId]] = field(default_factory=lambda: MappingProxyType({}))


class CoveringIndex:
    """Copy-on-write cell index over document geometries.

    Args:
        config: Engine configuration; its covering budget and maximum
            cell level apply to both stored and query coverings.
    """

    def __init__(self, *, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self._config = config
        self._lock = threading.Lock()
        self._snapshot = _Snapshot()

    def __len__(self) -> int:
        return len(self._snapshot.doc_cells)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._snapshot.doc_cells

    @property
    def config(self) -> EngineConfig:
        return self._config

    def cells_for(self, doc_id: DocumentId) -> frozenset[CellId]:
        """Covering stored for *doc_id* (empty if unknown)."""
        return self._snapshot.doc_cells.get(doc_id, frozenset())

    # -- mutation -----------------------------------------------------------

    def insert(self, doc_id: DocumentId, geometry: Geometry | PreparedGeometry) -> frozenset[CellId]:
        """Index *geometry* under *doc_id*, replacing any previous entry.

        Returns:
            The covering stored for the document.
        """
        cells = cover(geometry, config=self._config)
        with self._lock:
            old = self._snapshot
            doc_cells = dict(old.doc_cells)
            cell_docs = dict(old.cell_docs)
            _unlink(cell_docs, doc_id, doc_cells.pop(doc_id, frozenset()))
            for cell in cells:
                cell_docs[cell.id] = cell_docs.get(cell.id, frozenset()) | {doc_id}
            doc_cells[doc_id] = cells
            self._snapshot = _build_snapshot(cell_docs, doc_cells)
        logger.info(
            "Index insert | doc=%s | cells=%d | docs=%d",
            doc_id,
            len(cells),
            len(doc_cells),
        )
        return cells

    def remove(self, doc_id: DocumentId) -> bool:
        """Drop *doc_id* from the index; return whether it was present."""
        with self._lock:
            old = self._snapshot
            if doc_id not in old.doc_cells:
                return False
            doc_cells = dict(old.doc_cells)
            cell_docs = dict(old.cell_docs)
            _unlink(cell_docs, doc_id, doc_cells.pop(doc_id))
            self._snapshot = _build_snapshot(cell_docs, doc_cells)
        logger.info("Index remove | doc=%s | docs=%d", doc_id, len(doc_cells))
        return True

    # -- lookup -------------------------------------------------------------

    def candidates(self, query: Geometry | PreparedGeometry) -> set[DocumentId]:
        """Documents whose covering overlaps the covering of *query*.

        A superset of the documents related to *query*; every candidate
        must still be confirmed with ``relate``.
        """
        return self.candidates_for_cells(cover(query, config=self._config))

    def candidates_for_cells(self, cells: Iterable[CellId]) -> set[DocumentId]:
        snapshot = self._snapshot
        found: set[DocumentId] = set()
        for cell in cells:
            for level in range(cell.level + 1):
                docs = snapshot.cell_docs.get(cell.parent(level).id)
                if docs:
                    found |= docs
            lo = bisect.bisect_left(snapshot.cell_ids, cell.range_min)
            hi = bisect.bisect_right(snapshot.cell_ids, cell.range_max)
            for cell_id in snapshot.cell_ids[lo:hi]:
                found |= snapshot.cell_docs[cell_id]
        return found


def _unlink(cell_docs: dict[int, frozenset[DocumentId]], doc_id: DocumentId, cells: Iterable[CellId]) -> None:
    for cell in cells:
        remaining = cell_docs.get(cell.id, frozenset()) - {doc_id}
        if remaining:
            cell_docs[cell.id] = remaining
        else:
            cell_docs.pop(cell.id, None)


def _build_snapshot(
    cell_docs: dict[int, frozenset[DocumentId]],
    doc_cells: dict[DocumentId, frozenset[CellId]],
) -> _Snapshot:
    return _Snapshot(
        cell_ids=tuple(sorted(cell_docs)),
        cell_docs=MappingProxyType(cell_docs),
        doc_cells=MappingProxyType(doc_cells),
    )
