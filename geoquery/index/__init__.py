"""Spatial covering index.

- **_cells**: ``CellId``, the six-face quadtree cell hierarchy
- **_coverer**: ``cover``, bounded-size cell coverings of geometries
- **_store**: ``CoveringIndex``, copy-on-write document → cells index

The index is a filter: ``candidates(q)`` always includes every document
whose geometry is related to ``q``, and may include others.
"""

from __future__ import annotations

from geoquery.index._cells import FACE_COUNT, MAX_LEVEL, CellId, xyz_to_face_uv
from geoquery.index._coverer import cover
from geoquery.index._store import CoveringIndex, DocumentId

__all__ = [
    "FACE_COUNT",
    "MAX_LEVEL",
    "CellId",
    "CoveringIndex",
    "DocumentId",
    "cover",
    "xyz_to_face_uv",
]
