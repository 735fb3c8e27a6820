"""``$geoWithin`` / ``$geoIntersects`` evaluation.

Ties the validator, the covering index and the relate engine together
in the filter-then-confirm shape a document store uses:

1. the query geometry is validated once (any failure aborts the query);
2. the covering index narrows the collection to candidate documents;
3. each candidate is confirmed with ``relate``.

Query-time failures are never treated as "no match": they surface as
``QueryExecutionError`` wrapping the underlying cause.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from geoquery.core.config import DEFAULT_CONFIG, EngineConfig
from geoquery.core.exceptions import GeometryValidationError, QueryExecutionError, ReferencePointError
from geoquery.index import CoveringIndex, DocumentId
from geoquery.models.geometry import Geometry, is_areal
from geoquery.parse import validate
from geoquery.relate import PreparedGeometry, Relation, prepare, relate

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger("geoquery.query")


class GeoPredicate(enum.StrEnum):
    """Geospatial query operators."""

    WITHIN = "$geoWithin"
    INTERSECTS = "$geoIntersects"


# ---------------------------------------------------------------------------
# Single-pair predicates
# ---------------------------------------------------------------------------


def _require_areal(query: PreparedGeometry) -> None:
    if not query.is_areal:
        msg = f"$geoWithin needs an areal query geometry, got {query.geometry.type}"
        raise QueryExecutionError(msg)


def geo_within(
    query: Geometry | PreparedGeometry,
    target: Geometry | PreparedGeometry,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    """Whether *target* lies entirely inside *query*.

    Raises:
        QueryExecutionError: If *query* has no interior.
    """
    prepared = prepare(query, config=config)
    _require_areal(prepared)
    return relate(prepared, target, config=config) is Relation.WITHIN


def geo_intersects(
    query: Geometry | PreparedGeometry,
    target: Geometry | PreparedGeometry,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> bool:
    """Whether *target* shares at least one point with *query*."""
    return relate(query, target, config=config) is not Relation.DISJOINT


# ---------------------------------------------------------------------------
# Query objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GeoQuery:
    """A validated geospatial predicate.

    Attributes:
        predicate: ``$geoWithin`` or ``$geoIntersects``.
        geometry: The validated query geometry.
    """

    predicate: GeoPredicate
    geometry: Geometry

    @classmethod
    def from_wire(
        cls,
        predicate: GeoPredicate | str,
        raw: object,
        *,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> GeoQuery:
        """Build a query from a predicate name and a wire geometry.

        Raises:
            QueryExecutionError: If the predicate is unknown, the geometry
                fails validation (including an unrecognised CRS), or a
                ``$geoWithin`` geometry has no interior.
        """
        try:
            op = GeoPredicate(predicate)
        except ValueError as exc:
            msg = f"Unknown geospatial predicate {predicate!r}"
            raise QueryExecutionError(msg) from exc

        try:
            geometry = validate(raw, config=config)
        except GeometryValidationError as exc:
            logger.warning(
                "Query aborted | predicate=%s | kind=%s | path=%s | error=%s",
                op,
                exc.kind,
                exc.path,
                exc.message,
            )
            msg = f"{op} query geometry is invalid: {exc.message}"
            raise QueryExecutionError(msg, cause=exc) from exc

        if op is GeoPredicate.WITHIN and not is_areal(geometry):
            msg = f"$geoWithin needs an areal query geometry, got {geometry.type}"
            raise QueryExecutionError(msg)
        return cls(predicate=op, geometry=geometry)

    def matches(self, target: Geometry | PreparedGeometry, *, config: EngineConfig = DEFAULT_CONFIG) -> bool:
        """Evaluate the predicate against one target geometry."""
        return _evaluate(self.predicate, prepare(self.geometry, config=config), target, config)


def _evaluate(
    predicate: GeoPredicate,
    query: PreparedGeometry,
    target: Geometry | PreparedGeometry,
    config: EngineConfig,
) -> bool:
    relation = relate(query, target, config=config)
    if predicate is GeoPredicate.WITHIN:
        return relation is Relation.WITHIN
    return relation is not Relation.DISJOINT


# ---------------------------------------------------------------------------
# Collection stand-in
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _StoredDocument:
    """A prepared document geometry and its insertion sequence number."""

    seq: int
    prepared: PreparedGeometry


class GeoCollection:
    """In-memory geometry collection with a covering index.

    Documents are bare geometries keyed by id.  Geometries are validated
    on insert; an invalid geometry is never stored.  Replacing a document
    keeps its original insertion position.
    """

    def __init__(self, *, config: EngineConfig = DEFAULT_CONFIG) -> None:
        self._config = config
        self._index = CoveringIndex(config=config)
        self._lock = threading.Lock()
        self._docs: dict[DocumentId, _StoredDocument] = {}
        self._next_seq = 0

    def __len__(self) -> int:
        return len(self._docs)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._docs

    def __iter__(self) -> Iterator[DocumentId]:
        return iter(list(self._docs))

    @property
    def index(self) -> CoveringIndex:
        return self._index

    def get(self, doc_id: DocumentId) -> Geometry | None:
        stored = self._docs.get(doc_id)
        return stored.prepared.geometry if stored is not None else None

    def insert(self, doc_id: DocumentId, raw: object) -> Geometry:
        """Validate and index a document geometry.

        Raises:
            GeometryValidationError: If the geometry is invalid.
        """
        geometry = validate(raw, config=self._config)
        prepared = prepare(geometry, config=self._config)
        with self._lock:
            self._index.insert(doc_id, prepared)
            docs = dict(self._docs)
            previous = docs.get(doc_id)
            if previous is None:
                seq = self._next_seq
                self._next_seq += 1
            else:
                seq = previous.seq
            docs[doc_id] = _StoredDocument(seq=seq, prepared=prepared)
            self._docs = docs
        return geometry

    def remove(self, doc_id: DocumentId) -> bool:
        with self._lock:
            if doc_id not in self._docs:
                return False
            self._index.remove(doc_id)
            docs = dict(self._docs)
            del docs[doc_id]
            self._docs = docs
        return True

    def find(self, query: GeoQuery, *, limit: int | None = None) -> list[DocumentId]:
        """Ids of matching documents, in insertion order.

        Only index candidates are visited.

        Args:
            query: The validated query.
            limit: Stop confirming candidates after this many matches.

        Raises:
            QueryExecutionError: If evaluation fails for any candidate.
        """
        docs = self._docs
        prepared_query = prepare(query.geometry, config=self._config)
        candidates = self._index.candidates(prepared_query)
        # Ids indexed after the snapshot was taken are skipped.
        ordered = sorted(
            ((doc_id, docs[doc_id]) for doc_id in candidates if doc_id in docs),
            key=lambda item: item[1].seq,
        )
        matched: list[DocumentId] = []
        try:
            for doc_id, stored in ordered:
                if limit is not None and len(matched) >= limit:
                    break
                if _evaluate(query.predicate, prepared_query, stored.prepared, self._config):
                    matched.append(doc_id)
        except ReferencePointError as exc:
            logger.warning(
                "Query aborted | predicate=%s | error=%s",
                query.predicate,
                exc.message,
            )
            msg = f"{query.predicate} evaluation failed: {exc.message}"
            raise QueryExecutionError(msg, cause=exc) from exc

        logger.info(
            "Query evaluated | predicate=%s | docs=%d | candidates=%d | matched=%d",
            query.predicate,
            len(docs),
            len(candidates),
            len(matched),
        )
        return matched

    def count(self, query: GeoQuery) -> int:
        return len(self.find(query))
