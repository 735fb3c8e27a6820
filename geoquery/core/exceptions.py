"""Unified engine exception taxonomy.

Provides a shared base exception hierarchy for the validator, the
relate engine, the covering index and query evaluation. Every domain
exception inherits from ``GeoQueryError`` and carries structured context
fields that enable consistent caller-side handling and diagnostics.

Taxonomy categories
-------------------
- ``ValidationError``   — input geometry/contract violations.
- ``PermanentError``    — unrecoverable evaluation failures (query aborted).
- ``ContractError``     — unvalidated data reaching an internal layer.

Validation failures are deterministic functions of the input: retrying
without changing the input always reproduces the same error, so no
exception in this module is retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for the caller's error surface and logging.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from geoquery.models.contracts import ErrorPayload


class GeometryErrorKind(enum.StrEnum):
    """Enumerated validation error kinds surfaced to callers."""

    OPEN_RING = "OpenRing"
    DEGENERATE_RING = "DegenerateRing"
    SELF_INTERSECTING_RING = "SelfIntersectingRing"
    UNSUPPORTED_HOLE_ON_BIG_POLYGON = "UnsupportedHoleOnBigPolygon"
    UNRECOGNIZED_CRS = "UnrecognizedCRS"
    AMBIGUOUS_WINDING = "AmbiguousWinding"
    INVALID_VERTEX_COUNT = "InvalidVertexCount"
    INVALID_COORDINATE = "InvalidCoordinate"
    INVALID_GEOMETRY = "InvalidGeometry"
    INVALID_HOLE = "InvalidHole"


class GeoQueryError(Exception):
    """Base exception for all engine-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Engine stage where the error occurred
            (e.g. ``"parse"``, ``"relate"``, ``"query"``).
        code: Machine-readable error code (e.g. ``"OPEN_RING"``).
        path: Location of the offending element inside the geometry
            (e.g. ``"coordinates[0]"``), empty when not applicable.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        path: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.path = path
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        return "permanent"

    @property
    def kind(self) -> str:
        """Return the enumerated error kind, or ``""`` for non-geometry errors."""
        return ""

    def to_error_dict(self) -> ErrorPayload:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "kind": self.kind,
            "stage": self.stage,
            "message": self.message,
            "path": self.path,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(GeoQueryError):
    """Input or domain-model validation failure."""


class PermanentError(GeoQueryError):
    """Unrecoverable evaluation failure."""


class ContractError(GeoQueryError):
    """Unvalidated or foreign data reached an internal layer."""

    default_stage = "engine"
    default_code = "CONTRACT_VIOLATION"


# ---------------------------------------------------------------------------
# Geometry validation errors (one per kind)
# ---------------------------------------------------------------------------


class GeometryValidationError(ValidationError):
    """Raised when a geometry fails structural or semantic validation."""

    default_stage = "parse"
    default_code = "GEOMETRY_INVALID"
    error_kind: GeometryErrorKind = GeometryErrorKind.INVALID_GEOMETRY

    @property
    def kind(self) -> str:
        return self.error_kind.value


class InvalidGeometryError(GeometryValidationError):
    """Unknown type, malformed nesting or empty member list."""

    default_code = "GEOMETRY_MALFORMED"
    error_kind = GeometryErrorKind.INVALID_GEOMETRY


class InvalidCoordinateError(GeometryValidationError):
    """Longitude or latitude outside WGS 84 bounds, or not finite."""

    default_code = "COORDINATE_INVALID"
    error_kind = GeometryErrorKind.INVALID_COORDINATE


class InvalidVertexCountError(GeometryValidationError):
    """Fewer positions than the geometry kind requires."""

    default_code = "VERTEX_COUNT_INVALID"
    error_kind = GeometryErrorKind.INVALID_VERTEX_COUNT


class OpenRingError(GeometryValidationError):
    """Ring whose first and last positions differ."""

    default_code = "RING_OPEN"
    error_kind = GeometryErrorKind.OPEN_RING


class DegenerateRingError(GeometryValidationError):
    """Duplicate non-adjacent vertex, antipodal edge or zero-width spike."""

    default_code = "RING_DEGENERATE"
    error_kind = GeometryErrorKind.DEGENERATE_RING


class SelfIntersectingRingError(GeometryValidationError):
    """Edges of a ring (or rings of a polygon) cross or overlap."""

    default_code = "RING_SELF_INTERSECTING"
    error_kind = GeometryErrorKind.SELF_INTERSECTING_RING


class InvalidHoleError(GeometryValidationError):
    """Hole outside its shell, or nested inside another hole."""

    default_code = "HOLE_INVALID"
    error_kind = GeometryErrorKind.INVALID_HOLE


class UnsupportedHoleOnBigPolygonError(GeometryValidationError):
    """Polygon with holes whose shell is a big polygon."""

    default_code = "BIG_POLYGON_HOLE_UNSUPPORTED"
    error_kind = GeometryErrorKind.UNSUPPORTED_HOLE_ON_BIG_POLYGON


class UnrecognizedCRSError(GeometryValidationError):
    """``crs`` present with a name other than a recognised identifier."""

    default_code = "CRS_UNRECOGNIZED"
    error_kind = GeometryErrorKind.UNRECOGNIZED_CRS


class AmbiguousWindingError(GeometryValidationError):
    """Default-mode ring that splits the sphere into two equal halves."""

    default_code = "WINDING_AMBIGUOUS"
    error_kind = GeometryErrorKind.AMBIGUOUS_WINDING


# ---------------------------------------------------------------------------
# Evaluation errors
# ---------------------------------------------------------------------------


class QueryExecutionError(PermanentError):
    """A predicate evaluation was aborted.

    Wraps the underlying cause (usually a ``GeometryValidationError`` on
    the query geometry) so the caller can report its kind.
    """

    default_stage = "query"
    default_code = "QUERY_FAILED"

    def __init__(self, message: str = "", *, cause: GeoQueryError | None = None, **kwargs: str) -> None:
        self.cause = cause
        if cause is not None:
            kwargs.setdefault("path", cause.path)
        super().__init__(message, **kwargs)

    @property
    def kind(self) -> str:
        return self.cause.kind if self.cause is not None else ""


class ReferencePointError(PermanentError):
    """No usable reference point could be found for a ring.

    Only reachable for rings that defeat every deterministic perturbation,
    which valid rings never do.
    """

    default_stage = "relate"
    default_code = "REFERENCE_POINT_EXHAUSTED"
