"""Engine configuration loaded from environment variables.

All configuration values have sensible defaults; environment variables
override them for deployments that need looser or tighter numerics or a
different covering budget.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range.  This prevents latent runtime
    errors by catching bad configuration at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from geoquery.core.exceptions import GeoQueryError

MAX_CELL_LEVEL_LIMIT = 30
MIN_COVERING_CELLS = 6


class ConfigValidationError(GeoQueryError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Immutable engine configuration.

    Built once by the caller and threaded explicitly through validation,
    relate and covering calls.

    Attributes:
        epsilon: Base tolerance (sine of an angle) for orientation and
            point-on-edge tests.  Per-edge tolerances add a term scaled
            to the conditioning of the edge normal.
        area_tolerance: Tolerance (steradians) for the hemisphere split
            test in the winding resolver.
        pole_snap_degrees: Points within this many degrees of a pole are
            treated as exactly at the pole.
        max_covering_cells: Per-geometry cell budget for coverings.
        max_cell_level: Deepest quadtree level a covering may use.
        max_reference_attempts: Reference-point perturbations tried per
            ring before point classification gives up.
    """

    epsilon: float = 1e-12
    area_tolerance: float = 1e-9
    pole_snap_degrees: float = 1e-9
    max_covering_cells: int = 20
    max_cell_level: int = 18
    max_reference_attempts: int = 32

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``GEOQUERY_EPSILON=abc``).
        """
        config = cls(
            epsilon=float(os.getenv("GEOQUERY_EPSILON", "1e-12")),
            area_tolerance=float(os.getenv("GEOQUERY_AREA_TOLERANCE", "1e-9")),
            pole_snap_degrees=float(os.getenv("GEOQUERY_POLE_SNAP_DEGREES", "1e-9")),
            max_covering_cells=int(os.getenv("GEOQUERY_MAX_COVERING_CELLS", "20")),
            max_cell_level=int(os.getenv("GEOQUERY_MAX_CELL_LEVEL", "18")),
            max_reference_attempts=int(os.getenv("GEOQUERY_MAX_REFERENCE_ATTEMPTS", "32")),
        )
        _validate(config)
        return config


DEFAULT_CONFIG = EngineConfig()


def _validate(config: EngineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not 0.0 < config.epsilon <= 1e-6:
        raise ConfigValidationError(
            "GEOQUERY_EPSILON",
            config.epsilon,
            "must be in (0, 1e-6]",
        )

    if not 0.0 < config.area_tolerance <= 1e-3:
        raise ConfigValidationError(
            "GEOQUERY_AREA_TOLERANCE",
            config.area_tolerance,
            "must be in (0, 1e-3] (steradians)",
        )

    if not 0.0 <= config.pole_snap_degrees <= 1e-3:
        raise ConfigValidationError(
            "GEOQUERY_POLE_SNAP_DEGREES",
            config.pole_snap_degrees,
            "must be between 0 and 1e-3 (degrees)",
        )

    if config.max_covering_cells < MIN_COVERING_CELLS:
        raise ConfigValidationError(
            "GEOQUERY_MAX_COVERING_CELLS",
            config.max_covering_cells,
            f"must be >= {MIN_COVERING_CELLS} (one per cube face)",
        )

    if not 0 <= config.max_cell_level <= MAX_CELL_LEVEL_LIMIT:
        raise ConfigValidationError(
            "GEOQUERY_MAX_CELL_LEVEL",
            config.max_cell_level,
            f"must be between 0 and {MAX_CELL_LEVEL_LIMIT}",
        )

    if config.max_reference_attempts < 1:
        raise ConfigValidationError(
            "GEOQUERY_MAX_REFERENCE_ATTEMPTS",
            config.max_reference_attempts,
            "must be >= 1",
        )
