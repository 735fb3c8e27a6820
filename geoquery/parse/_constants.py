"""Shared constants for geometry validation."""

from __future__ import annotations

# Positions may carry altitude (and measure); only the first two are used
MIN_POSITION_LENGTH = 2

# Legacy flat ``[lon, lat]`` pairs are exactly two numbers
LEGACY_PAIR_LENGTH = 2

# Adjacent vertices whose vectors sum to less than this are antipodal,
# which leaves the great-circle edge between them undefined
ANTIPODAL_TOLERANCE = 1e-12
