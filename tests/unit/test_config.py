"""Tests for engine configuration.

Covers:
- Default values
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import dataclasses
import os
from unittest.mock import patch

import pytest

from geoquery.core.config import DEFAULT_CONFIG, ConfigValidationError, EngineConfig


class TestEngineConfigDefaults:
    """Verify default configuration values."""

    def test_default_tolerances(self) -> None:
        cfg = EngineConfig()
        assert cfg.epsilon == 1e-12
        assert cfg.area_tolerance == 1e-9
        assert cfg.pole_snap_degrees == 1e-9

    def test_default_covering_budget(self) -> None:
        cfg = EngineConfig()
        assert cfg.max_covering_cells == 20
        assert cfg.max_cell_level == 18

    def test_default_reference_attempts(self) -> None:
        assert EngineConfig().max_reference_attempts == 32

    def test_default_config_constant_matches_defaults(self) -> None:
        assert DEFAULT_CONFIG == EngineConfig()

    def test_config_is_frozen(self) -> None:
        cfg = EngineConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.epsilon = 1e-9  # type: ignore[misc]


class TestEngineConfigFromEnv:
    """Verify loading configuration from environment variables."""

    def test_from_env_with_no_vars_uses_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = EngineConfig.from_env()
        assert cfg == EngineConfig()

    def test_from_env_reads_float_fields(self) -> None:
        env = {
            "GEOQUERY_EPSILON": "1e-10",
            "GEOQUERY_AREA_TOLERANCE": "1e-6",
            "GEOQUERY_POLE_SNAP_DEGREES": "0",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = EngineConfig.from_env()
        assert cfg.epsilon == 1e-10
        assert cfg.area_tolerance == 1e-6
        assert cfg.pole_snap_degrees == 0.0

    def test_from_env_reads_int_fields(self) -> None:
        env = {
            "GEOQUERY_MAX_COVERING_CELLS": "64",
            "GEOQUERY_MAX_CELL_LEVEL": "24",
            "GEOQUERY_MAX_REFERENCE_ATTEMPTS": "8",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = EngineConfig.from_env()
        assert cfg.max_covering_cells == 64
        assert cfg.max_cell_level == 24
        assert cfg.max_reference_attempts == 8


class TestConfigValidation:
    """Fail-fast range validation."""

    def test_zero_epsilon_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_EPSILON": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="GEOQUERY_EPSILON"),
        ):
            EngineConfig.from_env()

    def test_large_epsilon_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_EPSILON": "1e-3"}, clear=True),
            pytest.raises(ConfigValidationError, match="GEOQUERY_EPSILON"),
        ):
            EngineConfig.from_env()

    def test_area_tolerance_upper_bound(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_AREA_TOLERANCE": "0.01"}, clear=True),
            pytest.raises(ConfigValidationError, match="GEOQUERY_AREA_TOLERANCE"),
        ):
            EngineConfig.from_env()

    def test_negative_pole_snap_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_POLE_SNAP_DEGREES": "-1"}, clear=True),
            pytest.raises(ConfigValidationError, match="GEOQUERY_POLE_SNAP_DEGREES"),
        ):
            EngineConfig.from_env()

    def test_covering_budget_below_face_count_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_MAX_COVERING_CELLS": "5"}, clear=True),
            pytest.raises(ConfigValidationError, match="one per cube face"),
        ):
            EngineConfig.from_env()

    def test_covering_budget_boundary_accepted(self) -> None:
        with patch.dict(os.environ, {"GEOQUERY_MAX_COVERING_CELLS": "6"}, clear=True):
            cfg = EngineConfig.from_env()
        assert cfg.max_covering_cells == 6

    def test_cell_level_above_limit_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_MAX_CELL_LEVEL": "31"}, clear=True),
            pytest.raises(ConfigValidationError, match="GEOQUERY_MAX_CELL_LEVEL"),
        ):
            EngineConfig.from_env()

    def test_cell_level_zero_accepted(self) -> None:
        with patch.dict(os.environ, {"GEOQUERY_MAX_CELL_LEVEL": "0"}, clear=True):
            cfg = EngineConfig.from_env()
        assert cfg.max_cell_level == 0

    def test_zero_reference_attempts_rejected(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_MAX_REFERENCE_ATTEMPTS": "0"}, clear=True),
            pytest.raises(ConfigValidationError, match="must be >= 1"),
        ):
            EngineConfig.from_env()

    def test_non_numeric_env_raises_value_error(self) -> None:
        """Non-numeric string for a float field → ValueError."""
        with (
            patch.dict(os.environ, {"GEOQUERY_EPSILON": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            EngineConfig.from_env()

    def test_error_contains_key_and_value(self) -> None:
        with (
            patch.dict(os.environ, {"GEOQUERY_MAX_CELL_LEVEL": "99"}, clear=True),
            pytest.raises(ConfigValidationError) as exc_info,
        ):
            EngineConfig.from_env()
        assert exc_info.value.key == "GEOQUERY_MAX_CELL_LEVEL"
        assert exc_info.value.value == 99
        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"
