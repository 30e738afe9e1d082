"""Unit tests for configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError


def test_default_config_values():
    """Test default configuration values."""
    from ea_methods.config import CONSTANTS, IntensityConfig, SmoothingConfig

    config = IntensityConfig()
    assert config.default_cell_id_field == "uid"
    assert config.default_magnitude_field == "biomass"
    assert config.precision_grid_size is None
    assert config.parallel is False

    assert SmoothingConfig().clamp_max == 1.0
    assert CONSTANTS.SQUARE_METRES_PER_SQUARE_KILOMETRE == 1_000_000.0
    assert CONSTANTS.AMBIGUOUS_APHIA_ID == -999


def test_intensity_config_from_environment(monkeypatch):
    """FI_ variables override defaults."""
    from ea_methods.config import IntensityConfig

    monkeypatch.setenv("FI_DEFAULT_CELL_ID_FIELD", "cell")
    monkeypatch.setenv("FI_AREA_TOLERANCE", "1e-4")
    monkeypatch.setenv("FI_PARALLEL", "true")

    config = IntensityConfig()

    assert config.default_cell_id_field == "cell"
    assert config.area_tolerance == 1e-4
    assert config.parallel is True


def test_smoothing_config_from_environment(monkeypatch):
    from ea_methods.config import SmoothingConfig

    monkeypatch.setenv("SMOOTH_CLAMP_MAX", "0.5")
    monkeypatch.setenv("SMOOTH_OUT_CRS", "EPSG:3979")

    config = SmoothingConfig()

    assert config.clamp_max == 0.5
    assert config.out_crs == "EPSG:3979"


def test_precision_grid_size_must_be_positive():
    from ea_methods.config import IntensityConfig

    with pytest.raises(ValidationError):
        IntensityConfig(precision_grid_size=0)


def test_taxonomy_reference_dir_must_exist(tmp_path):
    from ea_methods.config import TaxonomyConfig

    assert TaxonomyConfig(reference_dir=tmp_path).reference_dir == tmp_path

    with pytest.raises(ValidationError, match="does not exist"):
        TaxonomyConfig(reference_dir=tmp_path / "missing")


def test_debug_config_from_env(monkeypatch, tmp_path):
    from ea_methods.config import DebugConfig

    monkeypatch.setenv("DEBUG_OUTPUT", "TRUE")
    monkeypatch.setenv("DEBUG_OUTPUT_DIR", str(tmp_path))

    config = DebugConfig.from_env()

    assert config.enabled is True
    assert config.output_dir == Path(tmp_path)


def test_debug_config_disabled_by_default(monkeypatch):
    from ea_methods.config import DebugConfig

    monkeypatch.delenv("DEBUG_OUTPUT", raising=False)

    assert DebugConfig.from_env().enabled is False
