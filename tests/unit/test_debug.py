"""Unit tests for debug output and logging setup."""

import json
import logging

import geopandas as gpd
from shapely.geometry import box

from ea_methods.common.log_utils import configure_logging
from ea_methods.config import DebugConfig
from ea_methods.debug import save_debug_gdf


def _fragments():
    return gpd.GeoDataFrame({"uid": [1]}, geometry=[box(0, 0, 10, 10)], crs="EPSG:32198")


def test_save_debug_gdf_writes_geopackage(tmp_path):
    config = DebugConfig(enabled=True, output_dir=tmp_path)

    path = save_debug_gdf(_fragments(), "intensity_fragments", run_id="run1", config=config)

    assert path.parent == tmp_path / "run1"
    assert path.name.endswith("_intensity_fragments.gpkg")
    assert len(gpd.read_file(path)) == 1


def test_save_debug_gdf_reads_environment(tmp_path, monkeypatch):
    """Without an explicit config, DEBUG_OUTPUT and DEBUG_OUTPUT_DIR decide."""
    monkeypatch.setenv("DEBUG_OUTPUT", "true")
    monkeypatch.setenv("DEBUG_OUTPUT_DIR", str(tmp_path))

    path = save_debug_gdf(_fragments(), "intensity_fragments")

    assert path is not None
    assert path.parent.parent == tmp_path


def test_save_debug_gdf_disabled(tmp_path):
    config = DebugConfig(enabled=False, output_dir=tmp_path)

    assert save_debug_gdf(_fragments(), "intensity_fragments", run_id="run1", config=config) is None
    assert not (tmp_path / "run1").exists()


def test_configure_logging_json(monkeypatch, capsys):
    """LOG_FORMAT=json emits one JSON object per record."""
    monkeypatch.setenv("LOG_FORMAT", "json")

    configure_logging(logging.INFO)
    logging.getLogger("ea_methods.test").info("hello")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert record["message"] == "hello"
    assert record["logger"] == "ea_methods.test"
    assert record["level"] == "INFO"
