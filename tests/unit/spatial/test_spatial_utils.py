"""Unit tests for spatial utilities."""

import geopandas as gpd
import pytest
from shapely.geometry import Point, box

from ea_methods.spatial.utils import apply_precision, area_km2, ensure_crs
from ea_methods.validation.errors import InvalidInputError


def test_area_km2():
    gdf = gpd.GeoDataFrame(
        geometry=[box(0, 0, 1000, 1000), box(0, 0, 500, 100)], crs="EPSG:32198"
    )

    assert area_km2(gdf).tolist() == pytest.approx([1.0, 0.05])


def test_apply_precision_snaps_coordinates():
    gdf = gpd.GeoDataFrame(geometry=[Point(1.23456, 2.34567)], crs="EPSG:32198")

    result = apply_precision(gdf, grid_size=0.01)

    assert result.geometry.iloc[0].x == pytest.approx(1.23)
    assert gdf.geometry.iloc[0].x == 1.23456


def test_ensure_crs_reprojects():
    gdf = gpd.GeoDataFrame(geometry=[Point(-68.5, 48.5)], crs="EPSG:4326")

    result = ensure_crs(gdf, "EPSG:32198")

    assert result.crs.to_epsg() == 32198
    assert abs(result.geometry.iloc[0].x) > 1000


def test_ensure_crs_keeps_matching_frame():
    gdf = gpd.GeoDataFrame(geometry=[Point(0, 0)], crs="EPSG:32198")

    assert ensure_crs(gdf, "EPSG:32198") is gdf


def test_ensure_crs_requires_crs():
    gdf = gpd.GeoDataFrame(geometry=[Point(0, 0)])

    with pytest.raises(InvalidInputError, match="without a CRS"):
        ensure_crs(gdf, "EPSG:32198")
