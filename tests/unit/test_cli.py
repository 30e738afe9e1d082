"""Unit tests for the ea-methods command-line interface."""

import geopandas as gpd
import pandas as pd
import pytest
import rasterio
from shapely.geometry import Point, box
from typer.testing import CliRunner

from ea_methods.cli import app

CRS = "EPSG:32198"

runner = CliRunner()


@pytest.fixture
def grid_file(tmp_path):
    cells = [
        box(x * 1000, y * 1000, (x + 1) * 1000, (y + 1) * 1000) for y in range(4) for x in range(4)
    ]
    path = tmp_path / "grid.gpkg"
    gpd.GeoDataFrame({"uid": range(16)}, geometry=cells, crs=CRS).to_file(path, driver="GPKG")
    return path


@pytest.fixture
def sets_file(tmp_path):
    """Two set positions, to be buffered on the command line."""
    path = tmp_path / "sets.gpkg"
    gpd.GeoDataFrame(
        {"biomass": [100.0, 300.0]},
        geometry=[Point(2000, 2000), Point(500, 3500)],
        crs=CRS,
    ).to_file(path, driver="GPKG")
    return path


class TestIntensityCommand:
    def test_biomass_with_buffered_sets(self, grid_file, sets_file, tmp_path):
        output = tmp_path / "out" / "intensity.csv"

        result = runner.invoke(
            app,
            [
                "intensity",
                str(sets_file),
                str(grid_file),
                "--metric",
                "3",
                "--buffer",
                "400",
                "--output",
                str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        table = pd.read_csv(output)
        assert list(table.columns) == ["uid", "FishBiomassKg"]
        assert table["FishBiomassKg"].sum() == pytest.approx(400.0)
        assert "Wrote" in result.stdout

    def test_fill_missing(self, grid_file, sets_file, tmp_path):
        output = tmp_path / "intensity.csv"

        result = runner.invoke(
            app,
            [
                "intensity",
                str(sets_file),
                str(grid_file),
                "--buffer",
                "400",
                "--fill-missing",
                "-o",
                str(output),
            ],
        )

        assert result.exit_code == 0, result.output
        table = pd.read_csv(output)
        assert len(table) == 16
        assert table["FishEffortDens"].sum() == 5

    def test_unknown_metric_exits_with_error(self, grid_file, sets_file, tmp_path):
        result = runner.invoke(
            app,
            [
                "intensity",
                str(sets_file),
                str(grid_file),
                "--metric",
                "7",
                "--buffer",
                "400",
                "-o",
                str(tmp_path / "intensity.csv"),
            ],
        )

        assert result.exit_code == 1
        assert not (tmp_path / "intensity.csv").exists()

    def test_non_positive_buffer_exits_with_error(self, grid_file, sets_file, tmp_path):
        output = tmp_path / "intensity.csv"

        result = runner.invoke(
            app, ["intensity", str(sets_file), str(grid_file), "--buffer", "0", "-o", str(output)]
        )

        assert result.exit_code == 1
        assert not output.exists()

    def test_missing_input_file(self, grid_file, tmp_path):
        result = runner.invoke(app, ["intensity", str(tmp_path / "nope.gpkg"), str(grid_file)])

        assert result.exit_code != 0


def test_review_taxa_command(tmp_path):
    reference_dir = tmp_path / "reference"
    reference_dir.mkdir()
    (reference_dir / "clean.csv").write_text("remove\nspp\\.\n")
    (reference_dir / "remove.csv").write_text("remove\nActinopterygii\n")
    (reference_dir / "combine.csv").write_text("to,from\nSebastes,Sebastes mentella\n")

    species = tmp_path / "species.csv"
    pd.DataFrame(
        {"species": ["Triglops spp.", "Actinopterygii", "sebastes mentella"], "count": [1, 2, 3]}
    ).to_csv(species, index=False)
    output = tmp_path / "reviewed.csv"

    result = runner.invoke(
        app,
        [
            "review-taxa",
            str(species),
            "--field",
            "species",
            "--reference-dir",
            str(reference_dir),
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    assert pd.read_csv(output)["species"].tolist() == ["Triglops", "Sebastes"]


def test_smooth_command(tmp_path):
    points = tmp_path / "points.gpkg"
    gpd.GeoDataFrame(
        {"presence": [1.0, 0.0]}, geometry=[Point(5000, 5000), Point(2000, 8000)], crs=CRS
    ).to_file(points, driver="GPKG")
    area = tmp_path / "area.gpkg"
    gpd.GeoDataFrame(geometry=[box(0, 0, 10000, 10000)], crs=CRS).to_file(area, driver="GPKG")
    output = tmp_path / "surface.tif"

    result = runner.invoke(
        app,
        [
            "smooth",
            str(points),
            str(area),
            "--field",
            "presence",
            "--bandwidth",
            "2000",
            "--resolution",
            "1000",
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    with rasterio.open(output) as src:
        assert (src.height, src.width) == (12, 12)
        assert src.crs.to_epsg() == 32198


def test_smooth_without_points_crs_exits_with_error(tmp_path):
    points = tmp_path / "points.gpkg"
    gpd.GeoDataFrame({"presence": [1.0]}, geometry=[Point(5000, 5000)]).to_file(
        points, driver="GPKG"
    )
    area = tmp_path / "area.gpkg"
    gpd.GeoDataFrame(geometry=[box(0, 0, 10000, 10000)], crs=CRS).to_file(area, driver="GPKG")
    output = tmp_path / "surface.tif"

    result = runner.invoke(
        app,
        [
            "smooth",
            str(points),
            str(area),
            "--field",
            "presence",
            "--bandwidth",
            "2000",
            "--resolution",
            "1000",
            "--output",
            str(output),
        ],
    )

    assert result.exit_code == 1
    assert not output.exists()
