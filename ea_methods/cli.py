"""Command-line entry points for the assessment routines.

Usage:
    ea-methods intensity fishing_sets.gpkg grid.gpkg --metric 3 --output intensity.csv
    ea-methods intensity fishing_sets.csv grid.gpkg --buffer 500 --fill-missing
    ea-methods review-taxa species.csv --field species --step clean --step aphia
    ea-methods smooth observations.gpkg study_area.gpkg --field presence \\
        --bandwidth 10000 --resolution 1000 --output surface.tif
    ea-methods --help
"""

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd
import typer

from ea_methods.common.log_utils import configure_logging
from ea_methods.config import DEFAULT_SMOOTHING_CONFIG, DEFAULT_TAXONOMY_CONFIG
from ea_methods.intensity import fishing_intensity
from ea_methods.models.domain import TaxaReference
from ea_methods.smoothing import kernel_smoothing
from ea_methods.spatial import buffer_points, ensure_crs
from ea_methods.taxonomy import review_taxa
from ea_methods.validation.errors import EaMethodsError

logger = logging.getLogger(__name__)

app = typer.Typer(help="Ecosystem assessment methods: fishing intensity, taxa review, smoothing")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command()
def intensity(
    observations_file: Path = typer.Argument(
        ..., help="Fishing records (any file geopandas can read)", exists=True
    ),
    grid_file: Path = typer.Argument(..., help="Grid cells (polygons)", exists=True),
    metric: int = typer.Option(
        1,
        "--metric",
        "-m",
        help="1: effort count, 2: effort proportion, 3: biomass (kg), 4: relative biomass",
    ),
    cell_id: str = typer.Option("uid", "--cell-id", help="Grid column with cell identifiers"),
    magnitude: str = typer.Option(
        "biomass", "--magnitude", help="Observation column with biomass (metrics 3 and 4)"
    ),
    buffer: float | None = typer.Option(
        None, "--buffer", help="Buffer point records by this distance (CRS units) first"
    ),
    fill_missing: bool = typer.Option(
        False, "--fill-missing/--no-fill-missing", help="Report cells without fishing as 0"
    ),
    output: Path = typer.Option(Path("intensity.csv"), "--output", "-o", help="Output CSV"),
) -> None:
    """Evaluate fishing intensity over a grid and write it to CSV."""
    observations = gpd.read_file(observations_file)
    grid = gpd.read_file(grid_file)
    logger.info(f"Loaded {len(observations)} observations and {len(grid)} grid cells")

    try:
        if buffer is not None:
            observations = buffer_points(observations, buffer)
        result = fishing_intensity(
            observations,
            grid,
            metric=metric,
            cell_id=cell_id,
            magnitude=magnitude,
            fill_missing_with_zero=fill_missing,
        )
    except EaMethodsError as e:
        logger.error(f"Fishing intensity failed: {e}")
        raise typer.Exit(code=1) from e

    output.parent.mkdir(parents=True, exist_ok=True)
    result.to_csv(output, index=False)
    typer.echo(f"Wrote {len(result)} cells to {output}")


@app.command("review-taxa")
def review_taxa_command(
    input_file: Path = typer.Argument(..., help="CSV file with a species column", exists=True),
    field: str = typer.Option("species", "--field", "-f", help="Column with scientific names"),
    step: list[str] = typer.Option(
        ["clean", "remove", "combine"],
        "--step",
        "-s",
        help="Review step (repeatable): clean, remove, combine, aphia",
    ),
    reference_dir: Path | None = typer.Option(
        None,
        "--reference-dir",
        help="Directory with clean.csv, remove.csv, combine.csv, aphia.csv "
        "(default: TAXA_REFERENCE_DIR)",
        exists=True,
        file_okay=False,
    ),
    output: Path = typer.Option(Path("taxa_reviewed.csv"), "--output", "-o", help="Output CSV"),
) -> None:
    """Clean, remove, combine and/or identify the taxa of a species list."""
    df = pd.read_csv(input_file)
    reference_dir = reference_dir or DEFAULT_TAXONOMY_CONFIG.reference_dir

    try:
        reference = TaxaReference.from_csv_dir(reference_dir) if reference_dir else None
        reviewed = review_taxa(df, field, review=step, reference=reference)
    except EaMethodsError as e:
        logger.error(f"Taxa review failed: {e}")
        raise typer.Exit(code=1) from e

    output.parent.mkdir(parents=True, exist_ok=True)
    reviewed.to_csv(output, index=False)
    typer.echo(f"Wrote {len(reviewed)} taxa to {output}")


@app.command()
def smooth(
    points_file: Path = typer.Argument(..., help="Point observations", exists=True),
    study_area_file: Path = typer.Argument(..., help="Study area polygons", exists=True),
    field: str = typer.Option(..., "--field", "-f", help="Weight column in the points"),
    bandwidth: float = typer.Option(..., "--bandwidth", help="Kernel bandwidth (metres)"),
    resolution: float = typer.Option(..., "--resolution", help="Output resolution (metres)"),
    out_crs: str = typer.Option(
        DEFAULT_SMOOTHING_CONFIG.out_crs, "--crs", help="Equal-area CRS to smooth in"
    ),
    output: Path = typer.Option(Path("smoothed.tif"), "--output", "-o", help="Output GeoTIFF"),
) -> None:
    """Smooth point observations into a GeoTIFF surface over a study area."""
    points = gpd.read_file(points_file)
    study_area = gpd.read_file(study_area_file)

    try:
        points = ensure_crs(points, target_crs=out_crs)
        study_area = ensure_crs(study_area, target_crs=out_crs)
        surface = kernel_smoothing(points, field, bandwidth, resolution, study_area)
    except EaMethodsError as e:
        logger.error(f"Smoothing failed: {e}")
        raise typer.Exit(code=1) from e

    surface.to_geotiff(output)
    typer.echo(f"Wrote {surface.values.shape[1]}x{surface.values.shape[0]} raster to {output}")


if __name__ == "__main__":
    app()
