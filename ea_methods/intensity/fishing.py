"""Fishing intensity over a regular grid.

This module evaluates fishing intensity from fishing records (polygon
footprints, or buffered set positions) over a grid of cells. Each record is
split into fragments by the grid cells it overlaps; a record's area and
magnitude (catch/biomass) are attributed to cells in proportion to the
fragment areas, then reduced per cell into one of four metrics:

1. FishEffortDens: number of fragments in the cell
2. FishEffortDensProp: sum of the fragments' share of their record's area
3. FishBiomassKg: magnitude attributed to the cell (kg)
4. RelFishBiomassKg: attributed magnitude as a share of the total magnitude
   of all records

Areas are planar and converted from square metres to square kilometres; both
layers must therefore share a projected CRS in metres. Nothing is reprojected.
"""

import logging
from collections.abc import Callable

import geopandas as gpd
import numpy as np
import pandas as pd

from ea_methods.config import DEFAULT_INTENSITY_CONFIG, IntensityConfig
from ea_methods.debug import save_debug_gdf
from ea_methods.models.enums import IntensityMetric
from ea_methods.spatial.operations import parallel_intersection
from ea_methods.spatial.utils import area_km2
from ea_methods.validation.errors import InvalidInputError, ValidationError
from ea_methods.validation.geometry import POLYGON_TYPES, GeometryValidator

logger = logging.getLogger(__name__)

KeySelector = str | Callable[[pd.DataFrame], pd.Series]

# Fragment columns
OBS_INDEX = "ObsIndex"
AREA_TOT_KM2 = "AreaTotKM2"
AREA_KM2 = "AreaKM2"
PROP_AREA_TOT = "PropAreaTot"
MAGNITUDE_KG = "MagnitudeKg"
BIOMASS_TOT_KG = "BiomassTotKg"
PROP_BIOMASS_KG = "PropBiomassKg"
REL_PROP_BIOMASS_KG = "RelPropBiomassKg"

# Output name of the cell identifier when it comes from a callable selector
CALLABLE_CELL_ID_NAME = "cell_id"

_METRIC_SOURCE = {
    IntensityMetric.EFFORT_PROPORTION: PROP_AREA_TOT,
    IntensityMetric.BIOMASS: PROP_BIOMASS_KG,
    IntensityMetric.RELATIVE_BIOMASS: REL_PROP_BIOMASS_KG,
}

_validator = GeometryValidator()


def fishing_intensity(
    observations: gpd.GeoDataFrame,
    grid: gpd.GeoDataFrame,
    metric: IntensityMetric | int = IntensityMetric.EFFORT_COUNT,
    cell_id: KeySelector | None = None,
    magnitude: KeySelector | None = None,
    fill_missing_with_zero: bool = False,
    config: IntensityConfig = DEFAULT_INTENSITY_CONFIG,
) -> pd.DataFrame:
    """Evaluate fishing intensity over a grid.

    Args:
        observations: Fishing records with polygon footprints
        grid: Grid cells (polygons) with a unique identifier
        metric: Intensity metric code, one of 1, 2, 3, 4 (see IntensityMetric)
        cell_id: Grid column name, or callable returning the identifiers from the
            grid frame (default: config.default_cell_id_field, "uid")
        magnitude: Observation column name, or callable returning the magnitudes
            in kg; only used by metrics 3 and 4
            (default: config.default_magnitude_field, "biomass")
        fill_missing_with_zero: If True, return every grid cell and give cells
            without fragments a value of 0. If False, only cells with at least
            one fragment are returned.
        config: Intensity configuration

    Returns:
        DataFrame with two columns: the cell identifier (named after the cell_id
        column, or "cell_id" for a callable) and the metric column
        (FishEffortDens, FishEffortDensProp, FishBiomassKg or RelFishBiomassKg).
        Rows follow grid order when filled, ascending cell identifier otherwise.

    Raises:
        InvalidInputError: Unknown metric, missing or invalid magnitude, zero-area
            footprint, zero total magnitude for metric 4, missing or duplicate cell
            identifiers, CRS mismatch
        GeometryError: Null, non-polygonal or invalid geometries, or a failure of
            the intersection itself
    """
    metric = IntensityMetric.parse(metric)
    if cell_id is None:
        cell_id = config.default_cell_id_field
    if magnitude is None and metric.needs_magnitude:
        magnitude = config.default_magnitude_field

    logger.info(
        f"Evaluating {metric.column} for {len(observations)} observations "
        f"over {len(grid)} grid cells"
    )

    fragments = intersect_fragments(
        observations,
        grid,
        cell_id=cell_id,
        magnitude=magnitude if metric.needs_magnitude else None,
        require_positive_total=metric is IntensityMetric.RELATIVE_BIOMASS,
        config=config,
    )
    save_debug_gdf(fragments, f"intensity_fragments_{metric.column}")

    cell_column = _cell_id_name(cell_id)
    table = pd.DataFrame(fragments.drop(columns=fragments.geometry.name))
    grouped = table.groupby(cell_column, sort=True)

    if metric is IntensityMetric.EFFORT_COUNT:
        # Every fragment counts once, however little of its record it holds
        result = grouped.size()
    else:
        result = grouped[_METRIC_SOURCE[metric]].sum()
    result = result.rename(metric.column).reset_index()

    if fill_missing_with_zero:
        values = result.set_index(cell_column)[metric.column]
        result = pd.DataFrame({cell_column: _resolve_cell_ids(grid, cell_id).to_numpy()})
        result[metric.column] = result[cell_column].map(values).fillna(0)
        if metric is IntensityMetric.EFFORT_COUNT:
            result[metric.column] = result[metric.column].astype(int)

    logger.info(f"{metric.column} evaluated for {len(result)} grid cells")

    return result


def intersect_fragments(
    observations: gpd.GeoDataFrame,
    grid: gpd.GeoDataFrame,
    cell_id: KeySelector = "uid",
    magnitude: KeySelector | None = None,
    require_positive_total: bool = False,
    config: IntensityConfig = DEFAULT_INTENSITY_CONFIG,
) -> gpd.GeoDataFrame:
    """Split observation footprints by grid cells and derive per-fragment shares.

    Each fragment is the polygonal part of one observation lying in one cell.
    Fragments that only touch a cell (zero area) are dropped.

    Args:
        observations: Fishing records with polygon footprints
        grid: Grid cells (polygons)
        cell_id: Grid column name or callable selecting the cell identifiers
        magnitude: Observation column name or callable selecting magnitudes (kg);
            None skips the magnitude columns
        require_positive_total: Reject a zero total magnitude, which leaves the
            relative shares undefined
        config: Intensity configuration

    Returns:
        GeoDataFrame of fragments with columns:
        - <cell id>: identifier of the owning cell
        - ObsIndex: position of the parent observation in `observations`
        - AreaTotKM2: area of the parent footprint (km2)
        - AreaKM2: area of the fragment (km2)
        - PropAreaTot: AreaKM2 / AreaTotKM2
        - MagnitudeKg, BiomassTotKg, PropBiomassKg: only when magnitude is given
        - RelPropBiomassKg: only when magnitude is given and its total is positive
        - geometry: fragment geometry

    Raises:
        InvalidInputError: See fishing_intensity
        GeometryError: See fishing_intensity
    """
    # Degenerate footprints are also invalid geometries; report them by their area
    _check_footprint_areas(observations)
    _validator.check(observations, grid, "observations", "grid")

    cell_ids = _resolve_cell_ids(grid, cell_id)
    cells = gpd.GeoDataFrame(
        {"_cell": cell_ids.to_numpy()}, geometry=grid.geometry.to_numpy(), crs=grid.crs
    )

    footprints = gpd.GeoDataFrame(
        {OBS_INDEX: np.arange(len(observations))},
        geometry=observations.geometry.to_numpy(),
        crs=observations.crs,
    )
    footprints[AREA_TOT_KM2] = area_km2(footprints)

    if magnitude is not None:
        magnitudes = _resolve_magnitude(observations, magnitude)
        total = float(magnitudes.sum())
        if total <= 0 and require_positive_total:
            msg = "Total magnitude over all observations is zero; shares are undefined"
            raise InvalidInputError(msg, [ValidationError(message=msg, field="magnitude")])
        footprints[MAGNITUDE_KG] = magnitudes.to_numpy(dtype=float)
        # Includes observations that end up overlapping no cell
        footprints[BIOMASS_TOT_KG] = total

    fragments = parallel_intersection(
        footprints,
        cells,
        grid_size=config.precision_grid_size,
        parallel=config.parallel,
        threshold=config.parallel_threshold,
        max_workers=config.max_workers,
    )

    fragments[AREA_KM2] = area_km2(fragments).astype(float)
    fragments = fragments[fragments[AREA_KM2] > 0].copy()
    fragments[PROP_AREA_TOT] = fragments[AREA_KM2] / fragments[AREA_TOT_KM2]

    if magnitude is not None:
        fragments[PROP_BIOMASS_KG] = fragments[MAGNITUDE_KG] * fragments[PROP_AREA_TOT]
        if total > 0:
            fragments[REL_PROP_BIOMASS_KG] = fragments[PROP_BIOMASS_KG] / total

    _check_area_conservation(fragments, config.area_tolerance)

    fragments = fragments.rename(columns={"_cell": _cell_id_name(cell_id)})
    logger.info(
        f"Intersected {len(observations)} observations into {len(fragments)} fragments"
    )
    return fragments.reset_index(drop=True)


def _check_footprint_areas(observations: gpd.GeoDataFrame) -> None:
    """Reject polygonal footprints with no area (collapsed rings, repeated vertices)."""
    if (
        not isinstance(observations, gpd.GeoDataFrame)
        or observations.active_geometry_name not in observations.columns
    ):
        return

    geoms = observations.geometry
    polygonal = geoms[geoms.notna() & ~geoms.is_empty & geoms.geom_type.isin(POLYGON_TYPES)]
    zero_area = int((polygonal.area <= 0).sum())
    if zero_area > 0:
        msg = f"Found {zero_area} observations with zero-area footprints"
        raise InvalidInputError(msg, [ValidationError(message=msg, field="observations")])


def _check_area_conservation(fragments: gpd.GeoDataFrame, tolerance: float) -> None:
    """Warn when an observation's fragments add up to more than its own footprint.

    Proportions are left untouched; overshoot only comes from slivers produced
    by overlapping grid cells or numerical noise in the geometry engine.
    """
    if fragments.empty:
        return
    totals = fragments.groupby(OBS_INDEX)[PROP_AREA_TOT].sum()
    excess = totals[totals > 1 + tolerance]
    if not excess.empty:
        logger.warning(
            f"{len(excess)} observations have fragment area proportions summing above 1 "
            f"(max {excess.max():.9f}); check the grid for overlapping cells"
        )


def _cell_id_name(selector: KeySelector) -> str:
    return selector if isinstance(selector, str) else CALLABLE_CELL_ID_NAME


def _select(frame: pd.DataFrame, selector: KeySelector, role: str) -> pd.Series:
    """Resolve a column name or callable selector against a frame, once."""
    if callable(selector):
        values = selector(frame)
        if len(values) != len(frame):
            msg = (
                f"{role} selector returned {len(values)} values for {len(frame)} rows"
            )
            raise InvalidInputError(msg, [ValidationError(message=msg, field=role)])
        return pd.Series(np.asarray(values), index=frame.index, name=role)

    if selector not in frame.columns:
        msg = f"{role} column '{selector}' not found"
        raise InvalidInputError(msg, [ValidationError(message=msg, field=role)])
    return frame[selector]


def _resolve_cell_ids(grid: gpd.GeoDataFrame, selector: KeySelector) -> pd.Series:
    cell_ids = _select(grid, selector, "cell_id")

    errors = []
    null_count = int(cell_ids.isna().sum())
    if null_count > 0:
        errors.append(
            ValidationError(message=f"Found {null_count} grid cells without an identifier",
                            field="cell_id")
        )
    duplicated = cell_ids[cell_ids.duplicated()].unique()
    if len(duplicated) > 0:
        sample = ", ".join(str(v) for v in duplicated[:5])
        errors.append(
            ValidationError(
                message=f"Grid cell identifiers must be unique; duplicated: {sample}",
                field="cell_id",
            )
        )
    if errors:
        raise InvalidInputError.from_errors(errors)

    return cell_ids


def _resolve_magnitude(observations: gpd.GeoDataFrame, selector: KeySelector) -> pd.Series:
    values = _select(observations, selector, "magnitude")

    if not pd.api.types.is_numeric_dtype(values) or pd.api.types.is_bool_dtype(values):
        msg = f"Magnitude must be numeric, got dtype {values.dtype}"
        raise InvalidInputError(msg, [ValidationError(message=msg, field="magnitude")])

    errors = []
    null_count = int(values.isna().sum())
    if null_count > 0:
        errors.append(
            ValidationError(message=f"Found {null_count} observations without a magnitude",
                            field="magnitude")
        )
    negative_count = int((values < 0).sum())
    if negative_count > 0:
        errors.append(
            ValidationError(message=f"Found {negative_count} observations with negative magnitude",
                            field="magnitude")
        )
    if errors:
        raise InvalidInputError.from_errors(errors)

    return values
