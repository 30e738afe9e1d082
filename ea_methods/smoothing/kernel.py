"""Kernel-weighted smoothing of point observations.

Transforms a point pattern with a weight field into a continuous surface
over an arbitrary study area:

1. A regular grid of cell centres is laid over the study area, with its origin
   pushed out by one bandwidth and snapped to a multiple of the resolution.
2. Each observation spreads its weight over the centres within one bandwidth
   using a quartic kernel, normalised so the observation's weight is conserved.
3. Smoothed values above the clamp (1 by default) are clamped.
4. The values are rasterised onto the centre grid.

Inputs must share an equal-area projected CRS.
"""

import itertools
import logging
import math
from dataclasses import dataclass
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
import rasterio
from affine import Affine
from rasterio.features import rasterize
from rasterio.transform import from_origin
from scipy.spatial import cKDTree

from ea_methods.config import DEFAULT_SMOOTHING_CONFIG, SmoothingConfig
from ea_methods.validation.errors import GeometryError, InvalidInputError, ValidationError
from ea_methods.validation.geometry import POINT_TYPES, POLYGON_TYPES, GeometryValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneGrid:
    """Regular grid of cell centres covering a study area."""

    x0: float
    y0: float
    resolution: float
    width: int
    height: int

    @property
    def transform(self) -> Affine:
        """Affine transform of the grid (north-up, origin at the top-left corner)."""
        return from_origin(self.x0, self.y0 + self.height * self.resolution,
                           self.resolution, self.resolution)

    @classmethod
    def for_study_area(
        cls, study_area: gpd.GeoDataFrame, resolution: float, bandwidth: float
    ) -> "ZoneGrid":
        xmin, ymin, xmax, ymax = study_area.total_bounds
        x0 = math.floor((xmin - bandwidth) / resolution) * resolution
        y0 = math.floor((ymin - bandwidth) / resolution) * resolution
        width = max(1, math.ceil((xmax - x0) / resolution))
        height = max(1, math.ceil((ymax - y0) / resolution))
        return cls(x0=x0, y0=y0, resolution=resolution, width=width, height=height)


@dataclass
class SmoothedSurface:
    """Raster produced by kernel_smoothing.

    Cells outside the study area hold `nodata` (NaN).
    """

    values: np.ndarray
    transform: Affine
    crs: object
    nodata: float = np.nan

    def to_geotiff(self, path: Path) -> Path:
        """Write the surface to a single-band GeoTIFF."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with rasterio.open(
            path,
            "w",
            driver="GTiff",
            height=self.values.shape[0],
            width=self.values.shape[1],
            count=1,
            dtype="float64",
            crs=self.crs,
            transform=self.transform,
            nodata=self.nodata,
        ) as dst:
            dst.write(self.values, 1)
        logger.info(f"Wrote smoothed surface to {path}")
        return path


def zone_centroids(
    study_area: gpd.GeoDataFrame,
    resolution: float,
    bandwidth: float,
) -> gpd.GeoDataFrame:
    """Cell centres of the smoothing grid that fall within the study area.

    Args:
        study_area: Study area polygons
        resolution: Grid resolution (map units)
        bandwidth: Kernel bandwidth (map units); pushes the grid origin outwards

    Returns:
        Point GeoDataFrame with x, y, row and col columns (row 0 is the top row)
    """
    _check_positive(resolution=resolution, bandwidth=bandwidth)
    zone = ZoneGrid.for_study_area(study_area, resolution, bandwidth)

    cols, rows_from_bottom = np.meshgrid(np.arange(zone.width), np.arange(zone.height))
    cols = cols.ravel()
    rows_from_bottom = rows_from_bottom.ravel()
    x = zone.x0 + (cols + 0.5) * resolution
    y = zone.y0 + (rows_from_bottom + 0.5) * resolution

    centres = gpd.GeoDataFrame(
        {"x": x, "y": y, "row": zone.height - 1 - rows_from_bottom, "col": cols},
        geometry=gpd.points_from_xy(x, y),
        crs=study_area.crs,
    )
    inside = gpd.sjoin(
        centres, study_area[[study_area.geometry.name]], how="inner", predicate="intersects"
    )
    return centres.loc[inside.index.unique()].sort_index().reset_index(drop=True)


def kernel_smoothing(
    points: gpd.GeoDataFrame,
    field: str,
    bandwidth: float,
    resolution: float,
    study_area: gpd.GeoDataFrame,
    config: SmoothingConfig = DEFAULT_SMOOTHING_CONFIG,
) -> SmoothedSurface:
    """Kernel-weighted smoothing of points over an arbitrary study area.

    Args:
        points: Point observations
        field: Weight column in points
        bandwidth: Kernel bandwidth (map units)
        resolution: Output grid resolution (map units)
        study_area: Study area polygons bounding the output
        config: Smoothing configuration (clamp value)

    Returns:
        SmoothedSurface on the zone grid of the study area

    Raises:
        InvalidInputError: Non-positive bandwidth or resolution, missing or
            non-numeric field, CRS mismatch
        GeometryError: Non-point observations or invalid study area polygons
    """
    _check_positive(resolution=resolution, bandwidth=bandwidth)
    _validate_layers(points, study_area)

    if field not in points.columns:
        msg = f"Weight field '{field}' not found in points"
        raise InvalidInputError(msg, [ValidationError(message=msg, field=field)])
    weights = points[field]
    if not pd.api.types.is_numeric_dtype(weights) or weights.isna().any():
        msg = f"Weight field '{field}' must be numeric without nulls"
        raise InvalidInputError(msg, [ValidationError(message=msg, field=field)])

    zone = ZoneGrid.for_study_area(study_area, resolution, bandwidth)
    centres = zone_centroids(study_area, resolution, bandwidth)
    logger.info(
        f"Smoothing {len(points)} points over {len(centres)} cells "
        f"(bandwidth={bandwidth}, resolution={resolution})"
    )

    values = _quartic_kernel(
        points.geometry.x.to_numpy(),
        points.geometry.y.to_numpy(),
        weights.to_numpy(dtype=float),
        centres["x"].to_numpy(),
        centres["y"].to_numpy(),
        bandwidth,
    )
    if config.clamp_max is not None:
        values = np.minimum(values, config.clamp_max)

    raster = np.full((zone.height, zone.width), np.nan)
    if len(centres) > 0:
        raster = rasterize(
            zip(centres.geometry, values, strict=True),
            out_shape=(zone.height, zone.width),
            transform=zone.transform,
            fill=np.nan,
            dtype="float64",
        )

    return SmoothedSurface(values=raster, transform=zone.transform, crs=study_area.crs)


def _quartic_kernel(
    px: np.ndarray,
    py: np.ndarray,
    weights: np.ndarray,
    cx: np.ndarray,
    cy: np.ndarray,
    bandwidth: float,
) -> np.ndarray:
    """Spread each point's weight over the centres within one bandwidth.

    Only (point, centre) pairs closer than the bandwidth are formed, found
    with a k-d tree over the centres, so memory follows the number of pairs
    rather than points times centres.
    """
    if len(px) == 0 or len(cx) == 0:
        return np.zeros(len(cx))

    tree = cKDTree(np.column_stack([cx, cy]))
    neighbours = tree.query_ball_point(np.column_stack([px, py]), r=bandwidth)
    counts = np.fromiter((len(n) for n in neighbours), dtype=np.intp, count=len(neighbours))
    point_idx = np.repeat(np.arange(len(px)), counts)
    centre_idx = np.fromiter(
        itertools.chain.from_iterable(neighbours), dtype=np.intp, count=int(counts.sum())
    )

    d2 = (px[point_idx] - cx[centre_idx]) ** 2 + (py[point_idx] - cy[centre_idx]) ** 2
    h2 = bandwidth**2
    # query_ball_point includes the boundary; the kernel is zero there
    kernel = np.where(d2 < h2, (1 - d2 / h2) ** 2, 0.0)

    totals = np.bincount(point_idx, weights=kernel, minlength=len(px))
    unreached = int((totals == 0).sum())
    if unreached:
        logger.warning(f"{unreached} points have no grid cell within one bandwidth")

    pair_totals = totals[point_idx]
    shares = np.divide(kernel, pair_totals, out=np.zeros_like(kernel), where=pair_totals > 0)
    return np.bincount(centre_idx, weights=shares * weights[point_idx], minlength=len(cx))


def _validate_layers(points: gpd.GeoDataFrame, study_area: gpd.GeoDataFrame) -> None:
    geometry_errors = GeometryValidator(POINT_TYPES).validate_geometries(points, "points")
    geometry_errors += GeometryValidator(POLYGON_TYPES).validate_geometries(
        study_area, "study area"
    )
    if geometry_errors:
        raise GeometryError("; ".join(e.message for e in geometry_errors), geometry_errors)

    crs_errors = GeometryValidator().validate_crs(points, study_area, "points", "study area")
    if crs_errors:
        raise InvalidInputError.from_errors(crs_errors)


def _check_positive(**values: float) -> None:
    errors = [
        ValidationError(message=f"{name} must be positive, got {value}", field=name)
        for name, value in values.items()
        if value <= 0
    ]
    if errors:
        raise InvalidInputError.from_errors(errors)
