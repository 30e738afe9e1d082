"""Spatial operations for assessments.

This module provides the spatial operations used by the routines:
- Pairwise intersection of two polygon layers (optionally fanned out over processes)
- Buffering of point records into circular footprints
- Spatial partitioning of a layer into chunks
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor

import geopandas as gpd
import pandas as pd
from shapely.errors import GEOSException

from ea_methods.spatial.utils import apply_precision
from ea_methods.validation.errors import GeometryError, InvalidInputError, ValidationError

logger = logging.getLogger(__name__)


def pairwise_intersection(
    left: gpd.GeoDataFrame,
    right: gpd.GeoDataFrame,
    grid_size: float | None = None,
) -> gpd.GeoDataFrame:
    """Geometric intersection of every left feature with every right feature.

    Creates one output feature per overlapping (left, right) pair carrying the
    attributes of both sides. Only polygonal parts are kept: pairs that merely
    share an edge or a vertex produce no output.

    Args:
        left: Left GeoDataFrame (polygons)
        right: Right GeoDataFrame (polygons, same CRS as left)
        grid_size: Optional precision grid applied to both inputs and the result

    Returns:
        GeoDataFrame with intersected geometries and attributes from both inputs

    Raises:
        GeometryError: If the geometry engine fails on the inputs
    """
    if grid_size is not None:
        left = apply_precision(left, grid_size=grid_size)
        right = apply_precision(right, grid_size=grid_size)

    if left.empty or right.empty:
        columns = [c for c in left.columns if c != left.geometry.name]
        columns += [c for c in right.columns if c != right.geometry.name]
        return gpd.GeoDataFrame(pd.DataFrame(columns=columns), geometry=[], crs=left.crs)

    try:
        result = gpd.overlay(left, right, how="intersection", keep_geom_type=True)
    except GEOSException as e:
        msg = f"Intersection failed: {e}"
        raise GeometryError(msg) from e

    if grid_size is not None:
        result = apply_precision(result, grid_size=grid_size)

    return result


def _intersection_chunk(
    left_chunk: gpd.GeoDataFrame,
    right_gdf: gpd.GeoDataFrame,
    grid_size: float | None,
) -> gpd.GeoDataFrame:
    """Run an intersection overlay for one left-side chunk (runs in worker process)."""
    return pairwise_intersection(left_chunk, right_gdf, grid_size=grid_size)


def parallel_intersection(
    left: gpd.GeoDataFrame,
    right: gpd.GeoDataFrame,
    grid_size: float | None = None,
    parallel: bool = True,
    threshold: int = 100,
    max_workers: int | None = None,
) -> gpd.GeoDataFrame:
    """Pairwise intersection with optional chunked parallel processing.

    Left features are partitioned spatially and each chunk is intersected with
    the full right layer in its own process. Each left feature lands in exactly
    one chunk, so the concatenated result holds the same pairs as a sequential run.

    Args:
        left: Left GeoDataFrame (chunked)
        right: Right GeoDataFrame (shared by every chunk)
        grid_size: Optional precision grid
        parallel: Enable parallel processing
        threshold: Minimum number of left features before fanning out
        max_workers: Number of worker processes (default: 80% of cpu_count)
    """
    if not parallel or len(left) < threshold:
        return pairwise_intersection(left, right, grid_size=grid_size)

    if max_workers is None:
        # Cap at 80% of available CPUs to avoid saturating the host
        max_workers = max(1, int((os.cpu_count() or 4) * 0.8))

    chunks = partition_by_bounds(left, max_workers)
    if len(chunks) <= 1:
        return pairwise_intersection(left, right, grid_size=grid_size)

    logger.info(f"Intersecting {len(left)} features in {len(chunks)} parallel chunks")

    try:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(_intersection_chunk, chunk, right, grid_size) for chunk in chunks
            ]
            results = [f.result() for f in futures]
    except (NotImplementedError, PermissionError, OSError) as exc:
        logger.warning(
            f"Parallel intersection unavailable ({exc}); falling back to sequential"
        )
        return pairwise_intersection(left, right, grid_size=grid_size)

    return gpd.GeoDataFrame(pd.concat(results, ignore_index=True), crs=left.crs)


def partition_by_bounds(gdf: gpd.GeoDataFrame, n_chunks: int) -> list[gpd.GeoDataFrame]:
    """Partition GeoDataFrame into roughly equal spatial chunks.

    Splits along the longer axis (x or y) of the total bounds using feature
    centroids, so every feature belongs to exactly one chunk.
    """
    if len(gdf) == 0 or n_chunks <= 1:
        return [gdf]

    bounds = gdf.total_bounds  # minx, miny, maxx, maxy
    x_range = bounds[2] - bounds[0]
    y_range = bounds[3] - bounds[1]

    centroids = gdf.geometry.centroid
    if x_range >= y_range:
        coord, low, high, step = centroids.x, bounds[0], bounds[2], x_range / n_chunks
    else:
        coord, low, high, step = centroids.y, bounds[1], bounds[3], y_range / n_chunks

    chunks = []
    for i in range(n_chunks):
        lower = low + i * step
        if i < n_chunks - 1:
            chunk = gdf[(coord >= lower) & (coord < low + (i + 1) * step)]
        else:
            chunk = gdf[(coord >= lower) & (coord <= high)]
        if len(chunk) > 0:
            chunks.append(chunk)

    return chunks if chunks else [gdf]


def buffer_points(
    gdf: gpd.GeoDataFrame,
    distance: float,
    resolution: int = 16,
) -> gpd.GeoDataFrame:
    """Buffer point records into circular footprints.

    Attributes are carried over unchanged; only the geometry is replaced.

    Args:
        gdf: Input GeoDataFrame (typically fishing set positions)
        distance: Buffer radius in CRS units (metres for projected CRS)
        resolution: Segments per quarter circle

    Returns:
        Copy of gdf with buffered geometries

    Raises:
        InvalidInputError: If distance is not positive
    """
    if distance <= 0:
        msg = f"Buffer distance must be positive, got {distance}"
        raise InvalidInputError(msg, [ValidationError(message=msg, field="buffer")])

    buffered = gdf.copy()
    buffered["geometry"] = buffered.geometry.buffer(distance, resolution=resolution)
    return buffered
