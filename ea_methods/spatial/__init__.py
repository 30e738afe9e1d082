"""Spatial operations for the assessment routines.

Commonly used exports:
- pairwise_intersection: Intersection of two polygon layers
- parallel_intersection: Same, fanned out over worker processes for large inputs
- buffer_points: Turn point records into circular footprints
- partition_by_bounds: Split a layer into spatial chunks
- apply_precision: Apply precision model to geometries
- area_km2: Planar area in square kilometres
- ensure_crs: CRS validation and transformation
"""

from ea_methods.spatial.operations import (
    buffer_points,
    pairwise_intersection,
    parallel_intersection,
    partition_by_bounds,
)
from ea_methods.spatial.utils import apply_precision, area_km2, ensure_crs

__all__ = [
    "pairwise_intersection",
    "parallel_intersection",
    "buffer_points",
    "partition_by_bounds",
    "apply_precision",
    "area_km2",
    "ensure_crs",
]
