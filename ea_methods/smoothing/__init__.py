"""Kernel smoothing of point observations into a raster surface.

Exports:
- kernel_smoothing: Quartic kernel smoothing over a study area
- zone_centroids: Cell centres of the smoothing grid within the study area
- SmoothedSurface: Raster result with its transform and CRS
"""

from ea_methods.smoothing.kernel import (
    SmoothedSurface,
    ZoneGrid,
    kernel_smoothing,
    zone_centroids,
)

__all__ = [
    "kernel_smoothing",
    "zone_centroids",
    "SmoothedSurface",
    "ZoneGrid",
]
