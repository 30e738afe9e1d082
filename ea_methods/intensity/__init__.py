"""Fishing intensity aggregation over a spatial grid.

Exports:
- fishing_intensity: Evaluate one of the four intensity metrics per grid cell
- intersect_fragments: Observation/cell fragments with their area and magnitude shares
- IntensityMetric: Metric codes and output column names
"""

from ea_methods.intensity.fishing import fishing_intensity, intersect_fragments
from ea_methods.models.enums import IntensityMetric

__all__ = [
    "fishing_intensity",
    "intersect_fragments",
    "IntensityMetric",
]
