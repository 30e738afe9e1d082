"""Domain models and enumerations for the assessment routines."""

from ea_methods.models.domain import TaxaReference, TaxonCombination
from ea_methods.models.enums import IntensityMetric, ReviewStep

__all__ = [
    "IntensityMetric",
    "ReviewStep",
    "TaxaReference",
    "TaxonCombination",
]
