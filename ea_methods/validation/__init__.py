"""Validation module for assessment inputs.

This module provides:
1. Error types - ValidationError records and the exceptions raised to callers
2. Geometry validation - CRS, geometry type and topology checks on layers
"""

from ea_methods.validation.errors import (
    EaMethodsError,
    GeometryError,
    InvalidInputError,
    TaxonLookupError,
    ValidationError,
)
from ea_methods.validation.geometry import GeometryValidator

__all__ = [
    "ValidationError",
    "EaMethodsError",
    "InvalidInputError",
    "GeometryError",
    "TaxonLookupError",
    "GeometryValidator",
]
