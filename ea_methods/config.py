"""Configuration and constants for the ecosystem assessment methods.

This module defines the constants and tunable settings used by the
assessment routines.

Includes configuration for:
- Fishing intensity aggregation (IntensityConfig with FI_ prefix)
- Kernel smoothing (SmoothingConfig with SMOOTH_ prefix)
- Taxonomy review (TaxonomyConfig with TAXA_ prefix)
- Debug output (DebugConfig, plain environment variables)

Configuration can be overridden via:
1. Environment variables (e.g., FI_AREA_TOLERANCE=1e-4, SMOOTH_CLAMP_MAX=0.5)
2. .env file in the current directory
3. Default values in code
"""

import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class PhysicalConstants:
    """Fixed conversion factors and sentinel values.

    These are NOT configurable. All attributes are immutable.
    """

    # Unit conversion factors (projected CRS assumed to be in metres)
    SQUARE_METRES_PER_SQUARE_KILOMETRE: float = 1_000_000.0

    # WoRMS returns this AphiaID when a name matches several records
    AMBIGUOUS_APHIA_ID: int = -999


# Module-level singleton for physical constants
CONSTANTS = PhysicalConstants()


class IntensityConfig(BaseSettings):
    """Configuration for fishing intensity aggregation.

    Can be overridden via environment variables with FI_ prefix:
    - FI_DEFAULT_CELL_ID_FIELD
    - FI_DEFAULT_MAGNITUDE_FIELD
    - FI_AREA_TOLERANCE
    - FI_PRECISION_GRID_SIZE
    - FI_PARALLEL
    - FI_PARALLEL_THRESHOLD
    - FI_MAX_WORKERS

    Attributes:
        default_cell_id_field: Grid column holding the unique cell identifier
        default_magnitude_field: Observation column holding catch/biomass (kg)
        area_tolerance: Allowed excess of an observation's summed area
            proportions over 1 before a warning is logged
        precision_grid_size: Optional coordinate precision grid for the overlay
        parallel: Fan the intersection step out over worker processes
        parallel_threshold: Minimum number of observations before fan-out is used
        max_workers: Number of worker processes (None = 80% of cpu_count)
    """

    model_config = SettingsConfigDict(
        env_prefix="FI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_cell_id_field: str = Field(
        default="uid", description="Grid column holding the unique cell identifier"
    )
    default_magnitude_field: str = Field(
        default="biomass", description="Observation column holding the magnitude (kg)"
    )
    area_tolerance: float = Field(
        default=1e-6,
        ge=0,
        description="Tolerance on per-observation summed area proportions",
    )
    precision_grid_size: float | None = Field(
        default=None,
        gt=0,
        description="Snap coordinates to this grid (metres) before intersecting; None disables",
    )
    parallel: bool = Field(default=False, description="Enable parallel intersection")
    parallel_threshold: int = Field(
        default=100, ge=1, description="Minimum observations before parallel fan-out"
    )
    max_workers: int | None = Field(
        default=None, description="Number of worker processes (None = auto-detect)"
    )


DEFAULT_INTENSITY_CONFIG = IntensityConfig()


class SmoothingConfig(BaseSettings):
    """Configuration for kernel smoothing of point observations.

    Can be overridden via environment variables with SMOOTH_ prefix:
    - SMOOTH_CLAMP_MAX
    - SMOOTH_OUT_CRS

    Attributes:
        clamp_max: Smoothed values above this are clamped to it
        out_crs: Equal-area CRS expected for inputs and written rasters
    """

    model_config = SettingsConfigDict(
        env_prefix="SMOOTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    clamp_max: float | None = Field(
        default=1.0, description="Upper bound on smoothed values (None disables clamping)"
    )
    out_crs: str = Field(
        default="EPSG:32198", description="NAD83 / Quebec Lambert equal-area projection"
    )


DEFAULT_SMOOTHING_CONFIG = SmoothingConfig()


class TaxonomyConfig(BaseSettings):
    """Configuration for taxonomy review.

    Can be overridden via environment variables with TAXA_ prefix:
    - TAXA_REFERENCE_DIR
    - TAXA_WORMS_MARINE_ONLY

    Attributes:
        reference_dir: Directory holding clean.csv, remove.csv, combine.csv, aphia.csv
        worms_marine_only: Restrict WoRMS name matching to marine taxa
    """

    model_config = SettingsConfigDict(
        env_prefix="TAXA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    reference_dir: Path | None = Field(
        default=None, description="Directory containing the taxonomy reference CSVs"
    )
    worms_marine_only: bool = Field(
        default=True, description="Only match marine taxa in WoRMS"
    )

    @field_validator("reference_dir")
    @classmethod
    def must_be_directory(cls, v: Path | None) -> Path | None:
        if v is not None and not v.is_dir():
            msg = f"Taxonomy reference directory does not exist: {v}"
            raise ValueError(msg)
        return v


DEFAULT_TAXONOMY_CONFIG = TaxonomyConfig()


class DebugConfig:
    """Debug output configuration.

    WARNING: For local development only.
    - Adds disk I/O overhead
    - Consumes storage space
    """

    def __init__(
        self,
        enabled: bool = False,
        output_dir: Path = Path("/tmp/ea-methods-debug"),
    ):
        self.enabled = enabled
        self.output_dir = output_dir

    @classmethod
    def from_env(cls) -> "DebugConfig":
        return cls(
            enabled=os.environ.get("DEBUG_OUTPUT", "false").lower() == "true",
            output_dir=Path(os.environ.get("DEBUG_OUTPUT_DIR", "/tmp/ea-methods-debug")),
        )
