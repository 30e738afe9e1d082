"""Enumerations shared by the assessment routines."""

from enum import Enum, IntEnum

from ea_methods.validation.errors import InvalidInputError, ValidationError


class IntensityMetric(IntEnum):
    """Fishing intensity metrics, identified by their historical numeric codes.

    1: Fishing effort density, no normalization (fragment count per cell)
    2: Fishing effort density (sum of footprint area proportions per cell)
    3: Fishing biomass yield density (kg attributed to each cell)
    4: Fishing relative biomass yield density (share of total kg per cell)
    """

    EFFORT_COUNT = 1
    EFFORT_PROPORTION = 2
    BIOMASS = 3
    RELATIVE_BIOMASS = 4

    @property
    def column(self) -> str:
        """Name of the output column produced for this metric."""
        return _METRIC_COLUMNS[self]

    @property
    def needs_magnitude(self) -> bool:
        """Whether the metric requires a magnitude (biomass) per observation."""
        return self in (IntensityMetric.BIOMASS, IntensityMetric.RELATIVE_BIOMASS)

    @classmethod
    def parse(cls, value: "IntensityMetric | int | str") -> "IntensityMetric":
        """Resolve a metric code, failing closed on anything unknown.

        Raises:
            InvalidInputError: If value is not exactly one of 1, 2, 3, 4
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            code = None
        elif isinstance(value, int):
            code = value
        elif isinstance(value, str) and value.strip().isdigit():
            code = int(value)
        else:
            code = None

        if code in {member.value for member in cls}:
            return cls(code)

        msg = f"Unknown fishing intensity metric: {value!r}. Supported: 1, 2, 3, 4"
        raise InvalidInputError(msg, [ValidationError(message=msg, field="metric")])


_METRIC_COLUMNS = {
    IntensityMetric.EFFORT_COUNT: "FishEffortDens",
    IntensityMetric.EFFORT_PROPORTION: "FishEffortDensProp",
    IntensityMetric.BIOMASS: "FishBiomassKg",
    IntensityMetric.RELATIVE_BIOMASS: "RelFishBiomassKg",
}


class ReviewStep(Enum):
    """Taxonomy review steps, always executed in declaration order."""

    CLEAN = "clean"
    REMOVE = "remove"
    COMBINE = "combine"
    APHIA = "aphia"
