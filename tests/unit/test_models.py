"""Unit tests for domain models and enumerations."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from ea_methods.models.domain import TaxaReference, TaxonCombination
from ea_methods.models.enums import IntensityMetric, ReviewStep
from ea_methods.validation.errors import InvalidInputError


class TestIntensityMetric:
    """Metric codes and their output columns."""

    def test_columns(self):
        assert IntensityMetric.EFFORT_COUNT.column == "FishEffortDens"
        assert IntensityMetric.EFFORT_PROPORTION.column == "FishEffortDensProp"
        assert IntensityMetric.BIOMASS.column == "FishBiomassKg"
        assert IntensityMetric.RELATIVE_BIOMASS.column == "RelFishBiomassKg"

    def test_needs_magnitude(self):
        """Only the biomass metrics read a magnitude."""
        assert [m.needs_magnitude for m in IntensityMetric] == [False, False, True, True]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1, IntensityMetric.EFFORT_COUNT),
            ("4", IntensityMetric.RELATIVE_BIOMASS),
            (" 3 ", IntensityMetric.BIOMASS),
            (IntensityMetric.EFFORT_PROPORTION, IntensityMetric.EFFORT_PROPORTION),
        ],
    )
    def test_parse_valid(self, value, expected):
        assert IntensityMetric.parse(value) is expected

    @pytest.mark.parametrize("value", [0, 5, "five", "", False, 1.0])
    def test_parse_invalid(self, value):
        """Unknown codes raise with the metric field attached."""
        with pytest.raises(InvalidInputError) as exc_info:
            IntensityMetric.parse(value)

        assert exc_info.value.errors[0].field == "metric"


def test_review_step_values():
    """Review steps are declared in execution order."""
    assert [s.value for s in ReviewStep] == ["clean", "remove", "combine", "aphia"]


class TestTaxaReference:
    """Loading reference lists from CSV files."""

    def test_from_csv_dir(self, tmp_path):
        """All four files are read; combinations keep file order."""
        (tmp_path / "clean.csv").write_text("remove\nsp\\.\nspp\\.\n")
        (tmp_path / "remove.csv").write_text(
            "remove,documentation\nActinopterygii,class level only\nInvertebrata,\n"
        )
        (tmp_path / "combine.csv").write_text(
            "to,from,documentation\n"
            "Sebastes,Sebastes mentella,hard to tell apart\n"
            "Sebastes,Sebastes fasciatus,\n"
        )
        (tmp_path / "aphia.csv").write_text("Species,aphiaID\nSebastes,126175\nLiparidae,\n")

        reference = TaxaReference.from_csv_dir(tmp_path)

        assert reference.clean == ("sp\\.", "spp\\.")
        assert reference.remove == ("Actinopterygii", "Invertebrata")
        assert reference.combine == (
            TaxonCombination(
                source="Sebastes mentella", target="Sebastes", documentation="hard to tell apart"
            ),
            TaxonCombination(source="Sebastes fasciatus", target="Sebastes"),
        )
        assert reference.aphia == {"Sebastes": 126175}

    def test_missing_files_leave_lists_empty(self, tmp_path):
        reference = TaxaReference.from_csv_dir(tmp_path)

        assert reference == TaxaReference()

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TaxaReference.from_csv_dir(tmp_path / "nope")

    def test_reference_is_immutable(self):
        reference = TaxaReference(remove=("Actinopterygii",))

        with pytest.raises(PydanticValidationError):
            reference.remove = ()
