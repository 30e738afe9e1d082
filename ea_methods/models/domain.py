"""Core domain models for the assessment routines.

These models represent reference data as immutable value objects that are
passed explicitly into the functions that need them.
"""

import logging
from pathlib import Path

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class TaxonCombination(BaseModel):
    """A taxon name to be folded into another one.

    Attributes:
        source: Name found in the data (``from`` column of combine.csv)
        target: Name to use instead (``to`` column of combine.csv)
        documentation: Reasoning for the combination
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Taxonomic name to transform")
    target: str = Field(description="New taxonomic name to use")
    documentation: str | None = Field(default=None, description="Reasoning for the combination")


class TaxaReference(BaseModel):
    """Reference lists used by the taxonomy review steps.

    Attributes:
        clean: Regex fragments removed from names (e.g. ``sp\\.``, ``spp\\.``)
        remove: Names whose rows are dropped because identification is too coarse
        combine: Ordered name combinations, applied first to last
        aphia: Known AphiaIDs used when WoRMS has no unambiguous match
    """

    model_config = ConfigDict(frozen=True)

    clean: tuple[str, ...] = Field(default=(), description="Regex fragments to strip")
    remove: tuple[str, ...] = Field(default=(), description="Taxonomic names to remove")
    combine: tuple[TaxonCombination, ...] = Field(
        default=(), description="Ordered taxon combinations"
    )
    aphia: dict[str, int] = Field(
        default_factory=dict, description="Species name to AphiaID fallback table"
    )

    @classmethod
    def from_csv_dir(cls, directory: Path) -> "TaxaReference":
        """Load reference lists from a directory of CSV files.

        Expected files (any may be absent, which leaves that list empty):
        - clean.csv: ``remove`` column
        - remove.csv: ``remove`` (and ``documentation``) columns
        - combine.csv: ``to``, ``from`` (and ``documentation``) columns
        - aphia.csv: ``Species``, ``aphiaID`` columns

        Args:
            directory: Directory containing the CSV files

        Returns:
            TaxaReference populated from the files

        Raises:
            FileNotFoundError: If directory does not exist
            KeyError: If a present file lacks a required column
        """
        if not directory.is_dir():
            msg = f"Taxonomy reference directory not found: {directory}"
            raise FileNotFoundError(msg)

        clean = _read_column(directory / "clean.csv", "remove")
        remove = _read_column(directory / "remove.csv", "remove")

        combine: list[TaxonCombination] = []
        combine_path = directory / "combine.csv"
        if combine_path.exists():
            df = pd.read_csv(combine_path, dtype=str, keep_default_na=False)
            for record in df.to_dict("records"):
                combine.append(
                    TaxonCombination(
                        source=record["from"],
                        target=record["to"],
                        documentation=record.get("documentation") or None,
                    )
                )

        aphia: dict[str, int] = {}
        aphia_path = directory / "aphia.csv"
        if aphia_path.exists():
            df = pd.read_csv(aphia_path).dropna(subset=["Species", "aphiaID"])
            aphia = {str(s): int(a) for s, a in zip(df["Species"], df["aphiaID"], strict=True)}

        logger.info(
            f"Loaded taxonomy reference from {directory}: {len(clean)} clean patterns, "
            f"{len(remove)} removals, {len(combine)} combinations, {len(aphia)} AphiaIDs"
        )

        return cls(clean=tuple(clean), remove=tuple(remove), combine=tuple(combine), aphia=aphia)


def _read_column(path: Path, column: str) -> list[str]:
    """Read one non-null string column from a CSV, or nothing if the file is absent."""
    if not path.exists():
        return []
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return [value for value in df[column].tolist() if value != ""]
