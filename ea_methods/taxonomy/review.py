"""Review of scientific species names.

Cleans taxa names, combines taxa that are taxonomically close and hard to
tell apart in the field, removes taxa whose identification is too coarse to
be useful, and attaches WoRMS AphiaIDs and classifications.

The reference lists were first built for the species of the St. Lawrence
estuary and gulf and later extended to the North West Atlantic. Results on
other species lists should be reviewed carefully.

All functions return new DataFrames; the input frame is never modified.
"""

import logging
import re
from collections.abc import Iterable

import pandas as pd

from ea_methods.config import CONSTANTS, DEFAULT_TAXONOMY_CONFIG
from ea_methods.models.domain import TaxaReference
from ea_methods.models.enums import ReviewStep
from ea_methods.taxonomy.lookup import TaxonLookup, WormsLookup
from ea_methods.validation.errors import InvalidInputError, ValidationError

logger = logging.getLogger(__name__)

APHIA_COLUMN = "aphiaID"
DEFAULT_RANKS = ("Kingdom", "Phylum", "Class", "Order", "Family", "Genus")
DEFAULT_REVIEW = ("clean", "remove", "combine")


def review_taxa(
    df: pd.DataFrame,
    field: str,
    review: Iterable[str | ReviewStep] = DEFAULT_REVIEW,
    reference: TaxaReference | None = None,
    lookup: TaxonLookup | None = None,
) -> pd.DataFrame:
    """Clean, remove, combine and/or identify the taxa of a species list.

    Steps always run in the order clean, remove, combine, aphia, whatever the
    order they are requested in.

    Args:
        df: DataFrame holding the species list
        field: Column containing scientific names
        review: Steps to perform, any of "clean", "remove", "combine", "aphia"
        reference: Reference lists (default: loaded from TAXA_REFERENCE_DIR)
        lookup: AphiaID service used by the "aphia" step (default: WormsLookup)

    Returns:
        Reviewed copy of df

    Raises:
        InvalidInputError: Unknown step, missing field, or no reference data
        TaxonLookupError: If the remote lookup fails during the "aphia" step
    """
    steps = _parse_steps(review)
    _require_field(df, field)
    if reference is None:
        reference = _default_reference()

    logger.info(f"Reviewing {len(df)} taxa: {', '.join(s.value for s in steps)}")

    if ReviewStep.CLEAN in steps:
        df = clean_taxa(df, field, reference)
    if ReviewStep.REMOVE in steps:
        df = remove_taxa(df, field, reference)
    if ReviewStep.COMBINE in steps:
        df = combine_taxa(df, field, reference)
    if ReviewStep.APHIA in steps:
        df = get_aphia(df, field, reference, lookup or WormsLookup())
    return df


def clean_taxa(df: pd.DataFrame, field: str, reference: TaxaReference) -> pd.DataFrame:
    """Strip qualifiers such as "sp." or "spp." from names.

    Names are lower-cased, every reference pattern standing as a
    whitespace-delimited token is removed, whitespace is squished and the
    result is put in sentence case ("Triglops spp." -> "Triglops").
    """
    _require_field(df, field)
    names = df[field].astype("string").str.strip().str.lower()

    pattern = _clean_pattern(reference.clean)
    if pattern is not None:
        names = (" " + names + " ").str.replace(pattern, " ", regex=True)

    df = df.copy()
    df[field] = names.str.split().str.join(" ").str.capitalize()
    return df


def remove_taxa(df: pd.DataFrame, field: str, reference: TaxaReference) -> pd.DataFrame:
    """Drop rows whose name is in the reference removal list."""
    _require_field(df, field)
    keep = ~df[field].isin(reference.remove)
    logger.info(f"Removing {int((~keep).sum())} of {len(df)} taxa")
    return df[keep].copy()


def combine_taxa(df: pd.DataFrame, field: str, reference: TaxaReference) -> pd.DataFrame:
    """Rename taxa to their combined name.

    Combinations are applied in reference order, so a later combination can
    re-map the result of an earlier one.
    """
    _require_field(df, field)
    names = df[field].copy()
    for combination in reference.combine:
        names = names.mask(names == combination.source, combination.target)

    df = df.copy()
    df[field] = names
    return df


def get_aphia(
    df: pd.DataFrame,
    field: str,
    reference: TaxaReference,
    lookup: TaxonLookup,
) -> pd.DataFrame:
    """Attach the WoRMS AphiaID of each name in an "aphiaID" column.

    Names that WoRMS cannot match, or matches ambiguously, are looked up in
    the reference AphiaID table; names missing from both stay null.
    """
    _require_field(df, field)
    names = df[field]

    ids = {name: lookup.aphia_id(name) for name in names.dropna().unique()}
    ids = {
        name: aphia_id
        for name, aphia_id in ids.items()
        if aphia_id is not None and aphia_id != CONSTANTS.AMBIGUOUS_APHIA_ID
    }

    aphia = names.map(ids)
    missing = aphia.isna()
    aphia[missing] = names[missing].map(reference.aphia)

    unresolved = int(aphia.isna().sum())
    if unresolved:
        logger.warning(f"No AphiaID found for {unresolved} of {len(df)} taxa")

    df = df.copy()
    df[APHIA_COLUMN] = pd.to_numeric(aphia).astype("Int64")
    return df


def get_classification(
    df: pd.DataFrame,
    lookup: TaxonLookup,
    aphia_field: str = APHIA_COLUMN,
    ranks: Iterable[str] = DEFAULT_RANKS,
) -> pd.DataFrame:
    """Add one column per taxonomic rank from the classification service.

    Rows without an AphiaID, or whose classification lacks a rank, get null.
    """
    _require_field(df, aphia_field)
    ids = df[aphia_field]
    classifications = {
        int(aphia_id): lookup.classification(int(aphia_id)) for aphia_id in ids.dropna().unique()
    }

    table = pd.DataFrame.from_dict(classifications, orient="index")

    df = df.copy()
    for rank in ranks:
        df[rank] = ids.map(table[rank]) if rank in table.columns else None
    return df


def _clean_pattern(fragments: Iterable[str]) -> re.Pattern | None:
    """Compile all clean fragments into one whitespace-delimited alternation.

    Lookarounds leave the delimiting spaces in place so adjacent qualifiers
    ("sp. spp.") are all removed in a single pass.
    """
    parts = [f"(?:{fragment.strip()})" for fragment in fragments if fragment.strip()]
    if not parts:
        return None
    return re.compile(r"(?<=\s)(?:" + "|".join(parts) + r")(?=\s)", re.IGNORECASE)


def _parse_steps(review: Iterable[str | ReviewStep]) -> set[ReviewStep]:
    if isinstance(review, str | ReviewStep):
        review = [review]

    steps = set()
    unknown = []
    for step in review:
        if isinstance(step, ReviewStep):
            steps.add(step)
        elif step in {s.value for s in ReviewStep}:
            steps.add(ReviewStep(step))
        else:
            unknown.append(str(step))

    if unknown:
        msg = (
            f"Unknown review step(s): {', '.join(unknown)}. "
            f"Supported: {', '.join(s.value for s in ReviewStep)}"
        )
        raise InvalidInputError(msg, [ValidationError(message=msg, field="review")])
    return steps


def _require_field(df: pd.DataFrame, field: str) -> None:
    if field not in df.columns:
        msg = f"Column '{field}' not found in species list"
        raise InvalidInputError(msg, [ValidationError(message=msg, field=field)])


def _default_reference() -> TaxaReference:
    reference_dir = DEFAULT_TAXONOMY_CONFIG.reference_dir
    if reference_dir is None:
        msg = "No taxonomy reference data: pass reference= or set TAXA_REFERENCE_DIR"
        raise InvalidInputError(msg, [ValidationError(message=msg, field="reference")])
    return TaxaReference.from_csv_dir(reference_dir)
