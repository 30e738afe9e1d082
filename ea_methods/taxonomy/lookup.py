"""Remote taxonomic lookups against WoRMS (World Register of Marine Species).

The review functions only depend on the TaxonLookup protocol, so tests and
offline runs can pass any object with the same two methods.
"""

import logging
from typing import Any, Protocol

import pyworms
import requests

from ea_methods.config import CONSTANTS, DEFAULT_TAXONOMY_CONFIG, TaxonomyConfig
from ea_methods.validation.errors import TaxonLookupError

logger = logging.getLogger(__name__)


class TaxonLookup(Protocol):
    """Protocol for species identifier and classification services."""

    def aphia_id(self, name: str) -> int | None:
        """Return the AphiaID of a scientific name.

        Returns:
            The AphiaID, CONSTANTS.AMBIGUOUS_APHIA_ID when several records
            match, or None when nothing matches
        """
        ...

    def classification(self, aphia_id: int) -> dict[str, str]:
        """Return the classification of a taxon as {rank: scientific name}."""
        ...


class WormsLookup:
    """TaxonLookup backed by the WoRMS REST API through pyworms.

    Results are cached per instance, so repeated names in a review cost a
    single request.
    """

    def __init__(self, config: TaxonomyConfig = DEFAULT_TAXONOMY_CONFIG):
        self.marine_only = config.worms_marine_only
        self._ids: dict[str, int | None] = {}
        self._classifications: dict[int, dict[str, str]] = {}

    def aphia_id(self, name: str) -> int | None:
        if name in self._ids:
            return self._ids[name]

        try:
            records = pyworms.aphiaRecordsByName(name, like=False, marine_only=self.marine_only)
        except requests.RequestException as e:
            msg = f"WoRMS name lookup failed for '{name}': {e}"
            raise TaxonLookupError(msg) from e

        aphia_id = _select_aphia_id(records or [])
        logger.debug(f"WoRMS: {name} -> {aphia_id}")
        self._ids[name] = aphia_id
        return aphia_id

    def classification(self, aphia_id: int) -> dict[str, str]:
        if aphia_id in self._classifications:
            return self._classifications[aphia_id]

        try:
            tree = pyworms.aphiaClassificationByAphiaID(aphia_id)
        except requests.RequestException as e:
            msg = f"WoRMS classification lookup failed for AphiaID {aphia_id}: {e}"
            raise TaxonLookupError(msg) from e

        ranks = flatten_classification(tree or {})
        self._classifications[aphia_id] = ranks
        return ranks


def _select_aphia_id(records: list[dict[str, Any]]) -> int | None:
    """Pick the AphiaID of a name from its WoRMS records.

    A single record wins outright. With several, a single accepted record
    wins; otherwise the name is ambiguous.
    """
    if not records:
        return None
    if len(records) == 1:
        return int(records[0]["AphiaID"])

    accepted = {int(r["AphiaID"]) for r in records if r.get("status") == "accepted"}
    if len(accepted) == 1:
        return accepted.pop()
    return CONSTANTS.AMBIGUOUS_APHIA_ID


def flatten_classification(tree: dict[str, Any]) -> dict[str, str]:
    """Flatten a nested WoRMS classification ({rank, scientificname, child}) into {rank: name}."""
    ranks: dict[str, str] = {}
    node = tree
    while node:
        rank = node.get("rank")
        name = node.get("scientificname")
        if rank and name:
            ranks[rank] = name
        node = node.get("child")
    return ranks
