"""Taxonomy review of species lists.

Exports:
- review_taxa: Run clean/remove/combine/aphia steps in order
- clean_taxa, remove_taxa, combine_taxa: Individual reference-list steps
- get_aphia, get_classification: WoRMS identifier and classification enrichment
- TaxonLookup, WormsLookup: Lookup protocol and its WoRMS implementation
"""

from ea_methods.taxonomy.lookup import TaxonLookup, WormsLookup
from ea_methods.taxonomy.review import (
    clean_taxa,
    combine_taxa,
    get_aphia,
    get_classification,
    remove_taxa,
    review_taxa,
)

__all__ = [
    "review_taxa",
    "clean_taxa",
    "remove_taxa",
    "combine_taxa",
    "get_aphia",
    "get_classification",
    "TaxonLookup",
    "WormsLookup",
]
