"""GBIF specimen occurrence data source.

Searches GBIF for occurrences with still images and flattens their media
into one row per image URL.

Public API:
  - client: Low-level pygbif calls (paged search, formal downloads)
  - occurrences: FlattenedRow, flatten_occurrences, search_specimen_metadata
  - citation: request_citation_doi, extract_doi
"""

from virtual_herbarium.datasources.gbif.citation import extract_doi, request_citation_doi
from virtual_herbarium.datasources.gbif.client import PLANTAE
from virtual_herbarium.datasources.gbif.occurrences import (
    FlattenedRow,
    build_search_params,
    flatten_occurrence,
    flatten_occurrences,
    resolve_basis_of_record,
    search_specimen_metadata,
    wkt_square_polygon,
)

__all__ = [
    "PLANTAE",
    "FlattenedRow",
    "build_search_params",
    "extract_doi",
    "flatten_occurrence",
    "flatten_occurrences",
    "request_citation_doi",
    "resolve_basis_of_record",
    "search_specimen_metadata",
    "wkt_square_polygon",
]
