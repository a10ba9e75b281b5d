"""
GBIF API client.

Thin wrappers over the pygbif occurrence endpoints.  Everything that talks to
GBIF goes through here so tests can patch a single module.

API docs: https://techdocs.gbif.org/en/openapi/v1/occurrence
pygbif:   https://pygbif.readthedocs.io/en/latest/modules/occurrence.html
"""

from __future__ import annotations

from typing import Any

from pygbif import occurrences

# ---------------------------------------------------------------------------
# Taxon keys (GBIF backbone)
# ---------------------------------------------------------------------------
PLANTAE = 6

# ---------------------------------------------------------------------------
# Basis of record
# ---------------------------------------------------------------------------
PRESERVED_SPECIMEN = "PRESERVED_SPECIMEN"
HUMAN_OBSERVATION = "HUMAN_OBSERVATION"

#: Shorthand selectors; anything else is sent to GBIF as-is.
BASIS_OF_RECORD = {
    "herbarium": PRESERVED_SPECIMEN,
    "cs": HUMAN_OBSERVATION,
}

STILL_IMAGE = "StillImage"

# ---------------------------------------------------------------------------
# API configuration
# ---------------------------------------------------------------------------
MAX_PAGE_SIZE = 300  # occurrence/search maximum per request
DOWNLOAD_FORMAT = "SIMPLE_CSV"


def search_occurrences(params: dict[str, Any], *, limit: int = 500) -> list[dict[str, Any]]:
    """
    Search occurrences, paging with ``offset`` until ``limit`` records are read.

    ``None`` values in ``params`` are dropped before the call.

    Returns a flat list of occurrence dicts (``results`` concatenated).
    """
    query = {k: v for k, v in params.items() if v is not None}
    records: list[dict[str, Any]] = []
    offset = 0
    while len(records) < limit:
        page_size = min(MAX_PAGE_SIZE, limit - len(records))
        data = occurrences.search(limit=page_size, offset=offset, **query)
        results: list[dict[str, Any]] = data.get("results", [])
        records.extend(results)
        if not results or data.get("endOfRecords", True):
            break
        offset += len(results)
    return records[:limit]


def request_download(
    gbif_ids: list[str],
    *,
    user: str,
    pwd: str,
    email: str,
) -> str:
    """Submit a formal download for exactly ``gbif_ids``. Returns the download key."""
    predicate = {"type": "in", "key": "GBIF_ID", "values": [str(i) for i in gbif_ids]}
    key, _payload = occurrences.download(
        predicate,
        format=DOWNLOAD_FORMAT,
        user=user,
        pwd=pwd,
        email=email,
    )
    return str(key)


def get_download_meta(key: str) -> dict[str, Any]:
    """GET /occurrence/download/{key}: status, DOI and request details."""
    meta: dict[str, Any] = occurrences.download_meta(key)
    return meta
