"""Citable download requests.

Publishing with GBIF data calls for a download DOI.  When credentials are
supplied the search stage asks GBIF for a formal download covering exactly
the occurrences it read and stamps the resulting DOI on every row.

DOI extraction is best effort: any failure yields ``None`` and the search
result is returned as-is.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

import requests
from pygbif.occurrences import GbifDownloadError

from virtual_herbarium.datasources.gbif import client

DOWNLOAD_ERRORS = (GbifDownloadError, requests.RequestException, KeyError, ValueError)

if TYPE_CHECKING:
    from virtual_herbarium.datasources.gbif.occurrences import FlattenedRow

_DOI_LINE = re.compile(r"^\s*DOI:\s*(\S+)\s*$", re.MULTILINE)


def extract_doi(response: Mapping[str, Any] | str | None) -> str | None:
    """Pull the DOI out of a download's metadata or its printed summary.

    Metadata dicts carry it under ``doi``; text responses carry a
    ``DOI: ...`` line.
    """
    if response is None:
        return None
    if isinstance(response, Mapping):
        doi = response.get("doi")
        return str(doi) if doi else None
    match = _DOI_LINE.search(response)
    return match.group(1) if match else None


def request_citation_doi(
    gbif_ids: list[str],
    *,
    user: str,
    pwd: str,
    email: str,
) -> str | None:
    """Request a formal download for ``gbif_ids`` and return its DOI, or None."""
    if not gbif_ids:
        return None
    try:
        key = client.request_download(gbif_ids, user=user, pwd=pwd, email=email)
        meta = client.get_download_meta(key)
    except DOWNLOAD_ERRORS as exc:
        print(f"Warning: GBIF download request failed, no citation DOI: {exc}", file=sys.stderr)
        return None

    doi = extract_doi(meta)
    if doi is None:
        print(f"Warning: no DOI found for GBIF download {key}", file=sys.stderr)
    return doi


def attach_citation(rows: list[FlattenedRow], doi: str | None) -> list[FlattenedRow]:
    """Return copies of ``rows`` sharing one ``citation_doi``."""
    return [replace(row, citation_doi=doi) for row in rows]
