"""Occurrence search and media flattening.

One GBIF occurrence carries zero or more media items, and a media item can
list several identifiers.  The search stage turns that into a flat table:
one ``FlattenedRow`` per usable image URL, each repeating the occurrence's
scalar fields.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from virtual_herbarium.datasources.gbif import citation, client
from virtual_herbarium.schemas import Coordinates, SearchQuery

#: GBIF occurrence field -> FlattenedRow attribute.
OCCURRENCE_FIELDS = {
    "key": "key",
    "gbifID": "gbif_id",
    "scientificName": "scientific_name",
    "species": "species",
    "institutionCode": "institution_code",
    "country": "country",
    "eventDate": "event_date",
    "rightsHolder": "rights_holder",
}

#: Columns added by flattening, in output order.
DERIVED_FIELDS = {
    "license": "license",
    "media_url": "media_url",
    "citation_doi": "citation_doi",
}

DEFAULT_BUFFER_DISTANCE = 1.0

MANIFEST_MARKER = "manifest"
TRAILING_MARKER = "gbif"
EXCLUDED_HOST = "inaturalist"

# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class FlattenedRow:
    """One (occurrence, image URL) pair.

    Every column is always present; ``None`` marks a value the occurrence did
    not report.  Scalar occurrence fields without a dedicated attribute are
    kept in ``extra`` under their GBIF names.
    """

    media_url: str | None = None
    license: str | None = None
    key: int | None = None
    gbif_id: str | None = None
    scientific_name: str | None = None
    species: str | None = None
    institution_code: str | None = None
    country: str | None = None
    event_date: str | None = None
    rights_holder: str | None = None
    citation_doi: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> FlattenedRow:
        """Build a row from a mapping keyed by GBIF column names."""
        names = {**OCCURRENCE_FIELDS, **DERIVED_FIELDS}
        known = {attr: record.get(col) for col, attr in names.items()}
        key = known["key"]
        if key is not None and key != "":
            known["key"] = int(key)
        else:
            known["key"] = None
        if known["gbif_id"] is not None:
            known["gbif_id"] = str(known["gbif_id"])
        extra = {k: v for k, v in record.items() if k not in names}
        return cls(**known, extra=extra)

    def as_record(self) -> dict[str, Any]:
        """Return the row keyed by GBIF column names, derived columns last."""
        record: dict[str, Any] = {}
        for col, attr in OCCURRENCE_FIELDS.items():
            record[col] = getattr(self, attr)
        record.update(self.extra)
        for col, attr in DERIVED_FIELDS.items():
            record[col] = getattr(self, attr)
        return record


# =============================================================================
# Query building
# =============================================================================


def _fmt(value: float) -> str:
    return repr(round(float(value), 6))


def wkt_square_polygon(lat: float, lon: float, buffer_distance: float) -> str:
    """Square WKT polygon centred on (lat, lon), ``buffer_distance`` degrees to each side.

    Vertices are listed counter-clockwise, as GBIF expects.
    """
    west, east = _fmt(lon - buffer_distance), _fmt(lon + buffer_distance)
    south, north = _fmt(lat - buffer_distance), _fmt(lat + buffer_distance)
    return (
        f"POLYGON(({west} {south}, {east} {south}, {east} {north}, "
        f"{west} {north}, {west} {south}))"
    )


def resolve_basis_of_record(search_type: str) -> str:
    """Map a shorthand selector to GBIF's basisOfRecord; unknown values pass through."""
    return client.BASIS_OF_RECORD.get(search_type, search_type)


def build_search_params(query: SearchQuery) -> dict[str, Any]:
    """Translate a ``SearchQuery`` into occurrence/search parameters."""
    geometry = None
    kingdom_key = None
    if query.coordinates is not None:
        buffer_distance = query.buffer_distance or DEFAULT_BUFFER_DISTANCE
        geometry = wkt_square_polygon(query.coordinates.lat, query.coordinates.lon, buffer_distance)
        kingdom_key = client.PLANTAE

    return {
        "scientificName": query.taxon_name,
        "mediaType": client.STILL_IMAGE,
        "basisOfRecord": resolve_basis_of_record(query.search_type),
        "geometry": geometry,
        "kingdomKey": kingdom_key,
        **query.filters,
    }


# =============================================================================
# Flattening
# =============================================================================


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    return [value]


def clean_media_url(url: str) -> str:
    """Strip the redundant ``gbif`` marker GBIF sometimes appends to a URL."""
    if url.endswith(TRAILING_MARKER):
        return url[: -len(TRAILING_MARKER)]
    return url


def media_candidates(media_item: Mapping[str, Any]) -> list[tuple[str | None, str | None]]:
    """Return ``(license, url)`` pairs for one media item.

    Manifest identifiers are dropped before pairing, so the n-th surviving
    URL is paired with the n-th license value.
    """
    urls = [
        url
        for url in _as_list(media_item.get("identifier"))
        if url is None or MANIFEST_MARKER not in str(url)
    ]
    licenses = _as_list(media_item.get("license"))

    pairs: list[tuple[str | None, str | None]] = []
    for i, url in enumerate(urls):
        cleaned = clean_media_url(str(url)) if url is not None else None
        license_ = licenses[i] if i < len(licenses) else None
        pairs.append((license_, cleaned))
    return pairs


def flatten_occurrence(record: Mapping[str, Any]) -> list[FlattenedRow]:
    """Expand one occurrence into one row per candidate image URL (unfiltered)."""
    scalars = {k: v for k, v in record.items() if not isinstance(v, list | dict)}
    base = FlattenedRow.from_record(scalars)

    rows: list[FlattenedRow] = []
    for media_item in record.get("media") or []:
        if "identifier" not in media_item:
            continue
        for license_, url in media_candidates(media_item):
            rows.append(
                FlattenedRow(
                    **{attr: getattr(base, attr) for attr in OCCURRENCE_FIELDS.values()},
                    license=license_,
                    media_url=url,
                    extra=dict(base.extra),
                )
            )
    return rows


def is_usable(row: FlattenedRow) -> bool:
    """True when the row has a URL that is not hosted by iNaturalist."""
    if row.media_url is not None and EXCLUDED_HOST in row.media_url:
        return False
    return bool(row.media_url)


def flatten_occurrences(records: Iterable[Mapping[str, Any]]) -> list[FlattenedRow]:
    """Flatten a batch of occurrences and drop rows without a usable image URL."""
    rows: list[FlattenedRow] = []
    for record in records:
        rows.extend(flatten_occurrence(record))
    return [row for row in rows if is_usable(row)]


# =============================================================================
# API Fetching
# =============================================================================


def search_specimen_metadata(
    taxon_name: str | None = None,
    coordinates: Coordinates | tuple[float, float] | None = None,
    buffer_distance: float | None = None,
    limit: int = 500,
    verbose: bool = True,
    search_type: str = "herbarium",
    user: str | None = None,
    pwd: str | None = None,
    email: str | None = None,
    **filters: Any,
) -> list[FlattenedRow]:
    """
    Search GBIF for occurrences with images and flatten them to one row per image.

    Args:
        taxon_name: Scientific name to search for.
        coordinates: ``(lat, lon)`` centre of a square search area.
        buffer_distance: Half-width of the square, in degrees (default 1).
        limit: Maximum number of occurrences to read.
        verbose: Print how many rows were found.
        search_type: ``"herbarium"``, ``"cs"`` or a raw GBIF basisOfRecord value.
        user: GBIF username. With ``pwd`` and ``email`` it triggers a formal
            download request whose DOI is added to every row.
        pwd: GBIF password.
        email: GBIF notification email.
        **filters: Extra occurrence/search parameters passed through unchanged.

    Returns:
        List of FlattenedRow objects.
    """
    if coordinates is not None and not isinstance(coordinates, Coordinates):
        lat, lon = coordinates
        coordinates = Coordinates(lat=lat, lon=lon)

    query = SearchQuery(
        taxon_name=taxon_name,
        coordinates=coordinates,
        buffer_distance=buffer_distance,
        limit=limit,
        search_type=search_type,
        filters=filters,
    )

    records = client.search_occurrences(build_search_params(query), limit=query.limit)
    rows = flatten_occurrences(records)

    if user and pwd and email:
        gbif_ids = [str(r["gbifID"]) for r in records if r.get("gbifID") is not None]
        doi = citation.request_citation_doi(gbif_ids, user=user, pwd=pwd, email=email)
        rows = citation.attach_citation(rows, doi)

    if verbose:
        print(f"{len(rows)} records of {taxon_name} found with media data.")

    return rows
