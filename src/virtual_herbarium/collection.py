"""
Download specimen images and keep a results table up to date.

Rows are processed one at a time, in input order:

1. fetch ``media_url`` to ``<dir>/<Genus_species|indet>_<key>.jpeg`` (one
   attempt, then a fixed sleep whatever the outcome);
2. measure the file (byte size, megapixels);
3. optionally recompress it at a JPEG quality, or else downscale it under a
   megapixel cap;
4. rewrite the whole results table.

A failure at any step marks that row ``failed`` with the error text and the
loop moves on.  Measurements taken before a failed post-processing step are
kept.  Two rows with the same species and key share a file name; the later
one overwrites the earlier.
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import requests

from virtual_herbarium import images
from virtual_herbarium.datasources.gbif.occurrences import FlattenedRow
from virtual_herbarium.schemas import DownloadOptions, Status
from virtual_herbarium.services.http import image_session
from virtual_herbarium.store import table_path, write_results_table

CHUNK_SIZE = 64 * 1024
UNKNOWN_SPECIES = "indet"
UNKNOWN_KEY = "NA"

FETCH_ERRORS = (requests.RequestException, OSError, ValueError)
PROCESSING_ERRORS = (OSError, ValueError, ZeroDivisionError)

# =============================================================================
# Data Model
# =============================================================================


@dataclass
class ResultRow:
    """Download outcome for one metadata row.

    Created for the whole batch before the first download and filled in
    as each image is processed; ``status`` stays ``None`` while pending.
    """

    scientific_name: str | None = None
    gbif_id: str | None = None
    institution_code: str | None = None
    event_date: str | None = None
    country: str | None = None
    license: str | None = None
    rights_holder: str | None = None
    original_filesize: int | None = None
    megapixels: float | None = None
    status: Status | None = None
    error_message: str | None = None

    @classmethod
    def from_row(cls, row: FlattenedRow) -> ResultRow:
        return cls(
            scientific_name=row.scientific_name,
            gbif_id=row.gbif_id,
            institution_code=row.institution_code,
            event_date=row.event_date,
            country=row.country,
            license=row.license,
            rights_holder=row.rights_holder,
        )

    def mark_failed(self, exc: BaseException) -> None:
        self.status = Status.FAILED
        self.error_message = str(exc) or repr(exc)

    def as_record(self) -> dict[str, object]:
        """Row keyed by results-table column names."""
        return {
            "scientificName": self.scientific_name,
            "gbifID": self.gbif_id,
            "institutionCode": self.institution_code,
            "eventDate": self.event_date,
            "country": self.country,
            "license": self.license,
            "rightsHolder": self.rights_holder,
            "original_filesize": self.original_filesize,
            "megapixels": self.megapixels,
            "status": self.status.value if self.status is not None else None,
            "error_message": self.error_message,
        }


# =============================================================================
# Fetching
# =============================================================================


def destination_path(row: FlattenedRow, dir_name: Path) -> Path:
    """File the row's image is saved to."""
    species = (row.species or UNKNOWN_SPECIES).replace(" ", "_")
    key = row.key if row.key is not None else UNKNOWN_KEY
    return dir_name / f"{species}_{key}.jpeg"


def fetch_image(url: str | None, dest: Path, timeout: float) -> Path:
    """Download ``url`` to ``dest`` in a single attempt.

    Bytes are streamed to ``<dest>.part`` and renamed on success, so a
    failed download never leaves a file at ``dest``.
    """
    if not url:
        msg = "Row has no media_url"
        raise ValueError(msg)

    part = dest.with_name(dest.name + ".part")
    try:
        with image_session.get(url, timeout=timeout, stream=True) as resp:
            resp.raise_for_status()
            with part.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
    except Exception:
        part.unlink(missing_ok=True)
        raise
    os.replace(part, dest)
    return dest


def _process_row(row: FlattenedRow, result: ResultRow, options: DownloadOptions) -> None:
    dest = destination_path(row, options.dir_name)

    try:
        fetch_image(row.media_url, dest, options.timeout_limit)
    except FETCH_ERRORS as exc:
        result.mark_failed(exc)
        return
    finally:
        time.sleep(options.sleep)

    result.status = Status.SUCCEEDED
    try:
        info = images.measure(dest)
    except PROCESSING_ERRORS as exc:
        result.mark_failed(exc)
        return
    result.original_filesize = info.filesize
    result.megapixels = info.megapixels

    if options.resize is not None:
        try:
            images.recompress(dest, options.resize)
        except PROCESSING_ERRORS as exc:
            result.mark_failed(exc)
            return
        if options.verbose:
            print("resized")
    elif options.max_megapixels is not None and result.megapixels:
        try:
            percent = images.scale_percent(result.megapixels, options.max_megapixels)
            scaled = images.rescale(dest, percent)
        except PROCESSING_ERRORS as exc:
            result.mark_failed(exc)
            return
        result.megapixels = round(scaled.megapixels, 4)
        if options.verbose:
            print("image is now under indicated max megapixels")


def credit_message(results: Iterable[ResultRow]) -> str | None:
    """Acknowledgement line for the source collections, or None if none are known."""
    institutions: list[str] = []
    for result in results:
        code = result.institution_code
        if code is not None and code not in institutions:
            institutions.append(code)
    if not institutions:
        return None
    return (
        "Download completed! Don't forget to acknowledge the collections: "
        f"{', '.join(institutions)}; if you use the specimens in your research."
    )


def download_specimen_images(
    metadata: Iterable[FlattenedRow],
    dir_name: Path | str = Path("my_virtual_collection"),
    resize: int | None = None,
    max_megapixels: float | None = None,
    sleep: float = 2.0,
    result_file_name: Path | str = Path("download_results.csv"),
    timeout_limit: float = 300.0,
    verbose: bool = True,
) -> list[ResultRow]:
    """
    Download every row's image and record the outcome.

    Args:
        metadata: Rows from ``search_specimen_metadata`` (or built by hand).
        dir_name: Directory for the images; created if missing.
        resize: JPEG quality (1-100) to recompress each image with.
        max_megapixels: Downscale each image to just under this size.
            Ignored when ``resize`` is given.
        sleep: Seconds to wait after every download attempt.
        result_file_name: Results CSV; ``.csv`` is appended when the name
            has no suffix.
        timeout_limit: Per-image timeout in seconds.
        verbose: Print progress messages.

    Returns:
        One ResultRow per input row, in input order.

    Raises:
        ValueError: If ``metadata`` is empty.  Nothing is written.
    """
    rows = list(metadata)
    if not rows:
        msg = "No records to download in metadata."
        raise ValueError(msg)

    options = DownloadOptions(
        dir_name=Path(dir_name),
        resize=resize,
        max_megapixels=max_megapixels,
        sleep=sleep,
        result_file_name=table_path(result_file_name),
        timeout_limit=timeout_limit,
        verbose=verbose,
    )
    options.dir_name.mkdir(parents=True, exist_ok=True)

    results = [ResultRow.from_row(row) for row in rows]
    for row, result in zip(rows, results, strict=True):
        _process_row(row, result, options)
        write_results_table(options.result_file_name, results)

    message = credit_message(results)
    if message:
        print(message)

    return results
