"""CSV tables on disk.

Two tables are persisted:
  - metadata table: the flattened search result, one row per image URL.
    Written by the search stage so it can be reviewed or edited before
    downloading.
  - results table: one row per metadata row with download status.  Rewritten
    in full after every image so an interrupted run still leaves a complete,
    readable table.

Missing values are written as empty cells and read back as ``None``.
Rewrites go through a temporary file and ``os.replace`` so readers never
see a half-written table.
"""

from __future__ import annotations

import csv
import os
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from virtual_herbarium.datasources.gbif.occurrences import FlattenedRow

if TYPE_CHECKING:
    from virtual_herbarium.collection import ResultRow

RESULT_COLUMNS = (
    "scientificName",
    "gbifID",
    "institutionCode",
    "eventDate",
    "country",
    "license",
    "rightsHolder",
    "original_filesize",
    "megapixels",
    "status",
    "error_message",
)


def table_path(path: Path | str) -> Path:
    """Return ``path`` with a ``.csv`` suffix added when it has none."""
    path = Path(path)
    return path if path.suffix else path.with_suffix(".csv")


def write_table(path: Path, columns: Sequence[str], records: Iterable[Mapping[str, Any]]) -> Path:
    """Overwrite ``path`` with a header row plus one line per record.

    Returns:
        The path written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(columns), extrasaction="ignore")
        writer.writeheader()
        for record in records:
            writer.writerow(record)
    os.replace(tmp, path)
    return path


def read_table(path: Path) -> list[dict[str, Any]]:
    """Read a CSV written by ``write_table``; empty cells become ``None``."""
    with path.open(newline="", encoding="utf-8") as f:
        return [{k: (v if v != "" else None) for k, v in row.items()} for row in csv.DictReader(f)]


# =============================================================================
# Results table
# =============================================================================


def write_results_table(path: Path, rows: Sequence[ResultRow]) -> Path:
    """Rewrite the whole results table, pending rows included."""
    return write_table(path, RESULT_COLUMNS, (row.as_record() for row in rows))


# =============================================================================
# Metadata table
# =============================================================================


def write_metadata_table(path: Path, rows: Sequence[FlattenedRow]) -> Path:
    """Write flattened search results, keeping every column any row carries."""
    records = [row.as_record() for row in rows]
    columns: list[str] = []
    for record in records:
        for col in record:
            if col not in columns:
                columns.append(col)
    return write_table(path, columns, records)


def read_metadata_table(path: Path) -> list[FlattenedRow]:
    """Load a metadata table back into ``FlattenedRow`` objects."""
    return [FlattenedRow.from_record(record) for record in read_table(path)]
