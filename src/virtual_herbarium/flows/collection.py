"""
Prefect flow that builds a virtual collection end to end.

Searches GBIF, saves the flattened metadata table, then downloads every
image.  Each stage can also be run on its own (see ``cli.py``).

Run locally:
    python -m virtual_herbarium.flows.collection

Run with Prefect dashboard:
    prefect server start &
    python -m virtual_herbarium.flows.collection
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from prefect import flow, task

from virtual_herbarium.collection import ResultRow, download_specimen_images
from virtual_herbarium.config import get_settings
from virtual_herbarium.datasources.gbif import FlattenedRow, search_specimen_metadata
from virtual_herbarium.schemas import Status
from virtual_herbarium.store import table_path, write_metadata_table


@task(name="search-metadata", retries=2, retry_delay_seconds=5)
def search_metadata(
    taxon_name: str | None,
    coordinates: tuple[float, float] | None,
    buffer_distance: float | None,
    limit: int,
    search_type: str,
    filters: dict[str, Any],
) -> list[FlattenedRow]:
    """Search GBIF and flatten media, adding a citation DOI when credentials are set."""
    settings = get_settings()
    return search_specimen_metadata(
        taxon_name=taxon_name,
        coordinates=coordinates,
        buffer_distance=buffer_distance,
        limit=limit,
        search_type=search_type,
        user=settings.gbif_user,
        pwd=settings.gbif_pwd,
        email=settings.gbif_email,
        **filters,
    )


@task(name="save-metadata")
def save_metadata(rows: list[FlattenedRow], path: Path) -> Path:
    """Save the flattened metadata table."""
    return write_metadata_table(table_path(path), rows)


@task(name="download-images")
def download_images(
    rows: list[FlattenedRow],
    dir_name: Path,
    resize: int | None,
    max_megapixels: float | None,
    result_file_name: Path,
) -> list[ResultRow]:
    """Download and post-process every image (single attempt each)."""
    settings = get_settings()
    return download_specimen_images(
        rows,
        dir_name=dir_name,
        resize=resize,
        max_megapixels=max_megapixels,
        sleep=settings.sleep_seconds,
        result_file_name=result_file_name,
        timeout_limit=settings.timeout_seconds,
    )


@flow(name="build-virtual-collection", log_prints=True)
def build_collection(
    taxon_name: str | None = None,
    coordinates: tuple[float, float] | None = None,
    buffer_distance: float | None = None,
    limit: int | None = None,
    search_type: str | None = None,
    resize: int | None = None,
    max_megapixels: float | None = None,
    filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Search GBIF and download the matching specimen images.

    Paths, delays and defaults come from ``Settings``.

    Returns:
        Counts of rows found, downloaded and failed, plus output paths.
    """
    settings = get_settings()

    print(f"Searching GBIF for {taxon_name or 'all taxa'}...")
    rows = search_metadata(
        taxon_name,
        coordinates,
        buffer_distance,
        limit or settings.search_limit,
        search_type or settings.search_type,
        filters or {},
    )
    metadata_path = save_metadata(rows, settings.metadata_file)
    print(f"Saved {len(rows)} metadata rows to {metadata_path}")

    results: dict[str, Any] = {
        "rows": len(rows),
        "metadata_file": str(metadata_path),
        "succeeded": 0,
        "failed": 0,
    }
    if not rows:
        print("No images to download.")
        return results

    outcome = download_images(
        rows,
        settings.output_dir,
        resize,
        max_megapixels,
        settings.results_file,
    )
    results["succeeded"] = sum(1 for r in outcome if r.status == Status.SUCCEEDED)
    results["failed"] = sum(1 for r in outcome if r.status == Status.FAILED)
    results["results_file"] = str(table_path(settings.results_file))
    print(f"Downloaded {results['succeeded']} images ({results['failed']} failed)")
    return results


if __name__ == "__main__":
    result = build_collection(taxon_name="Vaccinium", coordinates=(42, -85))
    print(f"Flow complete: {result}")
