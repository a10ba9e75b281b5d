"""Virtual Herbarium - build image collections from GBIF specimen records.

Architecture::

    datasources/   External APIs (GBIF occurrence search, citable downloads)
    collection.py  Image download loop with per-row status bookkeeping
    images.py      Pillow measurement, recompression and downscaling
    store.py       CSV tables (flattened metadata, download results)
    flows/         Prefect orchestration (search -> save -> download)
    services/      Shared utilities (HTTP sessions)

Data flow: GBIF search -> flattened rows (one per image) -> downloaded images
+ results table.

Typical use::

    from virtual_herbarium import download_specimen_images, search_specimen_metadata

    metadata = search_specimen_metadata(taxon_name="Vaccinium", coordinates=(42, -85))
    download_specimen_images(metadata, dir_name="my_virtual_collection", resize=75)
"""

__version__ = "0.1.0"

from virtual_herbarium.collection import ResultRow, download_specimen_images
from virtual_herbarium.config import Settings
from virtual_herbarium.datasources.gbif import FlattenedRow, search_specimen_metadata

__all__ = [
    "FlattenedRow",
    "ResultRow",
    "Settings",
    "__version__",
    "download_specimen_images",
    "search_specimen_metadata",
]
