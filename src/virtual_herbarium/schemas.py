"""
Input models and enums for the virtual herbarium pipeline.

Pydantic models validate caller options before any network call.  Row types
that flow through the pipeline (``FlattenedRow``, ``ResultRow``) are plain
dataclasses living next to the code that produces them.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

# =============================================================================
# Enums
# =============================================================================


class Status(StrEnum):
    """Outcome of one image download."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SearchType(StrEnum):
    """Shorthand record-type selectors understood by the search stage."""

    HERBARIUM = "herbarium"
    CITIZEN_SCIENCE = "cs"


# =============================================================================
# Search
# =============================================================================


class Coordinates(BaseModel):
    """Center point of a geographic search."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class SearchQuery(BaseModel):
    """Parameters of one occurrence search."""

    model_config = {"str_strip_whitespace": True}

    taxon_name: str | None = None
    coordinates: Coordinates | None = None
    buffer_distance: float | None = Field(default=None, gt=0)
    limit: int = Field(default=500, ge=1)
    search_type: str = SearchType.HERBARIUM
    filters: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Download
# =============================================================================


class DownloadOptions(BaseModel):
    """Options for the fetch-and-transform stage."""

    dir_name: Path = Path("my_virtual_collection")
    resize: int | None = Field(default=None, ge=1, le=100, description="JPEG quality")
    max_megapixels: float | None = Field(default=None, gt=0)
    sleep: float = Field(default=2.0, ge=0)
    result_file_name: Path = Path("download_results.csv")
    timeout_limit: float = Field(default=300.0, gt=0)
    verbose: bool = True
