"""
Application settings.

Values come from environment variables (prefix ``VIRTUAL_HERBARIUM_``) or a
``.env`` file in the working directory.  GBIF credentials use the same
variable names pygbif reads on its own: ``GBIF_USER``, ``GBIF_PWD`` and
``GBIF_EMAIL``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration with defaults suitable for a first collection."""

    model_config = SettingsConfigDict(
        env_prefix="VIRTUAL_HERBARIUM_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "virtual-herbarium"
    app_env: str = "development"
    debug: bool = False

    # Search defaults
    search_limit: int = Field(default=500, ge=1)
    search_type: str = "herbarium"

    # Download defaults
    output_dir: Path = Path("my_virtual_collection")
    results_file: Path = Path("download_results.csv")
    metadata_file: Path = Path("specimen_metadata.csv")
    sleep_seconds: float = Field(default=2.0, ge=0)
    timeout_seconds: float = Field(default=300.0, gt=0)

    # GBIF account (only needed for citation DOIs)
    gbif_user: str | None = Field(default=None, validation_alias="GBIF_USER")
    gbif_pwd: str | None = Field(default=None, validation_alias="GBIF_PWD")
    gbif_email: str | None = Field(default=None, validation_alias="GBIF_EMAIL")

    @property
    def has_gbif_credentials(self) -> bool:
        return bool(self.gbif_user and self.gbif_pwd and self.gbif_email)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (read once)."""
    return Settings()
