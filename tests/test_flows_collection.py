"""
Tests for the end-to-end collection flow.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

from virtual_herbarium.collection import ResultRow
from virtual_herbarium.config import Settings
from virtual_herbarium.datasources.gbif.occurrences import FlattenedRow
from virtual_herbarium.flows import collection as flow_module
from virtual_herbarium.schemas import Status
from virtual_herbarium.store import read_metadata_table


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        metadata_file=tmp_path / "metadata",
        results_file=tmp_path / "results.csv",
        output_dir=tmp_path / "images",
        sleep_seconds=0,
        search_limit=25,
    )


class TestSaveMetadata:
    """Persisting the flattened search output."""

    def test_appends_csv_suffix(self, tmp_path: Path) -> None:
        rows = [FlattenedRow(media_url="https://a.org/1.jpg", key=1)]
        path = flow_module.save_metadata.fn(rows, tmp_path / "meta")
        assert path == tmp_path / "meta.csv"
        assert read_metadata_table(path) == rows


class TestBuildCollection:
    """Flow wiring with the tasks stubbed out."""

    @patch("virtual_herbarium.flows.collection.download_images")
    @patch("virtual_herbarium.flows.collection.save_metadata")
    @patch("virtual_herbarium.flows.collection.search_metadata")
    def test_counts_outcomes(
        self,
        mock_search: Mock,
        mock_save: Mock,
        mock_download: Mock,
        tmp_path: Path,
    ) -> None:
        rows = [
            FlattenedRow(media_url="https://a.org/1.jpg", key=1),
            FlattenedRow(media_url="https://a.org/2.jpg", key=2),
        ]
        mock_search.return_value = rows
        mock_save.return_value = tmp_path / "metadata.csv"
        mock_download.return_value = [
            ResultRow(gbif_id="1", status=Status.SUCCEEDED),
            ResultRow(gbif_id="2", status=Status.FAILED, error_message="404"),
        ]

        with patch(
            "virtual_herbarium.flows.collection.get_settings",
            return_value=_settings(tmp_path),
        ):
            result = flow_module.build_collection.fn(taxon_name="Vaccinium", max_megapixels=5.0)

        assert result["rows"] == 2
        assert result["succeeded"] == 1
        assert result["failed"] == 1
        assert result["results_file"] == str(tmp_path / "results.csv")
        search_args = mock_search.call_args.args
        assert search_args[0] == "Vaccinium"
        assert search_args[3] == 25
        assert search_args[4] == "herbarium"
        download_args = mock_download.call_args.args
        assert download_args[1] == tmp_path / "images"
        assert download_args[3] == 5.0

    @patch("virtual_herbarium.flows.collection.download_images")
    @patch("virtual_herbarium.flows.collection.save_metadata")
    @patch("virtual_herbarium.flows.collection.search_metadata")
    def test_no_rows_skips_download(
        self,
        mock_search: Mock,
        mock_save: Mock,
        mock_download: Mock,
        tmp_path: Path,
    ) -> None:
        mock_search.return_value = []
        mock_save.return_value = tmp_path / "metadata.csv"

        with patch(
            "virtual_herbarium.flows.collection.get_settings",
            return_value=_settings(tmp_path),
        ):
            result = flow_module.build_collection.fn(taxon_name="Nonexistent")

        assert result["rows"] == 0
        assert "results_file" not in result
        mock_download.assert_not_called()
