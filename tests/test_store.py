"""Tests for the CSV table store."""

from __future__ import annotations

from pathlib import Path

from virtual_herbarium.collection import ResultRow
from virtual_herbarium.datasources.gbif.occurrences import FlattenedRow
from virtual_herbarium.schemas import Status
from virtual_herbarium.store import (
    RESULT_COLUMNS,
    read_metadata_table,
    read_table,
    table_path,
    write_metadata_table,
    write_results_table,
    write_table,
)


class TestTablePath:
    """Suffix handling for table names."""

    def test_adds_csv(self) -> None:
        assert table_path("download_results") == Path("download_results.csv")

    def test_keeps_existing_suffix(self) -> None:
        assert table_path(Path("out/results.csv")) == Path("out/results.csv")


class TestWriteTable:
    """Generic CSV writes."""

    def test_header_and_rows(self, tmp_path: Path) -> None:
        records = [{"a": 1, "b": None}, {"a": 2, "b": "x"}]
        path = write_table(tmp_path / "t.csv", ["a", "b"], records)
        assert path.read_text().splitlines() == ["a,b", "1,", "2,x"]

    def test_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "t.csv"
        write_table(path, ["a"], [{"a": 1}, {"a": 2}])
        write_table(path, ["a"], [{"a": 3}])
        assert read_table(path) == [{"a": "3"}]

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        path = write_table(tmp_path / "deep" / "nested" / "t.csv", ["a"], [])
        assert path.exists()
        assert not (tmp_path / "deep" / "nested" / "t.csv.tmp").exists()

    def test_empty_cells_read_as_none(self, tmp_path: Path) -> None:
        path = write_table(tmp_path / "t.csv", ["a", "b"], [{"a": "x"}])
        assert read_table(path) == [{"a": "x", "b": None}]


class TestResultsTable:
    """Fixed-column results table."""

    def test_columns_and_values(self, tmp_path: Path) -> None:
        rows = [
            ResultRow(
                scientific_name="Quercus alba L.",
                gbif_id="101",
                institution_code="MO",
                original_filesize=2048,
                megapixels=12.5,
                status=Status.SUCCEEDED,
            ),
            ResultRow(gbif_id="102", status=Status.FAILED, error_message="timed out"),
            ResultRow(gbif_id="103"),
        ]
        path = write_results_table(tmp_path / "results.csv", rows)

        lines = path.read_text().splitlines()
        assert lines[0] == ",".join(RESULT_COLUMNS)
        table = read_table(path)
        assert len(table) == 3
        assert table[0]["status"] == "succeeded"
        assert table[0]["original_filesize"] == "2048"
        assert table[1]["error_message"] == "timed out"
        assert table[1]["megapixels"] is None
        assert table[2]["status"] is None


class TestMetadataTable:
    """Round trip of flattened search output."""

    def test_roundtrip(self, tmp_path: Path) -> None:
        rows = [
            FlattenedRow(
                media_url="https://a.org/1.jpg",
                license="CC0",
                key=11,
                gbif_id="11",
                species="Quercus alba",
                citation_doi="10.15468/dl.abc",
                extra={"basisOfRecord": "PRESERVED_SPECIMEN"},
            ),
            FlattenedRow(media_url="https://a.org/2.jpg", key=12, extra={"year": "1931"}),
        ]
        path = write_metadata_table(tmp_path / "metadata.csv", rows)

        loaded = read_metadata_table(path)

        assert loaded == rows
        assert loaded[0].extra["basisOfRecord"] == "PRESERVED_SPECIMEN"
        assert loaded[1].extra["year"] == "1931"
        assert loaded[1].species is None

    def test_header_has_union_of_columns(self, tmp_path: Path) -> None:
        rows = [
            FlattenedRow(media_url="https://a.org/1.jpg", extra={"a": 1}),
            FlattenedRow(media_url="https://a.org/2.jpg", extra={"b": 2}),
        ]
        header = write_metadata_table(tmp_path / "m.csv", rows).read_text().splitlines()[0]
        columns = header.split(",")
        assert "a" in columns
        assert "b" in columns
        assert "media_url" in columns
