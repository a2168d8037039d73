"""
Tests — CSV H3 Indexer
=======================
End-to-end tests for :class:`~src.csv_h3_indexer.indexer.CsvH3Indexer`.

Test strategy:
- Write small CSV inputs into ``tmp_path`` and run the full
  validate → process → report pipeline.
- Read outputs back with pandas (``dtype=str``, ``keep_default_na=False``)
  so original field text and empty indexes compare exactly.
"""

from __future__ import annotations

import os
from pathlib import Path

import h3
import pandas as pd
import pytest

from src.csv_h3_indexer.indexer import (
    CsvH3Indexer,
    IndexerConfig,
    IndexResult,
    default_output_path,
)
from src.csv_h3_indexer.writer import RecordWriter
from shared.python.exceptions import (
    ColumnNotFoundError,
    InputValidationError,
    OutputExistsError,
    OutputWriteError,
    ProcessingError,
    ResolutionError,
    SameColumnError,
)


def _read(path: Path, **kwargs) -> pd.DataFrame:
    return pd.read_csv(path, dtype=str, keep_default_na=False, **kwargs)


@pytest.fixture()
def cities_csv(write_text) -> Path:
    return write_text(
        "cities.csv",
        "name,latitude,longitude\n"
        "New York,40.7128,-74.0060\n"
        "London,51.5074,-0.1278\n"
        "Tokyo,35.6762,139.6503\n",
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestCsvH3IndexerRun:
    def test_indexes_every_row(self, cities_csv: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(cities_csv, out)
        tool.run()

        df = _read(out)
        assert list(df.columns) == ["name", "latitude", "longitude", "h3_index"]
        assert list(df["name"]) == ["New York", "London", "Tokyo"]
        for _, row in df.iterrows():
            cell = row["h3_index"]
            assert h3.is_valid_cell(cell)
            assert h3.get_resolution(cell) == 8
            assert cell == h3.latlng_to_cell(
                float(row["latitude"]), float(row["longitude"]), 8
            )

        result = tool.result
        assert isinstance(result, IndexResult)
        assert (result.total_records, result.valid_records, result.invalid_records) == (3, 3, 0)
        assert result.malformed_rows == 0
        assert result.output_path == out

    def test_out_of_range_row_kept_with_empty_index(
        self, write_text, tmp_path: Path
    ) -> None:
        path = write_text(
            "two.csv", "name,latitude,longitude\nNYC,40.7128,-74.0060\nBad,91.0,0.0\n"
        )
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out)
        tool.run()

        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "name,latitude,longitude,h3_index"
        assert lines[2] == "Bad,91.0,0.0,"
        assert (tool.result.total_records, tool.result.valid_records) == (2, 1)
        assert tool.result.invalid_records == 1

    def test_headerless_rows_too_short_are_all_dropped(
        self, write_text, tmp_path: Path
    ) -> None:
        path = write_text("single.csv", "40.7\n51.5\n")
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig("0", "1", has_headers=False))
        tool.run()

        assert out.read_text(encoding="utf-8") == ""
        assert tool.result.total_records == 0
        assert tool.result.malformed_rows == 2

    def test_bad_coordinates_keep_row_with_empty_index(
        self, write_text, tmp_path: Path
    ) -> None:
        path = write_text(
            "mixed.csv",
            "id,lat,lng\n"
            "1,40.7128,-74.0060\n"
            "2,,-74.0\n"
            "3,abc,10\n"
            "4,95,0\n"
            "5,0,181\n",
        )
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig(lat_column="lat", lng_column="lng"))
        tool.run()

        df = _read(out)
        assert list(df["id"]) == ["1", "2", "3", "4", "5"]
        assert df.loc[0, "h3_index"] != ""
        assert list(df["h3_index"].iloc[1:]) == ["", "", "", ""]
        assert list(df["lat"]) == ["40.7128", "", "abc", "95", "0"]
        assert (tool.result.total_records, tool.result.valid_records) == (5, 1)
        assert tool.result.invalid_records == 4

    def test_malformed_rows_are_dropped(self, write_text, tmp_path: Path) -> None:
        path = write_text("short.csv", "a,b,lat,lng\n1,2,10,20\nonly,two\n3,4,30,40\n")
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig(lat_column="lat", lng_column="lng"))
        tool.run()

        assert list(_read(out)["a"]) == ["1", "3"]
        assert tool.result.total_records == 2
        assert tool.result.valid_records == 2
        assert tool.result.malformed_rows == 1

    def test_headerless_positional_columns(self, write_text, tmp_path: Path) -> None:
        path = write_text("raw.csv", "40.7128,-74.0060,nyc\n51.5074,-0.1278,ldn\n")
        out = tmp_path / "out.csv"
        config = IndexerConfig(lat_column="0", lng_column="1", has_headers=False)
        CsvH3Indexer(path, out, config).run()

        df = _read(out, header=None)
        assert df.shape == (2, 4)
        assert df.iloc[0, 3] == h3.latlng_to_cell(40.7128, -74.0060, 8)

    def test_alias_resolution_and_resolution_setting(
        self, write_text, tmp_path: Path
    ) -> None:
        path = write_text("xy.csv", "x,y\n-122.0553238,37.3615593\n")
        out = tmp_path / "out.csv"
        config = IndexerConfig(lat_column="", lng_column="", resolution=5)
        CsvH3Indexer(path, out, config).run()
        assert _read(out).loc[0, "h3_index"] == "85283473fffffff"

    def test_tab_separated_input(self, write_text, tmp_path: Path) -> None:
        path = write_text("pts.tsv", "lat\tlng\n10\t20\n")
        out = tmp_path / "out.tsv"
        CsvH3Indexer(path, out, IndexerConfig("lat", "lng", delimiter="\t")).run()
        assert out.read_text(encoding="utf-8").splitlines()[0] == "lat\tlng\th3_index"

    def test_header_only_input(self, write_text, tmp_path: Path) -> None:
        path = write_text("empty_rows.csv", "lat,lng\n")
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig("lat", "lng"))
        tool.run()
        assert out.read_text(encoding="utf-8") == "lat,lng,h3_index\n"
        assert tool.result.total_records == 0

    def test_row_count_preserved(self, write_text, tmp_path: Path) -> None:
        rows = "".join(f"{i},{(i % 170) - 85}.5,{(i % 350) - 175}.25\n" for i in range(2500))
        path = write_text("many.csv", "id,lat,lng\n" + rows)
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig("lat", "lng"), verbose=True)
        tool.run()

        df = _read(out)
        assert len(df) == 2500
        assert list(df["id"]) == [str(i) for i in range(2500)]
        assert tool.result.valid_records == 2500

    def test_repeat_runs_are_identical(self, cities_csv: Path, tmp_path: Path) -> None:
        first, second = tmp_path / "a.csv", tmp_path / "b.csv"
        CsvH3Indexer(cities_csv, first).run()
        CsvH3Indexer(cities_csv, second).run()
        assert first.read_bytes() == second.read_bytes()

    def test_default_output_path(self, cities_csv: Path) -> None:
        tool = CsvH3Indexer(cities_csv)
        assert tool.output_path == cities_csv.with_name("cities_with_h3.csv")
        tool.run()
        assert tool.output_path.exists()

    def test_result_is_none_before_run(self, cities_csv: Path) -> None:
        assert CsvH3Indexer(cities_csv).result is None

    def test_summary(self, cities_csv: Path, tmp_path: Path) -> None:
        tool = CsvH3Indexer(cities_csv, tmp_path / "out.csv")
        tool.run()
        assert "Indexed 3/3 records" in tool.result.summary()

    def test_elapsed_recorded(self, cities_csv: Path, tmp_path: Path) -> None:
        tool = CsvH3Indexer(cities_csv, tmp_path / "out.csv")
        assert tool.elapsed is None
        tool.run()
        assert tool.elapsed is not None and tool.elapsed >= 0
        assert tool.result.elapsed == tool.elapsed

    def test_non_utf8_bytes_copied_verbatim(self, tmp_path: Path) -> None:
        path = tmp_path / "latin1.csv"
        path.write_bytes(
            b"name,latitude,longitude\n"
            b"NYC,40.7128,-74.0060\n"
            b"S\xe3o Paulo,-23.55,-46.63\n"
            b"London,51.5074,-0.1278\n"
        )
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out)
        tool.run()

        lines = out.read_bytes().split(b"\n")
        cell = h3.latlng_to_cell(-23.55, -46.63, 8).encode("ascii")
        assert lines[2] == b"S\xe3o Paulo,-23.55,-46.63," + cell
        assert (tool.result.total_records, tool.result.valid_records) == (3, 3)


class TestCsvH3IndexerValidation:
    def test_missing_input(self, tmp_path: Path) -> None:
        tool = CsvH3Indexer(tmp_path / "nope.csv", tmp_path / "out.csv")
        with pytest.raises(InputValidationError, match="not found"):
            tool.run()

    def test_missing_column_creates_no_output(self, write_text, tmp_path: Path) -> None:
        path = write_text("in.csv", "name,value\nA,1\n")
        out = tmp_path / "nested" / "out.csv"
        tool = CsvH3Indexer(path, out, IndexerConfig("lat_col", "lng_col"))
        with pytest.raises(ColumnNotFoundError) as excinfo:
            tool.run()
        assert excinfo.value.field == "latitude"
        assert excinfo.value.available == ["name", "value"]
        assert not out.exists()
        assert not out.parent.exists()

    def test_same_column(self, write_text, tmp_path: Path) -> None:
        path = write_text("in.csv", "coord,other\n1,2\n")
        tool = CsvH3Indexer(path, tmp_path / "out.csv", IndexerConfig("coord", "coord"))
        with pytest.raises(SameColumnError):
            tool.run()

    def test_positional_index_out_of_range(self, write_text, tmp_path: Path) -> None:
        path = write_text("in.csv", "1,2\n")
        config = IndexerConfig("0", "5", has_headers=False)
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(path, out, config)
        tool.run()
        # Every row is too short to reach column 5.
        assert tool.result.malformed_rows == 1
        assert out.read_text(encoding="utf-8") == ""

    @pytest.mark.parametrize("resolution", [-1, 16])
    def test_bad_resolution(self, cities_csv: Path, tmp_path: Path, resolution: int) -> None:
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(cities_csv, out, IndexerConfig(resolution=resolution))
        with pytest.raises(ResolutionError):
            tool.run()
        assert not out.exists()

    def test_existing_output_untouched(self, cities_csv: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.csv"
        out.write_text("precious", encoding="utf-8")
        with pytest.raises(OutputExistsError):
            CsvH3Indexer(cities_csv, out).run()
        assert out.read_text(encoding="utf-8") == "precious"

    def test_overwrite(self, cities_csv: Path, tmp_path: Path) -> None:
        out = tmp_path / "out.csv"
        out.write_text("stale", encoding="utf-8")
        CsvH3Indexer(cities_csv, out, IndexerConfig(overwrite=True)).run()
        assert len(_read(out)) == 3

    def test_output_same_as_input(self, cities_csv: Path) -> None:
        tool = CsvH3Indexer(cities_csv, cities_csv, IndexerConfig(overwrite=True))
        with pytest.raises(InputValidationError, match="same file"):
            tool.run()

    def test_empty_input_with_headers(self, write_text, tmp_path: Path) -> None:
        path = write_text("empty.csv", "")
        with pytest.raises(InputValidationError, match="empty"):
            CsvH3Indexer(path, tmp_path / "out.csv").run()

    def test_bad_delimiter(self, cities_csv: Path, tmp_path: Path) -> None:
        with pytest.raises(InputValidationError):
            CsvH3Indexer(cities_csv, tmp_path / "out.csv", IndexerConfig(delimiter=";;")).run()


class TestCsvH3IndexerSinkFailure:
    def test_write_failure_raises_processing_error(
        self, cities_csv: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        original = RecordWriter.write_record

        def failing_write(self, record):
            if record.line_number == 3:
                raise OSError("No space left on device")
            original(self, record)

        monkeypatch.setattr(RecordWriter, "write_record", failing_write)
        out = tmp_path / "out.csv"
        tool = CsvH3Indexer(cities_csv, out)
        with pytest.raises(ProcessingError) as excinfo:
            tool.run()

        assert excinfo.value.line_number == 3
        assert isinstance(excinfo.value.__cause__, OSError)
        assert tool.result is None
        # Rows written before the failure stay on disk.
        assert "New York" in out.read_text(encoding="utf-8")


class TestCsvH3IndexerFlushFailure:
    def test_fsync_failure_fails_the_job(
        self, cities_csv: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def failing_fsync(fd: int) -> None:
            raise OSError("Input/output error")

        monkeypatch.setattr(os, "fsync", failing_fsync)
        tool = CsvH3Indexer(cities_csv, tmp_path / "out.csv")
        with pytest.raises(OutputWriteError, match="flush failed"):
            tool.run()
        assert tool.result is None
        assert tool.elapsed is None


def test_default_output_path_helper() -> None:
    assert default_output_path(Path("data/stores.csv")) == Path("data/stores_with_h3.csv")
    assert default_output_path(Path("points.tsv"), "_h3") == Path("points_h3.tsv")
