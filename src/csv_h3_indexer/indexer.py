"""
CSV H3 Indexer — Core Module
=============================
Provides :class:`CsvH3Indexer`, which reads a delimited-text file with
latitude / longitude columns, computes the H3 cell of every row at a
chosen resolution, and writes a copy of the file with an extra
``h3_index`` column.

Rows are streamed one at a time, so memory use does not grow with the
input.  Rows with bad coordinates are kept (with an empty index); rows
too short to reach the coordinate columns are dropped and counted.

Classes:
    IndexerConfig   Column, resolution, and CSV-format settings.
    IndexResult     Immutable summary of a completed run.
    CsvH3Indexer    Primary tool class (inherits GeoTool).

Typical usage::

    from pathlib import Path
    from src.csv_h3_indexer.indexer import CsvH3Indexer, IndexerConfig

    tool = CsvH3Indexer(
        input_path=Path("data/stores.csv"),
        output_path=Path("output/stores_h3.csv"),
        config=IndexerConfig(lat_column="lat", lng_column="lon", resolution=9),
    )
    tool.run()
    print(tool.result.summary())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from shared.python.base_tool import GeoTool
from shared.python.validators import Validators
from src.csv_h3_indexer.diagnostics import JobDiagnostics
from src.csv_h3_indexer.h3index import (
    DEFAULT_RESOLUTION,
    CoordinateValidator,
    H3IndexGenerator,
    IndexGenerator,
    describe_resolution,
)
from src.csv_h3_indexer.processor import ProcessingTally, StreamingProcessor
from src.csv_h3_indexer.reader import RecordReader
from src.csv_h3_indexer.writer import RecordWriter

logger = logging.getLogger("h3indexer.indexer")

DEFAULT_OUTPUT_SUFFIX = "_with_h3"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexResult:
    """Immutable container for a completed indexing run.

    Attributes:
        total_records: Rows written to the output (malformed rows excluded).
        valid_records: Rows written with an H3 index.
        invalid_records: Rows written with an empty index.
        malformed_rows: Rows dropped because they were too short.
        resolution: H3 resolution used.
        elapsed: Wall-clock seconds for the whole run.
        output_path: Where the output was written.
    """

    total_records: int
    valid_records: int
    invalid_records: int
    malformed_rows: int
    resolution: int
    elapsed: float
    output_path: Path

    def summary(self) -> str:
        """Return a one-line, human-readable summary."""
        return (
            f"Indexed {self.valid_records}/{self.total_records} records "
            f"({self.invalid_records} invalid, {self.malformed_rows} malformed skipped) | "
            f"resolution {self.resolution} | {self.elapsed:.2f}s | "
            f"Output: {self.output_path}"
        )


@dataclass
class IndexerConfig:
    """Configuration bundle for :class:`CsvH3Indexer`.

    Attributes:
        lat_column: Latitude column name, or zero-based index when the
                    file has no header.  Unmatched names fall back to
                    ``lat`` / ``latitude`` / ``y``.
        lng_column: Longitude column name or index.  Unmatched names fall
                    back to ``lng`` / ``lon`` / ``longitude`` / ``x``.
        resolution: H3 resolution, 0 (coarsest) to 15 (finest).
        has_headers: Whether the first non-blank line is a header row.
        delimiter: Single field-delimiter character.
        overwrite: Replace the output file if it already exists.
    """

    lat_column: str = "latitude"
    lng_column: str = "longitude"
    resolution: int = DEFAULT_RESOLUTION
    has_headers: bool = True
    delimiter: str = ","
    overwrite: bool = False


def default_output_path(input_path: Path, suffix: str = DEFAULT_OUTPUT_SUFFIX) -> Path:
    """Return ``<dir>/<stem><suffix><ext>`` for *input_path*.

    Example::

        default_output_path(Path("data/stores.csv"))
        # → Path("data/stores_with_h3.csv")
    """
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}{suffix}{input_path.suffix}")


# ---------------------------------------------------------------------------
# Main tool class
# ---------------------------------------------------------------------------


class CsvH3Indexer(GeoTool):
    """Append an H3 cell column to every row of a delimited-text file.

    Inherits the Template Method pipeline from :class:`~shared.python.GeoTool`:
    ``validate_inputs`` → ``process`` → ``_report_success``.

    Args:
        input_path: Path to the input file.
        output_path: Path for the output file.  Defaults to
                     ``<input stem>_with_h3<input suffix>`` beside the input.
        config: Column, resolution, and format settings.  Defaults to
                :class:`IndexerConfig`'s defaults.
        verbose: Enable DEBUG-level logging and per-record diagnostics.
        generator: Index strategy.  Defaults to :class:`H3IndexGenerator`.
        validator: Coordinate range check.  Defaults to
                   :class:`CoordinateValidator`.

    Example::

        CsvH3Indexer(
            Path("data/raw.csv"),
            config=IndexerConfig(lat_column="0", lng_column="1", has_headers=False),
        ).run()
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path | None = None,
        config: IndexerConfig | None = None,
        *,
        verbose: bool = False,
        generator: IndexGenerator | None = None,
        validator: CoordinateValidator | None = None,
    ) -> None:
        if output_path is None:
            output_path = default_output_path(Path(input_path))
        super().__init__(input_path, output_path, verbose=verbose)
        self.config: IndexerConfig = config or IndexerConfig()
        self.validator: CoordinateValidator = validator or CoordinateValidator()
        self.generator: IndexGenerator = generator or H3IndexGenerator(self.validator)

        self._tally: ProcessingTally | None = None
        self._result: IndexResult | None = None

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    def validate_inputs(self) -> None:
        """Check every setup precondition before the output is created.

        Checks:
        - Input file exists and is readable.
        - Resolution is in ``[0, 15]`` and the delimiter is usable.
        - Output is not the input, its directory exists (created if
          absent), and it does not already exist unless ``overwrite``.
        - The header (if any) can be read and both coordinate columns
          resolve to two distinct positions.

        Raises:
            InputValidationError: On any input or parameter problem,
                including ``ColumnNotFoundError``, ``SameColumnError``
                and ``ResolutionError``.
            OutputWriteError: If the output location is unusable,
                including ``OutputExistsError``.
        """
        cfg = self.config
        Validators.assert_file_exists(self.input_path)
        Validators.assert_resolution_valid(cfg.resolution)
        Validators.assert_delimiter_valid(cfg.delimiter)
        Validators.assert_distinct_paths(self.input_path, self.output_path)
        Validators.assert_output_absent(self.output_path, overwrite=cfg.overwrite)

        with self._open_reader() as reader:
            headers = reader.headers
            if headers is not None:
                logger.debug("Headers: %s", headers)
                logger.debug(
                    "Latitude column: %r (index %d)",
                    headers[reader.latitude_index], reader.latitude_index,
                )
                logger.debug(
                    "Longitude column: %r (index %d)",
                    headers[reader.longitude_index], reader.longitude_index,
                )
            else:
                logger.debug(
                    "Coordinate indices: latitude %d, longitude %d",
                    reader.latitude_index, reader.longitude_index,
                )

        Validators.assert_output_dir_writable(self.output_path)

        logger.debug("Inputs validated successfully.")

    def process(self) -> None:
        """Stream the input through the processor into the output file.

        Raises:
            ProcessingError: If a row cannot be written mid-stream.
            OutputWriteError: If the output cannot be created or flushed.
        """
        cfg = self.config
        logger.info("Input file: %s", self.input_path)
        logger.info("Output file: %s", self.output_path)
        logger.info(
            "H3 resolution: %d (%s)", cfg.resolution, describe_resolution(cfg.resolution)
        )

        processor = StreamingProcessor(
            self.validator,
            self.generator,
            resolution=cfg.resolution,
            diagnostics=JobDiagnostics(self.input_path),
            verbose=self.verbose,
        )

        with self._open_reader() as reader:
            with RecordWriter(
                self.output_path,
                reader.headers,
                delimiter=cfg.delimiter,
                overwrite=cfg.overwrite,
            ) as writer:
                tally = processor.process_stream(reader, writer.write_record)
                writer.flush()

        self._tally = tally
        if tally.malformed_rows:
            logger.warning(
                "Skipped %d malformed row(s) with too few columns.", tally.malformed_rows
            )

    def _report_success(self, elapsed: float) -> None:
        """Freeze the run's counts into :attr:`result` and log the summary."""
        tally = self._tally or ProcessingTally()
        self._result = IndexResult(
            total_records=tally.total_records,
            valid_records=tally.valid_records,
            invalid_records=tally.invalid_records,
            malformed_rows=tally.malformed_rows,
            resolution=self.config.resolution,
            elapsed=elapsed,
            output_path=self.output_path,
        )
        logger.info(self._result.summary())
        super()._report_success(elapsed)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _open_reader(self) -> RecordReader:
        cfg = self.config
        return RecordReader(
            self.input_path,
            cfg.lat_column,
            cfg.lng_column,
            has_headers=cfg.has_headers,
            delimiter=cfg.delimiter,
        )

    @property
    def result(self) -> IndexResult | None:
        """The :class:`IndexResult` from the last :meth:`run` call.

        Returns ``None`` if :meth:`run` has not completed yet.
        """
        return self._result
