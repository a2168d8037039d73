"""
CSV H3 Indexer — Streaming Processor
=====================================
Pulls records from a :class:`~src.csv_h3_indexer.reader.RecordReader`
one at a time, validates and indexes each one, and pushes it to a sink
callback in input order.

Every row ends in exactly one :class:`RecordOutcome`:

==================  =================================  ==============  ============
outcome             cause                              sent to sink    counted as
==================  =================================  ==============  ============
MALFORMED           too few fields / unparseable row   no              malformed
UNPARSEABLE         empty or non-numeric coordinate    yes, no index   invalid
OUT_OF_RANGE        coordinate validator rejected it   yes, no index   invalid
GENERATION_FAILED   index generator rejected it        yes, no index   invalid
INDEXED             index generated                    yes, with index valid
==================  =================================  ==============  ============

Malformed rows never reach the sink and are left out of
``total_records``; every other row reaches the sink exactly once.  A
failing sink is the only per-record condition that stops the stream: it
is re-raised as :class:`~shared.python.exceptions.ProcessingError`.

Usage::

    processor = StreamingProcessor(
        CoordinateValidator(), H3IndexGenerator(), resolution=8
    )
    with RecordReader(path, "lat", "lng") as reader:
        tally = processor.process_stream(reader, writer.write_record)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from shared.python.exceptions import (
    CoordinateRangeError,
    IndexGenerationError,
    MalformedRowError,
    ProcessingError,
)
from src.csv_h3_indexer.h3index import (
    DEFAULT_RESOLUTION,
    CoordinateValidator,
    IndexGenerator,
)
from src.csv_h3_indexer.reader import Record, RecordReader

logger = logging.getLogger("h3indexer.processor")

RecordSink = Callable[[Record], None]


class RecordOutcome(Enum):
    """Terminal state of one row in the processing state machine."""

    MALFORMED = "malformed"
    UNPARSEABLE = "unparseable"
    OUT_OF_RANGE = "out_of_range"
    GENERATION_FAILED = "generation_failed"
    INDEXED = "indexed"

    @property
    def forwarded(self) -> bool:
        """Whether a row with this outcome is handed to the sink."""
        return self is not RecordOutcome.MALFORMED


# ---------------------------------------------------------------------------
# Tally
# ---------------------------------------------------------------------------


@dataclass
class ProcessingTally:
    """Counters for one pass over a stream.

    Attributes:
        total_records: Rows delivered to the sink (malformed rows excluded).
        valid_records: Rows delivered with an H3 index.
        malformed_rows: Rows skipped without reaching the sink.
    """

    total_records: int = 0
    valid_records: int = 0
    malformed_rows: int = 0

    @property
    def invalid_records(self) -> int:
        """Rows delivered to the sink without an index."""
        return self.total_records - self.valid_records

    @property
    def error_count(self) -> int:
        """Every row that did not get an index, malformed or not."""
        return self.malformed_rows + self.invalid_records

    def add(self, outcome: RecordOutcome) -> None:
        if outcome is RecordOutcome.MALFORMED:
            self.malformed_rows += 1
            return
        self.total_records += 1
        if outcome is RecordOutcome.INDEXED:
            self.valid_records += 1


# ---------------------------------------------------------------------------
# Processor
# ---------------------------------------------------------------------------


class StreamingProcessor:
    """Read → validate → index → sink loop with per-record failure isolation.

    Args:
        validator: Coordinate range check.
        generator: Index generation strategy.
        resolution: H3 resolution passed to *generator*.  Checked here, so
                    a bad value fails before any record is read.
        diagnostics: Logger (or adapter) receiving per-record messages.
                     Pass a :class:`~src.csv_h3_indexer.diagnostics.JobDiagnostics`
                     to tag messages with the job.
        verbose: Emit a message for every row that does not get an index,
                 a DEBUG line per indexed row, and periodic progress.
        progress_every: Records between progress messages in verbose mode.

    Raises:
        ResolutionError: If *resolution* is outside ``[0, 15]``.
        ValueError: If *progress_every* is less than 1.
    """

    def __init__(
        self,
        validator: CoordinateValidator,
        generator: IndexGenerator,
        *,
        resolution: int = DEFAULT_RESOLUTION,
        diagnostics: logging.Logger | logging.LoggerAdapter | None = None,
        verbose: bool = False,
        progress_every: int = 1000,
    ) -> None:
        generator.validate_resolution(resolution)
        if progress_every < 1:
            raise ValueError(f"progress_every must be at least 1, got {progress_every}")
        self.validator = validator
        self.generator = generator
        self.resolution = resolution
        self.diagnostics = diagnostics if diagnostics is not None else logger
        self.verbose = verbose
        self.progress_every = progress_every

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, record: Record) -> RecordOutcome:
        """Validate and index one parsed record in place.

        Sets ``h3_index`` and keeps ``is_valid`` on success; otherwise
        invalidates the record with a reason.  Never raises for bad
        coordinates.
        """
        if not record.is_valid:
            return RecordOutcome.UNPARSEABLE

        try:
            self.validator.validate(record.latitude, record.longitude)
        except CoordinateRangeError as exc:
            record.invalidate(exc.message)
            return RecordOutcome.OUT_OF_RANGE

        try:
            record.h3_index = self.generator.generate(
                record.latitude, record.longitude, self.resolution
            )
        except IndexGenerationError as exc:
            record.invalidate(exc.message)
            return RecordOutcome.GENERATION_FAILED

        return RecordOutcome.INDEXED

    def process_stream(self, reader: RecordReader, sink: RecordSink) -> ProcessingTally:
        """Drain *reader*, handing each well-formed record to *sink*.

        Records reach *sink* synchronously and in input order.

        Args:
            reader: Source of records.
            sink: Called once per non-malformed record.

        Returns:
            The tally for this pass, once the reader is exhausted.

        Raises:
            ProcessingError: If *sink* raises; the sink's exception is
                chained and no further rows are read.
        """
        tally = ProcessingTally()

        while True:
            try:
                record = reader.next_record()
            except MalformedRowError as exc:
                tally.add(RecordOutcome.MALFORMED)
                self._note(exc.line_number, RecordOutcome.MALFORMED, exc.reason)
                continue

            if record is None:
                break

            outcome = self.evaluate(record)
            self._note(record.line_number, outcome, record.reason or record.h3_index)

            try:
                sink(record)
            except Exception as exc:
                self.diagnostics.error(
                    "line %d: record sink failed: %s", record.line_number, exc
                )
                raise ProcessingError(record.line_number, str(exc)) from exc

            tally.add(outcome)
            if self.verbose and tally.total_records % self.progress_every == 0:
                self.diagnostics.info("Processed %d records...", tally.total_records)

        if self.verbose:
            self.diagnostics.info(
                "Processing complete: %d total records, %d valid, %d errors",
                tally.total_records, tally.valid_records, tally.error_count,
            )
        return tally

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _note(self, line_number: int, outcome: RecordOutcome, detail: str) -> None:
        """Emit the verbose diagnostic for one state transition."""
        if not self.verbose:
            return
        if outcome is RecordOutcome.INDEXED:
            self.diagnostics.debug("line %d: ✓ %s", line_number, detail)
        elif outcome is RecordOutcome.MALFORMED:
            self.diagnostics.warning(
                "line %d: skipping malformed row: %s", line_number, detail
            )
        else:
            self.diagnostics.warning(
                "line %d: ✗ %s: %s", line_number, outcome.value, detail
            )
