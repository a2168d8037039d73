"""
CSV H3 Indexer — Record Writer
===============================
Serialises records back to delimited text with the H3 index appended as
the last column.

Original fields are written verbatim and in their original order.  The
header (when the input had one) is written once, on construction, as
the input header plus ``h3_index``.  The writer refuses to replace an
existing file unless ``overwrite=True``; the check runs before the file
is opened.

Usage::

    with RecordWriter(Path("out.csv"), reader.headers) as writer:
        processor.process_stream(reader, writer.write_record)
        writer.flush()
"""

from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Sequence, TextIO

from shared.python.exceptions import OutputWriteError
from shared.python.validators import Validators
from src.csv_h3_indexer.reader import Record

logger = logging.getLogger("h3indexer.writer")

H3_COLUMN = "h3_index"


class RecordWriter:
    """Write records plus their H3 index to a delimited-text file.

    Args:
        output_path: File to create.
        headers: Input header row, or ``None`` for header-less output.
        delimiter: Field delimiter character.
        overwrite: Replace *output_path* if it already exists.
        column_name: Label of the appended header column.

    Raises:
        OutputExistsError: If *output_path* exists and *overwrite* is
            ``False``.  The existing file is left untouched.
        OutputWriteError: If the file cannot be created or the header
            cannot be written.
    """

    def __init__(
        self,
        output_path: Path,
        headers: Sequence[str] | None,
        *,
        delimiter: str = ",",
        overwrite: bool = False,
        column_name: str = H3_COLUMN,
    ) -> None:
        self.output_path = Path(output_path)
        self.headers: list[str] | None = (
            [*headers, column_name] if headers is not None else None
        )
        self.rows_written = 0

        Validators.assert_output_absent(self.output_path, overwrite=overwrite)

        try:
            self._file: TextIO | None = open(
                self.output_path,
                "w",
                encoding="utf-8",
                errors="surrogateescape",
                newline="",
            )
        except OSError as exc:
            raise OutputWriteError(str(self.output_path), str(exc)) from exc

        self._writer = csv.writer(self._file, delimiter=delimiter, lineterminator="\n")

        if self.headers is not None:
            try:
                self._write_row(self.headers)
            except OutputWriteError:
                self.close()
                raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def write_record(self, record: Record) -> None:
        """Append one record as a row; usable directly as a record sink.

        Raises:
            OutputWriteError: If the writer is closed or the row cannot
                be written.
        """
        h3_index = record.h3_index if record.is_valid else ""
        self._write_row([*record.original_fields, h3_index])
        self.rows_written += 1

    def flush(self) -> None:
        """Push buffered rows to disk and fsync them.

        Raises:
            OutputWriteError: If flushing fails.
        """
        if self._file is None:
            raise OutputWriteError(str(self.output_path), "writer is closed")
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as exc:
            raise OutputWriteError(str(self.output_path), f"flush failed: {exc}") from exc

    def close(self) -> None:
        """Flush and close the file.  Safe to call more than once.

        Raises:
            OutputWriteError: If the final flush fails.
        """
        if self._file is None:
            return
        file, self._file = self._file, None
        try:
            file.close()
        except OSError as exc:
            raise OutputWriteError(str(self.output_path), f"close failed: {exc}") from exc
        logger.debug("Closed %s after %d rows", self.output_path, self.rows_written)

    @property
    def closed(self) -> bool:
        return self._file is None

    def __enter__(self) -> RecordWriter:
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        if exc_type is None:
            self.close()
            return
        # Already failing: release the handle without masking the error.
        try:
            self.close()
        except OutputWriteError as close_exc:
            logger.debug("Ignoring close failure during unwind: %s", close_exc)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _write_row(self, row: Sequence[str]) -> None:
        if self._file is None:
            raise OutputWriteError(str(self.output_path), "writer is closed")
        try:
            self._writer.writerow(row)
        except (OSError, csv.Error) as exc:
            raise OutputWriteError(str(self.output_path), str(exc)) from exc

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(output_path={self.output_path!r})"
