"""
CSV H3 Indexer — Record Reader
===============================
Streams a delimited-text file one record at a time.

The reader owns the input file handle for its whole lifetime.  On
construction it consumes the header row (when one is expected) and
resolves the coordinate columns; any failure there closes the file and
propagates, so a configuration mismatch never surfaces mid-stream.

Bytes that are not valid UTF-8 are decoded as surrogate escapes, so the
writer reproduces them unchanged.

:meth:`RecordReader.next_record` then returns one :class:`Record` per
non-blank line, ``None`` at end of stream, or raises
:class:`~shared.python.exceptions.MalformedRowError` for a row that
cannot reach both coordinate columns.  The reader is forward-only: to
read the file again, construct a new reader.

Usage::

    with RecordReader(Path("points.csv"), "lat", "lng") as reader:
        while (record := reader.next_record()) is not None:
            ...
"""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from shared.python.exceptions import (
    CoordinateParseError,
    InputValidationError,
    MalformedRowError,
)
from src.csv_h3_indexer.columns import ColumnMapping, resolve_columns

logger = logging.getLogger("h3indexer.reader")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Record:
    """One input row in flight through the pipeline.

    Attributes:
        original_fields: Raw field values exactly as read, in order.
        line_number: 1-based source line the row ended on.
        latitude: Parsed latitude; meaningful only while ``is_valid``.
        longitude: Parsed longitude; meaningful only while ``is_valid``.
        h3_index: Generated H3 cell token, ``""`` until one is set.
        is_valid: ``True`` while the record is still a candidate for (or
            has received) an H3 index.
        reason: Why the record is invalid, ``None`` while it is valid.
    """

    original_fields: tuple[str, ...]
    line_number: int
    latitude: float = 0.0
    longitude: float = 0.0
    h3_index: str = ""
    is_valid: bool = False
    reason: str | None = None

    def invalidate(self, reason: str) -> None:
        """Mark the record invalid and drop any derived index."""
        self.is_valid = False
        self.h3_index = ""
        self.reason = reason


def parse_coordinate(raw: str, field: str) -> float:
    """Parse one coordinate field with Python's decimal parser.

    Surrounding whitespace is ignored; decimal and scientific notation
    are accepted.

    Raises:
        CoordinateParseError: If *raw* is blank or not a number.
    """
    text = raw.strip()
    # float() also accepts digit separators ("1_0"); coordinate data does not.
    if not text or "_" in text:
        raise CoordinateParseError(field, raw)
    try:
        return float(text)
    except ValueError as exc:
        raise CoordinateParseError(field, raw) from exc


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class RecordReader:
    """Forward-only reader producing :class:`Record` objects.

    Args:
        input_path: Delimited-text file to read.
        lat_column: Latitude column name, alias or index.
        lng_column: Longitude column name, alias or index.
        has_headers: Whether the first non-blank line is a header row.
        delimiter: Field delimiter character.

    Raises:
        InputValidationError: If the file cannot be opened, or a header is
            expected and the file has none.
        ColumnNotFoundError: If a coordinate column cannot be resolved.
        SameColumnError: If both coordinates resolve to one column.
    """

    def __init__(
        self,
        input_path: Path,
        lat_column: str,
        lng_column: str,
        *,
        has_headers: bool = True,
        delimiter: str = ",",
    ) -> None:
        self.input_path = Path(input_path)
        self.has_headers = has_headers
        self._headers: list[str] | None = None

        try:
            self._file: TextIO | None = open(
                self.input_path,
                "r",
                encoding="utf-8-sig",
                errors="surrogateescape",
                newline="",
            )
        except OSError as exc:
            raise InputValidationError(
                f"Failed to open input file '{self.input_path}': {exc.strerror or exc}"
            ) from exc

        self._rows = csv.reader(self._file, delimiter=delimiter)

        try:
            if has_headers:
                self._headers = self._read_header()
            self._mapping: ColumnMapping = resolve_columns(
                self._headers, lat_column, lng_column
            )
        except BaseException:
            self.close()
            raise

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def headers(self) -> list[str] | None:
        """Header row as read, or ``None`` for header-less input."""
        return list(self._headers) if self._headers is not None else None

    @property
    def mapping(self) -> ColumnMapping:
        """Resolved coordinate column positions."""
        return self._mapping

    @property
    def latitude_index(self) -> int:
        return self._mapping.latitude_index

    @property
    def longitude_index(self) -> int:
        return self._mapping.longitude_index

    @property
    def closed(self) -> bool:
        return self._file is None

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def next_record(self) -> Record | None:
        """Read the next row and turn it into a :class:`Record`.

        Blank lines are skipped.  Coordinate text that is empty or not a
        number yields a record with ``is_valid=False``; a successfully
        parsed pair yields ``is_valid=True``, pending range validation.

        Returns:
            The next record, or ``None`` once the stream is exhausted (or
            the reader has been closed).

        Raises:
            MalformedRowError: If the row has too few fields to reach both
                coordinate columns, or the CSV parser rejects it.  The
                reader stays usable and the next call moves on.
        """
        if self._file is None:
            return None

        while True:
            try:
                row = next(self._rows)
            except StopIteration:
                return None
            except csv.Error as exc:
                raise MalformedRowError(self._rows.line_num, str(exc)) from exc
            if row:
                break

        line_number = self._rows.line_num
        required = self._mapping.required_fields
        if len(row) < required:
            raise MalformedRowError(
                line_number,
                f"row has insufficient columns: expected at least {required}, "
                f"got {len(row)}",
                required=required,
                actual=len(row),
            )

        record = Record(original_fields=tuple(row), line_number=line_number)
        try:
            record.latitude = parse_coordinate(row[self.latitude_index], "latitude")
            record.longitude = parse_coordinate(row[self.longitude_index], "longitude")
        except CoordinateParseError as exc:
            record.latitude = record.longitude = math.nan
            record.invalidate(exc.message)
            return record

        record.is_valid = True
        return record

    # ------------------------------------------------------------------
    # Resource handling
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the input file.  Safe to call more than once."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> RecordReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _read_header(self) -> list[str]:
        """Consume and return the first non-blank row."""
        try:
            for row in self._rows:
                if row:
                    logger.debug("Header row: %s", row)
                    return row
        except csv.Error as exc:
            raise InputValidationError(
                f"Cannot parse header row of '{self.input_path}': {exc}"
            ) from exc
        raise InputValidationError(
            f"Input file '{self.input_path}' is empty; expected a header row."
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(input_path={self.input_path!r}, "
            f"mapping={self._mapping!r})"
        )
