"""
CSV H3 Indexer — Custom Exception Hierarchy
============================================
Every component raises exceptions from this module so callers can catch
them at the right level of granularity.

Hierarchy::

    H3IndexerError                       ← catch-all base
    ├── InputValidationError             ← setup: bad files, delimiter, etc.
    │   ├── ColumnNotFoundError          ← coordinate column cannot be resolved
    │   ├── SameColumnError              ← lat/lng resolve to one column
    │   └── ResolutionError              ← H3 resolution outside [0, 15]
    ├── MalformedRowError                ← row too short to reach coordinates
    ├── CoordinateError                  ← record-level coordinate problems
    │   ├── CoordinateParseError         ← empty / non-numeric text
    │   └── CoordinateRangeError         ← outside the geographic domain
    ├── IndexGenerationError             ← H3 library refused the point
    ├── OutputWriteError                 ← cannot write / flush output
    │   └── OutputExistsError            ← target exists, overwrite not set
    └── ProcessingError                  ← record sink failed mid-stream

Only setup errors, output errors and :class:`ProcessingError` ever reach
the caller of a job.  Row- and record-level errors are raised by the
reader and the collaborators and absorbed by the streaming processor.

Usage::

    from shared.python.exceptions import ColumnNotFoundError

    raise ColumnNotFoundError("latitude", "lat_x", headers)
"""

from __future__ import annotations

from typing import Sequence


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class H3IndexerError(Exception):
    """Base exception for the CSV H3 Indexer.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Setup / input validation
# ---------------------------------------------------------------------------


class InputValidationError(H3IndexerError):
    """Raised when a job's inputs fail pre-processing validation.

    Raised before any record is read; a job that fails this way writes
    no output at all.
    """


class ColumnNotFoundError(InputValidationError):
    """Raised when a coordinate column cannot be resolved.

    Args:
        field: Which coordinate could not be resolved
               (``"latitude"`` or ``"longitude"``).
        specifier: The user-supplied column name or index.
        available: Header names that ARE present, or ``None`` when the
                   input has no header row.

    Example::

        raise ColumnNotFoundError("longitude", "lng_x", ["name", "lat"])
    """

    def __init__(
        self,
        field: str,
        specifier: str,
        available: Sequence[str] | None = None,
    ) -> None:
        if available is None:
            detail = (
                "Without a header row the column must be a non-negative "
                "integer index."
            )
        else:
            available_str = ", ".join(f"'{c}'" for c in available)
            detail = f"Available columns: {available_str}"
        super().__init__(
            f"{field.capitalize()} column not found: '{specifier}'. {detail}"
        )
        self.field: str = field
        self.specifier: str = specifier
        self.available: list[str] | None = (
            list(available) if available is not None else None
        )


class SameColumnError(InputValidationError):
    """Raised when latitude and longitude resolve to the same column.

    Args:
        index: Zero-based position both specifiers resolved to.
        column: Header name at that position, if the input has headers.
    """

    def __init__(self, index: int, column: str | None = None) -> None:
        label = f"'{column}' (index {index})" if column is not None else f"index {index}"
        super().__init__(
            f"Latitude and longitude both resolve to column {label}. "
            "They must be two different columns."
        )
        self.index: int = index
        self.column: str | None = column


class ResolutionError(InputValidationError):
    """Raised when an H3 resolution is outside the supported range.

    Args:
        resolution: The rejected value.
        minimum: Smallest accepted resolution.
        maximum: Largest accepted resolution.
    """

    def __init__(self, resolution: object, minimum: int = 0, maximum: int = 15) -> None:
        super().__init__(
            f"H3 resolution {resolution!r} is out of valid range "
            f"[{minimum}, {maximum}]."
        )
        self.resolution = resolution


# ---------------------------------------------------------------------------
# Row level
# ---------------------------------------------------------------------------


class MalformedRowError(H3IndexerError):
    """Raised by the record reader for a row it cannot turn into a record.

    Args:
        line_number: 1-based source line the row ended on.
        reason: Short explanation of what is wrong with the row.
        required: Minimum number of fields needed, when known.
        actual: Number of fields the row had, when known.
    """

    def __init__(
        self,
        line_number: int,
        reason: str,
        *,
        required: int | None = None,
        actual: int | None = None,
    ) -> None:
        super().__init__(f"Malformed row at line {line_number}: {reason}")
        self.line_number: int = line_number
        self.reason: str = reason
        self.required: int | None = required
        self.actual: int | None = actual


# ---------------------------------------------------------------------------
# Record level
# ---------------------------------------------------------------------------


class CoordinateError(H3IndexerError):
    """Base class for coordinate values that cannot be indexed."""


class CoordinateParseError(CoordinateError):
    """Raised when coordinate text is empty or not a number.

    Args:
        field: ``"latitude"`` or ``"longitude"``.
        raw: The raw text taken from the row.
    """

    def __init__(self, field: str, raw: str) -> None:
        if raw.strip():
            reason = f"invalid {field} value '{raw}'"
        else:
            reason = f"{field} is empty"
        super().__init__(reason)
        self.field: str = field
        self.raw: str = raw


class CoordinateRangeError(CoordinateError):
    """Raised when a coordinate falls outside the geographic domain.

    Args:
        field: ``"latitude"`` or ``"longitude"``.
        value: The offending value.
        limit: The absolute bound for *field* (90 or 180).
    """

    def __init__(self, field: str, value: float, limit: float) -> None:
        super().__init__(
            f"{field} {value:.6f} is out of range [{-limit:g}, {limit:g}]"
        )
        self.field: str = field
        self.value: float = value
        self.limit: float = limit


class IndexGenerationError(H3IndexerError):
    """Raised when an H3 cell cannot be produced for a coordinate pair.

    Args:
        latitude: Latitude that was submitted.
        longitude: Longitude that was submitted.
        resolution: Requested H3 resolution.
        reason: Underlying library error message.
    """

    def __init__(
        self, latitude: float, longitude: float, resolution: int, reason: str
    ) -> None:
        super().__init__(
            f"H3 generation failed for ({latitude:.6f}, {longitude:.6f}) "
            f"at resolution {resolution}: {reason}"
        )
        self.latitude: float = latitude
        self.longitude: float = longitude
        self.resolution: int = resolution
        self.reason: str = reason


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(H3IndexerError):
    """Raised when the job cannot write its output.

    Args:
        output_path: String representation of the path that failed.
        reason: Underlying OS or library error message.

    Example::

        raise OutputWriteError("/read-only/dir/out.csv", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(f"Failed to write output to '{output_path}': {reason}")
        self.output_path: str = output_path
        self.reason: str = reason


class OutputExistsError(OutputWriteError):
    """Raised when the output file exists and overwriting was not allowed."""

    def __init__(self, output_path: str) -> None:
        super().__init__(
            output_path, "file already exists (use --overwrite to replace it)"
        )


# ---------------------------------------------------------------------------
# Stream
# ---------------------------------------------------------------------------


class ProcessingError(H3IndexerError):
    """Raised when the record sink fails and the stream has to stop.

    The sink's own exception is chained as ``__cause__``.

    Args:
        line_number: Source line of the record the sink rejected.
        reason: Message of the underlying failure.
    """

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"Record sink failed at line {line_number}: {reason}")
        self.line_number: int = line_number
        self.reason: str = reason
