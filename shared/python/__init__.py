"""
CSV H3 Indexer — Shared Python Package
=======================================
Re-exports the base tool class, exception hierarchy, and validator
utilities so the tool package can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import ColumnNotFoundError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    ColumnNotFoundError,
    CoordinateError,
    CoordinateParseError,
    CoordinateRangeError,
    H3IndexerError,
    IndexGenerationError,
    InputValidationError,
    MalformedRowError,
    OutputExistsError,
    OutputWriteError,
    ProcessingError,
    ResolutionError,
    SameColumnError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "H3IndexerError",
    "InputValidationError",
    "ColumnNotFoundError",
    "SameColumnError",
    "ResolutionError",
    "MalformedRowError",
    "CoordinateError",
    "CoordinateParseError",
    "CoordinateRangeError",
    "IndexGenerationError",
    "OutputWriteError",
    "OutputExistsError",
    "ProcessingError",
]
