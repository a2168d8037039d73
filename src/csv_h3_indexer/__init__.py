"""
CSV H3 Indexer
===============
Streams a CSV file with latitude/longitude columns and writes a copy with
an H3 cell index appended to every row.

Public API::

    from src.csv_h3_indexer import CsvH3Indexer, IndexerConfig
"""

from src.csv_h3_indexer.columns import ColumnMapping, resolve_columns
from src.csv_h3_indexer.h3index import (
    CoordinateValidator,
    H3IndexGenerator,
    IndexGenerator,
    describe_resolution,
)
from src.csv_h3_indexer.indexer import CsvH3Indexer, IndexerConfig, IndexResult
from src.csv_h3_indexer.processor import ProcessingTally, RecordOutcome, StreamingProcessor
from src.csv_h3_indexer.reader import Record, RecordReader
from src.csv_h3_indexer.writer import H3_COLUMN, RecordWriter

__all__ = [
    "CsvH3Indexer",
    "IndexerConfig",
    "IndexResult",
    "ColumnMapping",
    "resolve_columns",
    "Record",
    "RecordReader",
    "RecordWriter",
    "H3_COLUMN",
    "StreamingProcessor",
    "ProcessingTally",
    "RecordOutcome",
    "CoordinateValidator",
    "IndexGenerator",
    "H3IndexGenerator",
    "describe_resolution",
]
__version__ = "1.0.0"
