"""
CSV H3 Indexer — CLI Entry Point
=================================
Command-line interface built with Click.  Installed as the
``geo-h3-index`` command via ``pyproject.toml``.

Usage:
    geo-h3-index index --input data/stores.csv --output out/stores_h3.csv \\
                       --lat-column lat --lng-column lon --resolution 9

    geo-h3-index index -i raw.csv --no-headers --lat-column 0 --lng-column 1

    geo-h3-index resolutions

Run ``geo-h3-index --help`` for a full list of commands.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from shared.python.exceptions import H3IndexerError
from shared.python.validators import MAX_RESOLUTION, MIN_RESOLUTION
from src.csv_h3_indexer.h3index import DEFAULT_RESOLUTION, RESOLUTION_LEVELS
from src.csv_h3_indexer.indexer import CsvH3Indexer, IndexerConfig

_DELIMITER_ESCAPES = {"\\t": "\t", "tab": "\t"}


def parse_delimiter(value: str) -> str:
    """Turn the ``--delimiter`` option into a single character.

    Accepts one literal character, or ``\\t`` / ``tab`` for a tab.

    Raises:
        click.BadParameter: For empty or multi-character values.
    """
    delimiter = _DELIMITER_ESCAPES.get(value.lower(), value)
    if len(delimiter) != 1:
        raise click.BadParameter(
            f"delimiter must be a single character, got: {value!r}"
        )
    return delimiter


def _delimiter_callback(ctx: click.Context, param: click.Parameter, value: str) -> str:
    return parse_delimiter(value)


@click.group(
    name="geo-h3-index",
    help="Add H3 geospatial indexes to CSV files with latitude/longitude columns.",
)
def main() -> None:
    """Top-level command group."""


@main.command(
    name="index",
    help=(
        "Compute the H3 cell of every row in INPUT and write a copy with an "
        "extra 'h3_index' column.\n\n"
        "Rows with empty, non-numeric, or out-of-range coordinates are kept "
        "with an empty index.  Rows too short to reach the coordinate "
        "columns are skipped."
    ),
)
# ---------------------------------------------------------------------------
# Required arguments
# ---------------------------------------------------------------------------
@click.option(
    "--input", "-i",
    "input_path",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    help="Path to the input CSV file.",
)
# ---------------------------------------------------------------------------
# Optional arguments
# ---------------------------------------------------------------------------
@click.option(
    "--output", "-o",
    "output_path",
    default=None,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help="Output CSV path.  Defaults to <input>_with_h3.csv beside the input.",
)
@click.option(
    "--lat-column",
    default="latitude",
    show_default=True,
    help="Name or zero-based index of the latitude column.",
)
@click.option(
    "--lng-column",
    default="longitude",
    show_default=True,
    help="Name or zero-based index of the longitude column.",
)
@click.option(
    "--resolution", "-r",
    default=DEFAULT_RESOLUTION,
    show_default=True,
    type=click.IntRange(MIN_RESOLUTION, MAX_RESOLUTION),
    help="H3 resolution (0 = coarsest, 15 = finest).",
)
@click.option(
    "--headers/--no-headers",
    "has_headers",
    default=True,
    show_default=True,
    help="Whether the first line of the file is a header row.",
)
@click.option(
    "--delimiter",
    default=",",
    show_default=True,
    callback=_delimiter_callback,
    help="Field delimiter.  Use '\\t' for tab-separated files.",
)
@click.option(
    "--overwrite",
    is_flag=True,
    default=False,
    help="Replace the output file if it already exists.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging and per-row diagnostics.",
)
def index_command(
    input_path: Path,
    output_path: Path | None,
    lat_column: str,
    lng_column: str,
    resolution: int,
    has_headers: bool,
    delimiter: str,
    overwrite: bool,
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into CsvH3Indexer."""
    config = IndexerConfig(
        lat_column=lat_column,
        lng_column=lng_column,
        resolution=resolution,
        has_headers=has_headers,
        delimiter=delimiter,
        overwrite=overwrite,
    )

    tool = CsvH3Indexer(
        input_path=input_path,
        output_path=output_path,
        config=config,
        verbose=verbose,
    )

    try:
        tool.run()
    except H3IndexerError as exc:
        # User-facing errors: print a clean message, no stack trace
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    result = tool.result
    click.echo(f"\nCSV written to: {result.output_path}")
    click.echo(
        f"Indexed: {result.valid_records}/{result.total_records} records "
        f"({result.invalid_records} invalid, {result.malformed_rows} malformed skipped)."
    )


@main.command(name="resolutions", help="List H3 resolution levels and edge lengths.")
def resolutions_command() -> None:
    """Print the resolution catalogue, marking the default."""
    click.echo(f"{'Res':<4} {'Scale':<14} Edge length")
    click.echo(f"{'---':<4} {'-' * 14} -----------")
    for level, (scale, edge) in RESOLUTION_LEVELS.items():
        marker = "  (default)" if level == DEFAULT_RESOLUTION else ""
        click.echo(f"{level:<4} {scale:<14} {edge}{marker}")


if __name__ == "__main__":
    main()
