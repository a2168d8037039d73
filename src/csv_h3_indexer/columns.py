"""
CSV H3 Indexer — Column Resolver
=================================
Maps the user's latitude / longitude column specifiers onto concrete,
zero-based field positions.

With a header row, a specifier is matched by name (case-insensitive,
surrounding whitespace ignored).  An empty or unmatched specifier falls
back to a fixed list of conventional aliases, tried in order; for each
alias the leftmost matching header wins.

Without a header row, a specifier must be a non-negative integer index.

Resolution runs once per job, before any record is read.

Usage::

    from src.csv_h3_indexer.columns import resolve_columns

    mapping = resolve_columns(["name", "Lat", "LNG"], "latitude", "longitude")
    mapping.latitude_index   # 1 (via the "lat" alias)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from shared.python.exceptions import ColumnNotFoundError, SameColumnError

logger = logging.getLogger("h3indexer.columns")

LATITUDE_ALIASES: tuple[str, ...] = ("lat", "latitude", "y")
LONGITUDE_ALIASES: tuple[str, ...] = ("lng", "lon", "longitude", "x")

_INDEX_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ColumnMapping:
    """Resolved positions of the two coordinate fields.

    Attributes:
        latitude_index: Zero-based position of the latitude field.
        longitude_index: Zero-based position of the longitude field.
    """

    latitude_index: int
    longitude_index: int

    @property
    def required_fields(self) -> int:
        """Minimum field count a row needs to reach both coordinates."""
        return max(self.latitude_index, self.longitude_index) + 1


def find_column(headers: Sequence[str], specifier: str, aliases: Sequence[str]) -> int:
    """Return the position of *specifier* (or an alias) in *headers*.

    Args:
        headers: Header row of the input.
        specifier: User-supplied column name; may be empty.
        aliases: Fallback names tried in order when *specifier* is empty
                 or does not match.

    Returns:
        The zero-based column index, or ``-1`` when nothing matches.
    """
    normalized = [h.strip().casefold() for h in headers]

    wanted = specifier.strip().casefold()
    if wanted:
        for i, name in enumerate(normalized):
            if name == wanted:
                return i

    for alias in aliases:
        alias = alias.casefold()
        for i, name in enumerate(normalized):
            if name == alias:
                return i

    return -1


def parse_index(specifier: str) -> int:
    """Return *specifier* as a column index, or ``-1`` if it is not one."""
    text = specifier.strip()
    if not _INDEX_PATTERN.fullmatch(text):
        return -1
    return int(text)


def resolve_columns(
    headers: Sequence[str] | None,
    latitude_spec: str,
    longitude_spec: str,
) -> ColumnMapping:
    """Resolve both coordinate specifiers into a :class:`ColumnMapping`.

    Args:
        headers: The input's header row, or ``None`` for header-less input.
        latitude_spec: Latitude column name, alias, or index.
        longitude_spec: Longitude column name, alias, or index.

    Returns:
        A mapping whose two indices are non-negative and distinct.

    Raises:
        ColumnNotFoundError: If either field cannot be resolved.  The
            latitude field is checked first.
        SameColumnError: If both fields resolve to the same position.
    """
    if headers is not None:
        lat_index = find_column(headers, latitude_spec, LATITUDE_ALIASES)
        lng_index = find_column(headers, longitude_spec, LONGITUDE_ALIASES)
    else:
        lat_index = parse_index(latitude_spec)
        lng_index = parse_index(longitude_spec)

    if lat_index < 0:
        raise ColumnNotFoundError("latitude", latitude_spec, headers)
    if lng_index < 0:
        raise ColumnNotFoundError("longitude", longitude_spec, headers)

    if lat_index == lng_index:
        column = headers[lat_index] if headers is not None else None
        raise SameColumnError(lat_index, column)

    logger.debug(
        "Resolved latitude %r → %d, longitude %r → %d",
        latitude_spec, lat_index, longitude_spec, lng_index,
    )
    return ColumnMapping(latitude_index=lat_index, longitude_index=lng_index)
