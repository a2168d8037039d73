"""
CSV H3 Indexer — Coordinate Validation and H3 Generation
=========================================================
The two collaborators the streaming processor calls for every parsed
record:

* :class:`CoordinateValidator` checks a (latitude, longitude) pair
  against the WGS84 domain.
* :class:`IndexGenerator` is an abstract strategy turning a valid pair
  into an index token.  :class:`H3IndexGenerator` implements it with
  Uber's H3 library.

Also holds the catalogue of H3 resolutions shown by the CLI.

Usage::

    from src.csv_h3_indexer.h3index import H3IndexGenerator

    H3IndexGenerator().generate(40.7128, -74.0060, 8)
    # → a 15-character hexadecimal H3 cell string
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod

import h3

from shared.python.exceptions import CoordinateRangeError, IndexGenerationError
from shared.python.validators import MAX_RESOLUTION, MIN_RESOLUTION, Validators

logger = logging.getLogger("h3indexer.h3index")

DEFAULT_RESOLUTION = 8

LATITUDE_LIMIT = 90.0
LONGITUDE_LIMIT = 180.0

# Resolution → (scale, approximate hexagon edge length).
RESOLUTION_LEVELS: dict[int, tuple[str, str]] = {
    0: ("Country", "~1107.71 km"),
    1: ("State", "~418.68 km"),
    2: ("Metro", "~158.24 km"),
    3: ("City", "~59.81 km"),
    4: ("District", "~22.61 km"),
    5: ("Neighborhood", "~8.54 km"),
    6: ("Block", "~3.23 km"),
    7: ("Building", "~1.22 km"),
    8: ("Street", "~461.35 m"),
    9: ("Intersection", "~174.38 m"),
    10: ("Property", "~65.91 m"),
    11: ("Room", "~24.91 m"),
    12: ("Desk", "~9.42 m"),
    13: ("Chair", "~3.56 m"),
    14: ("Book", "~1.35 m"),
    15: ("Page", "~0.51 m"),
}


def describe_resolution(resolution: int) -> str:
    """Return a label such as ``"Street level (~461.35 m)"``."""
    level = RESOLUTION_LEVELS.get(resolution)
    if level is None:
        return f"Resolution {resolution}"
    scale, edge = level
    return f"{scale} level ({edge})"


# ---------------------------------------------------------------------------
# Coordinate validation
# ---------------------------------------------------------------------------


class CoordinateValidator:
    """Range check for WGS84 coordinates; both bounds are inclusive."""

    def validate(self, latitude: float, longitude: float) -> None:
        """Check that the pair lies within [-90, 90] × [-180, 180].

        Non-finite values (NaN, ±inf) are out of range.

        Raises:
            CoordinateRangeError: Naming the first field that is out of
                range, latitude before longitude.
        """
        if not (math.isfinite(latitude) and -LATITUDE_LIMIT <= latitude <= LATITUDE_LIMIT):
            raise CoordinateRangeError("latitude", latitude, LATITUDE_LIMIT)
        if not (math.isfinite(longitude) and -LONGITUDE_LIMIT <= longitude <= LONGITUDE_LIMIT):
            raise CoordinateRangeError("longitude", longitude, LONGITUDE_LIMIT)


# ---------------------------------------------------------------------------
# Index generation strategies
# ---------------------------------------------------------------------------


class IndexGenerator(ABC):
    """Abstract strategy producing a spatial index token for a point.

    Implementations must be deterministic: the same pair and resolution
    always yield the same token.
    """

    @abstractmethod
    def generate(self, latitude: float, longitude: float, resolution: int) -> str:
        """Return the index token for the point.

        Raises:
            IndexGenerationError: If no token can be produced.
        """

    def validate_resolution(self, resolution: int) -> None:
        """Reject a resolution outside ``[0, 15]``.

        Raises:
            ResolutionError: If *resolution* is out of range.
        """
        Validators.assert_resolution_valid(resolution)


class H3IndexGenerator(IndexGenerator):
    """H3 cell generator backed by the ``h3`` package (v4 API).

    Args:
        validator: Range check applied before calling into H3.  Defaults
                   to :class:`CoordinateValidator`.
    """

    def __init__(self, validator: CoordinateValidator | None = None) -> None:
        self.validator = validator or CoordinateValidator()

    def generate(self, latitude: float, longitude: float, resolution: int) -> str:
        """Return the H3 cell containing the point, as a hex string.

        Raises:
            IndexGenerationError: If the point is out of range, the
                resolution is outside [0, 15], or H3 rejects the input.
        """
        if not MIN_RESOLUTION <= resolution <= MAX_RESOLUTION:
            raise IndexGenerationError(
                latitude, longitude, resolution,
                f"resolution must be in [{MIN_RESOLUTION}, {MAX_RESOLUTION}]",
            )
        try:
            self.validator.validate(latitude, longitude)
        except CoordinateRangeError as exc:
            raise IndexGenerationError(
                latitude, longitude, resolution, exc.message
            ) from exc

        try:
            return h3.latlng_to_cell(latitude, longitude, resolution)
        except (h3.H3BaseException, ValueError, TypeError) as exc:
            raise IndexGenerationError(
                latitude, longitude, resolution, str(exc) or exc.__class__.__name__
            ) from exc
