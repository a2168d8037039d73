"""
CSV H3 Indexer — Shared Base Tool
==================================
``GeoTool`` runs a job as validate → process → report.  Subclasses put
every check that can fail before the output exists into
``validate_inputs``; ``process`` does the streaming work.

    class MyTool(GeoTool):
        def validate_inputs(self) -> None: ...
        def process(self) -> None: ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

# Modules log through children, e.g. logging.getLogger("h3indexer.processor").
logger = logging.getLogger("h3indexer")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


class GeoTool(ABC):
    """One input file in, one output file out.

    ``elapsed`` holds the wall-clock seconds of the last successful
    :meth:`run` and stays ``None`` until one completes.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        verbose: bool = False,
    ) -> None:
        self.input_path: Path = Path(input_path)
        self.output_path: Path = Path(output_path)
        self.verbose: bool = verbose
        self.elapsed: float | None = None

        self._configure_logging()

    @abstractmethod
    def validate_inputs(self) -> None:
        """Raise an ``InputValidationError`` or ``OutputWriteError`` on setup problems."""

    @abstractmethod
    def process(self) -> None:
        ...

    def run(self) -> None:
        """Validate, process, then report.  Errors propagate unchanged."""
        logger.info("Starting %s", self.__class__.__name__)
        start = time.perf_counter()

        self.validate_inputs()
        self.process()

        self.elapsed = time.perf_counter() - start
        self._report_success(self.elapsed)

    def _report_success(self, elapsed: float) -> None:
        logger.info(
            "%s completed in %.2fs → %s",
            self.__class__.__name__,
            elapsed,
            self.output_path,
        )

    def _configure_logging(self) -> None:
        # One console handler for the whole hierarchy; level follows the
        # most recently constructed tool.
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            logger.addHandler(handler)

        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"input_path={self.input_path!r}, "
            f"output_path={self.output_path!r})"
        )
