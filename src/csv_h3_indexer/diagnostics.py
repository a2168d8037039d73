"""
CSV H3 Indexer — Per-job Diagnostics
=====================================
A :class:`logging.LoggerAdapter` handed to the streaming processor so
per-record messages carry the job they belong to.  Each job builds its
own adapter; nothing about a job's diagnostics lives in module state.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping

logger = logging.getLogger("h3indexer.job")


class JobDiagnostics(logging.LoggerAdapter):
    """Logger adapter prefixing messages with ``[<input file name>]``.

    Args:
        source: Input path (or any label) identifying the job.
        base_logger: Logger to emit through.  Defaults to
                     ``h3indexer.job``.

    Example::

        diagnostics = JobDiagnostics(Path("data/stores.csv"))
        diagnostics.warning("line %d: %s", 7, "latitude is empty")
        # → [stores.csv] line 7: latitude is empty
    """

    def __init__(
        self,
        source: Path | str,
        base_logger: logging.Logger | None = None,
    ) -> None:
        label = Path(source).name if isinstance(source, Path) else str(source)
        super().__init__(base_logger or logger, {"job": label})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['job']}] {msg}", kwargs
