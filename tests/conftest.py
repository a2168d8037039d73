"""
Shared pytest fixtures.

The tool base class attaches a console handler to the ``h3indexer``
logger on first use; it is removed after every test so a handler bound
to one test's captured stream never leaks into the next.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture(autouse=True)
def _reset_project_logger():
    yield
    project_logger = logging.getLogger("h3indexer")
    for handler in list(project_logger.handlers):
        project_logger.removeHandler(handler)
    project_logger.setLevel(logging.NOTSET)


@pytest.fixture()
def write_text(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing raw text to ``tmp_path / name``."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8", newline="")
        return path

    return _write
