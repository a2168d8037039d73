"""
CSV H3 Indexer — Shared Input Validators
=========================================
Static precondition checks run once per job, before the first record is
read.

All methods raise an exception from :mod:`shared.python.exceptions`
rather than returning booleans, so ``validate_inputs`` implementations
read as a flat list of assertions::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)
            Validators.assert_resolution_valid(self.config.resolution)
            Validators.assert_output_absent(self.output_path, overwrite=False)
"""

from __future__ import annotations

from pathlib import Path

from shared.python.exceptions import (
    InputValidationError,
    OutputExistsError,
    OutputWriteError,
    ResolutionError,
)

MIN_RESOLUTION = 0
MAX_RESOLUTION = 15

# Characters the csv module cannot use as a field delimiter.
_FORBIDDEN_DELIMITERS = {'"', "\r", "\n"}


class Validators:
    """Collection of static precondition checks.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* is an existing, readable regular file.

        Args:
            path: Path object to check.

        Raises:
            InputValidationError: If *path* does not exist, is a
                directory, or cannot be opened for reading.

        Example::

            Validators.assert_file_exists(Path("data/points.csv"))
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InputValidationError(
                f"Expected a file but got a directory: '{path}'."
            )
        try:
            with open(path, "rb"):
                pass
        except OSError as exc:
            raise InputValidationError(
                f"Cannot read input file '{path}': {exc.strerror or exc}"
            ) from exc

    @staticmethod
    def assert_output_dir_writable(output_path: Path) -> None:
        """Create the parent directory of *output_path* if it is missing.

        Args:
            output_path: Intended output file path.

        Raises:
            OutputWriteError: If the parent directory cannot be created.
        """
        parent = Path(output_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_path), str(exc)) from exc

    @staticmethod
    def assert_output_absent(output_path: Path, *, overwrite: bool) -> None:
        """Refuse to clobber an existing output file unless allowed.

        The check is not transactional: a file created between this call
        and the writer opening the path is replaced.

        Args:
            output_path: Intended output file path.
            overwrite: When ``True`` an existing file is acceptable.

        Raises:
            OutputExistsError: If *output_path* exists and *overwrite* is
                ``False``.
            OutputWriteError: If *output_path* exists but is a directory.
        """
        output_path = Path(output_path)
        if output_path.is_dir():
            raise OutputWriteError(str(output_path), "path is a directory")
        if output_path.exists() and not overwrite:
            raise OutputExistsError(str(output_path))

    @staticmethod
    def assert_distinct_paths(input_path: Path, output_path: Path) -> None:
        """Assert that the job does not write over the file it is reading.

        Raises:
            InputValidationError: If both paths resolve to the same file.
        """
        if Path(input_path).resolve() == Path(output_path).resolve():
            raise InputValidationError(
                f"Output path '{output_path}' is the same file as the input."
            )

    # ------------------------------------------------------------------
    # Job parameter checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_resolution_valid(resolution: int) -> None:
        """Assert that *resolution* is an H3 resolution in ``[0, 15]``.

        Raises:
            ResolutionError: If *resolution* is not an ``int`` or lies
                outside the closed range.
        """
        if (
            isinstance(resolution, bool)
            or not isinstance(resolution, int)
            or not MIN_RESOLUTION <= resolution <= MAX_RESOLUTION
        ):
            raise ResolutionError(resolution, MIN_RESOLUTION, MAX_RESOLUTION)

    @staticmethod
    def assert_delimiter_valid(delimiter: str) -> None:
        """Assert that *delimiter* is a single usable character.

        Raises:
            InputValidationError: If *delimiter* is empty, longer than one
                character, or a quote / line-break character.
        """
        if not isinstance(delimiter, str) or len(delimiter) != 1:
            raise InputValidationError(
                f"Delimiter must be a single character, got: {delimiter!r}"
            )
        if delimiter in _FORBIDDEN_DELIMITERS:
            raise InputValidationError(
                f"Delimiter {delimiter!r} cannot be used to separate fields."
            )
