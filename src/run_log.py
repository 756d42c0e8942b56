"""Append-only per-run text log of generated images and errors."""

import logging
from pathlib import Path
from typing import TextIO

from errors import PersistenceError
from models import PromptConfig

logger = logging.getLogger(__name__)

LOG_FILENAME = "PromptLog.txt"
SEPARATOR = "-" * 80


class RunLog:
    """Sequential writer for PromptLog.txt.

    The file is created fresh when opened and flushed after every append,
    so a crash loses at most the fragment being written.
    """

    def __init__(self, path: Path):
        """Initialize the run log.

        Args:
            path: Path of the log file (truncated on open)
        """
        self.path = path
        self._file: TextIO | None = None

    @classmethod
    def create(cls, output_dir: Path, config: PromptConfig) -> "RunLog":
        """Open a fresh log in output_dir and write the run header."""
        run_log = cls(output_dir / LOG_FILENAME)
        run_log.open()
        run_log.write_header(config)
        return run_log

    def open(self) -> None:
        """Create (or truncate) the log file."""
        try:
            self._file = open(self.path, "w", encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot create run log {self.path}: {e}") from e

    def append(self, fragments: list[str]) -> None:
        """Write fragments in order and flush.

        Raises:
            PersistenceError: If the log is not open or the write fails
        """
        if self._file is None:
            raise PersistenceError("Run log is not open")
        try:
            for fragment in fragments:
                self._file.write(fragment)
        except OSError as e:
            raise PersistenceError(f"Error writing to run log: {e}") from e
        finally:
            self.flush()

    def write_header(self, config: PromptConfig) -> None:
        """Write the run summary lines at the top of the log."""
        self.append([
            f"Model: {config.model}",
            f"\nImage count: {config.num_images}",
            f"\nPrompt Name: {config.prompt_name}",
            f"\nBase Prompt: {config.prompt}",
            "\n\nBelow are the prompt enhancements for each image result.",
            f"\n{SEPARATOR}",
        ])

    def record_image(self, filename: str, style_preset: str = "", elements: str = "") -> None:
        """Append the block describing one saved image."""
        fragments = ["\n=====> File: ", filename]
        if style_preset:
            fragments += ["\nImage Style: ", style_preset]
        if elements:
            fragments += ["\nElements:    ", elements, "\n"]
        self.append(fragments)

    def record_error(self, message: str) -> None:
        """Append an error line."""
        self.append(["\n\n❌ ERROR: ", message])

    def flush(self) -> None:
        """Flush buffered text to disk."""
        if self._file is None or self._file.closed:
            return
        try:
            self._file.flush()
        except OSError as e:
            logger.error(f"Failed to flush run log: {e}")

    def close(self) -> None:
        """Flush and close the log. Safe to call more than once."""
        if self._file is None:
            return
        self.flush()
        self._file.close()
        self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
