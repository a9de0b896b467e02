"""
extract_audio.writer - Write extraction units to the output directory.

A failed write of one file is reported as WriteError and the run goes on.
If the directory itself has become unusable (removed, read-only, out of
space) OutputDirectoryError is raised instead, since no later write could
succeed either.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path

from extract_audio.exceptions import OutputDirectoryError, WriteError
from extract_audio.io import write_bytes
from extract_audio.logging import logger
from extract_audio.naming import resolve_filename
from extract_audio.rows import ExtractionUnit

DIRECTORY_ERRNOS = {errno.ENOSPC, errno.EROFS, getattr(errno, "EDQUOT", errno.ENOSPC)}


class OutputWriter:
    """Writes one file per extraction unit and remembers the names used this run."""

    def __init__(self, output_dir: Path, infer_extension: bool = True) -> None:
        self.output_dir = output_dir
        self.infer_extension = infer_extension
        self.seen: set[str] = set()

    def prepare(self) -> None:
        """Create the output directory if needed and check it is writable.

        Raises:
            OutputDirectoryError: If the directory cannot be created or written to
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            raise OutputDirectoryError(str(self.output_dir), "exists and is not a directory") from e
        except OSError as e:
            raise OutputDirectoryError(str(self.output_dir), e.strerror or str(e)) from e
        self.check_directory()

    def check_directory(self) -> None:
        if not self.output_dir.is_dir():
            raise OutputDirectoryError(str(self.output_dir), "not a directory")
        if not os.access(self.output_dir, os.W_OK | os.X_OK):
            raise OutputDirectoryError(str(self.output_dir), "not writable")

    def target_path(self, unit: ExtractionUnit) -> Path:
        payload = unit.payload if self.infer_extension else None
        name = resolve_filename(unit.identifier, unit.row_index, self.seen, payload)
        return self.output_dir / name

    def write(self, unit: ExtractionUnit) -> Path:
        """Write one unit to its own file.

        Returns:
            Final path of the written file

        Raises:
            WriteError: This file could not be written; nothing is left at its path
            OutputDirectoryError: The output directory is no longer usable
        """
        path = self.target_path(unit)
        try:
            write_bytes(path, unit.payload)
        except OSError as e:
            if e.errno in DIRECTORY_ERRNOS:
                raise OutputDirectoryError(str(self.output_dir), e.strerror or str(e)) from e
            self.check_directory()
            raise WriteError(str(path), unit.row_index, e.strerror or str(e)) from e

        self.seen.add(path.name)
        if path.name != unit.identifier:
            logger.debug("Row %d: %r written as %s", unit.row_index, unit.identifier, path.name)
        return path
