"""
Naming and lifetime management of staged frame images.

Every movie session stages its frames as numbered PNG files that share one
unique prefix. The prefix comes from a marker file created atomically with
`tempfile.mkstemp`, so two sessions, even in different processes, can never
pick the same names. The marker itself is deleted right away; only the
numbered frame files derived from it are ever written.
"""
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import FRAME_FILE_SUFFIX, FRAME_INDEX_DIGITS, TEMPORARY_FILE_PREFIX
from .exceptions import SessionInitException


class TemporaryFrameStore:
    """
    Owns the staged frame files of a single session.

    Attributes:
        prefix (str): The unique path prefix shared by all staged frames.
        template (str): The printf-style pattern `<prefix>-%05d.png`, in the
                        form the encoder's image sequence demuxer expects.
    """

    def __init__(self, temp_dir: Optional[Path] = None, prefix: str = TEMPORARY_FILE_PREFIX):
        """
        Allocates the unique naming prefix.

        Args:
            temp_dir: Directory for the staged files. None uses the system
                      temporary directory.
            prefix: Leading characters of the marker file name.

        Raises:
            SessionInitException: If the marker file cannot be created.
        """
        try:
            fd, marker_path = tempfile.mkstemp(
                prefix=prefix, suffix="", dir=str(temp_dir) if temp_dir else None
            )
            os.close(fd)
            os.unlink(marker_path)
        except OSError as e:
            raise SessionInitException(
                f"Could not allocate a temporary file prefix in '{temp_dir or tempfile.gettempdir()}': {e}"
            ) from e

        self.prefix: str = marker_path
        self.template: str = f"{marker_path}-%0{FRAME_INDEX_DIGITS}d{FRAME_FILE_SUFFIX}"
        logger.debug(f"Allocated staged frame template: {self.template}")

    def path_for_frame(self, index: int) -> Path:
        if index < 0:
            raise ValueError(f"Frame index must not be negative, got {index}.")
        return Path(self.template % index)

    def staged_paths(self, count: int) -> List[Path]:
        return [self.path_for_frame(i) for i in range(count)]

    def remove(self, count: int) -> int:
        """
        Deletes the staged files for indices `[0, count)`.

        Files that are already gone are ignored, which makes repeated calls
        harmless. A file that cannot be deleted is logged and the sweep goes on
        with the remaining indices.

        Returns:
            The number of files actually deleted.
        """
        removed = 0
        for path in self.staged_paths(count):
            try:
                if path.exists():
                    path.unlink()
                    removed += 1
            except OSError as e:
                logger.warning(f"Could not delete staged frame {path}: {e}")
        if removed:
            logger.debug(f"Removed {removed} staged frame(s) for {self.template}")
        return removed

    def __repr__(self):
        return f"TemporaryFrameStore(template={self.template!r})"
