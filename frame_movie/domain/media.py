from pathlib import Path
from pprint import pformat
from typing import Optional

import ffmpeg
from loguru import logger

from .exceptions import MediaFileException


class MovieFile:
    """
    Represents a finished movie and exposes the properties reported by ffprobe.

    The movie is probed once, on construction, through the ffmpeg-python
    library. It is used after an export to describe the result in the export
    report.

    Attributes:
        path (Path): The absolute path to the movie.
        size (int): The size of the file in bytes.
        probe (dict): The raw `ffprobe` output.
        duration (float): The duration in seconds (0.0 if not reported).
        width (int): Width of the first video stream.
        height (int): Height of the first video stream.
        codec (str): Codec name of the first video stream, lowercased.
        frame_count (Optional[int]): Number of frames, when the container reports it.
    """

    def __init__(self, path: Path, ffprobe_cmd: str = "ffprobe"):
        """
        Probes the movie at the given path.

        Raises:
            FileNotFoundError: If the movie does not exist.
            MediaFileException: If ffprobe fails or finds no video stream.
        """
        self.path = Path(path).resolve()
        if not self.path.is_file():
            raise FileNotFoundError(f"Movie file not found: {self.path}")
        self.size = self.path.stat().st_size

        try:
            self.probe = ffmpeg.probe(str(self.path), cmd=ffprobe_cmd)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else e.stderr
            raise MediaFileException(f"ffprobe failed for {self.path}: {stderr}") from e
        except OSError as e:
            raise MediaFileException(f"Could not run '{ffprobe_cmd}' for {self.path}: {e}") from e
        logger.trace(f"Probe data for {self.path.name}:\n{pformat(self.probe)}")

        video_streams = [s for s in self.probe.get("streams", []) if s.get("codec_type") == "video"]
        if not video_streams:
            raise MediaFileException(f"No video stream found in {self.path}")
        stream = video_streams[0]

        self.width: int = int(stream.get("width", 0))
        self.height: int = int(stream.get("height", 0))
        self.codec: str = str(stream.get("codec_name", "")).lower()
        self.duration: float = self._parse_float(self.probe.get("format", {}).get("duration"))
        nb_frames = stream.get("nb_frames")
        self.frame_count: Optional[int] = int(nb_frames) if nb_frames and str(nb_frames).isdigit() else None

    @staticmethod
    def _parse_float(value) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    def __repr__(self):
        return f"MovieFile({self.path.name!r}, {self.width}x{self.height}, {self.codec}, {self.duration:.2f}s)"
