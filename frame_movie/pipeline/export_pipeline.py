import argparse
import io
import random
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional

from loguru import logger
from PIL import Image, ImageDraw

from ..config.common import DEFAULT_ERROR_DIR, TEMP_DIR
from ..config.video import DEFAULT_FRAME_RATE, IMAGE_EXTENSIONS
from ..domain.exceptions import (
    FrameMovieException,
    InvalidInputException,
    MediaFileException,
)
from ..domain.media import MovieFile
from ..domain.video_format import DEFAULT_FORMAT, VideoFormat
from ..services.logging_service import ErrorLog, ExportLog
from ..services.movie_session import MovieSession
from ..utils.encoder_locator import EncoderLocator, default_locator
from ..utils.ffmpeg_utils import ProcessRunner, format_command
from ..utils.format_utils import format_timedelta, formatted_size

DEMO_WIDTH = 640
DEMO_HEIGHT = 480
DEMO_CIRCLE_COUNT = 100
DEMO_CIRCLE_SIZE = 30


def render_demo_frames(count: int, width: int = DEMO_WIDTH, height: int = DEMO_HEIGHT) -> Iterator[Image.Image]:
    """
    Yields the frames of the demo animation: circles on a white background
    that drift one pixel right and down per frame.

    The circle layout is drawn from an RNG reseeded for every frame, so each
    frame has the same circles at a shifted position.
    """
    for frame in range(count):
        image = Image.new("RGBA", (width, height), (255, 255, 255, 255))
        draw = ImageDraw.Draw(image)
        rng = random.Random(0)
        for _ in range(DEMO_CIRCLE_COUNT):
            color = (rng.randrange(255), 255, rng.randrange(255), 255)
            x = rng.randrange(width) + frame
            y = rng.randrange(height) + frame
            draw.ellipse((x, y, x + DEMO_CIRCLE_SIZE, y + DEMO_CIRCLE_SIZE), fill=color)
        yield image


def collect_images(input_dir: Path) -> List[Path]:
    """Returns the image files of a directory, sorted by name."""
    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    return sorted(
        p for p in input_dir.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def read_image(path: Path) -> Image.Image:
    """
    Reads an image file fully into memory.

    Raises:
        InvalidInputException: If Pillow cannot read the file.
    """
    try:
        with Image.open(path) as image:
            image.load()
            return image
    except OSError as e:
        raise InvalidInputException(f"Could not read image {path}: {e}") from e


def load_images(paths: Iterable[Path]) -> Iterator[Image.Image]:
    for path in paths:
        yield read_image(path)


class ImageSequenceExporter:
    """
    Drives a movie session for a batch of frames and records the outcome.

    On success an optional YAML export report is written; on failure the
    encoder command and its captured output are appended to an error log
    before the exception is re-raised.

    Args:
        output: Path of the movie to write.
        video_format: Format tier to encode with.
        args: Parsed command-line options (`frame_rate`, `temp_dir`, `report`,
              `error_dir`, `verbose` are read when present).
        locator: Encoder locator; the process-wide one if None.
        runner: Process runner handed to the session.
    """

    def __init__(
        self,
        output: Path,
        video_format: VideoFormat = DEFAULT_FORMAT,
        args: Optional[argparse.Namespace] = None,
        locator: Optional[EncoderLocator] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        self.output = Path(output)
        self.video_format = video_format
        self.args = args or argparse.Namespace()
        self.locator = locator if locator is not None else default_locator()
        self.runner = runner

        self.frame_rate: int = getattr(self.args, "frame_rate", None) or DEFAULT_FRAME_RATE
        self.temp_dir: Optional[Path] = getattr(self.args, "temp_dir", None) or TEMP_DIR
        self.report_path: Optional[Path] = getattr(self.args, "report", None)
        self.error_dir: Path = Path(getattr(self.args, "error_dir", None) or DEFAULT_ERROR_DIR)
        self.verbose: bool = getattr(self.args, "verbose", False)

        self.skipped_frames = 0
        self.encoder_output = ""

    def export_directory(self, input_dir: Path, width: Optional[int] = None, height: Optional[int] = None) -> int:
        """
        Exports every image of a directory, in file name order.

        The movie size defaults to the size of the first image. Returns the
        encoder's exit code.
        """
        image_paths = collect_images(input_dir)
        if not image_paths:
            raise InvalidInputException(f"No images with extensions {IMAGE_EXTENSIONS} found in {input_dir}")
        logger.info(f"Found {len(image_paths)} image(s) in {input_dir}")

        if not width or not height:
            width, height = read_image(image_paths[0]).size
        return self.export_frames(load_images(image_paths), width, height)

    def export_frames(self, frames: Iterable[Any], width: int, height: int) -> int:
        """
        Adds every frame to a new session and saves the movie.

        Frames of the wrong size are skipped with a warning. A frame source
        that fails to read aborts the export like any session failure.

        Raises:
            FrameMovieException: Any session failure, after it is recorded in
                                 the error log.
        """
        start_datetime = datetime.now()
        sink = io.StringIO()
        session = MovieSession(
            self.output,
            self.video_format,
            width,
            height,
            self.verbose,
            frame_rate=self.frame_rate,
            temp_dir=self.temp_dir,
            locator=self.locator,
            runner=self.runner,
        )
        try:
            with session:
                for index, frame in enumerate(frames):
                    try:
                        session.add_frame(frame)
                    except InvalidInputException as e:
                        self.skipped_frames += 1
                        logger.warning(f"Skipping frame {index}: {e}")
                if session.frame_count == 0:
                    raise InvalidInputException(f"No frame matched the movie size {width}x{height}.")
                return_code = session.save(sink)
        except FrameMovieException as e:
            self.encoder_output = sink.getvalue()
            self._write_error_log(session, e)
            raise
        self.encoder_output = sink.getvalue()

        if return_code != 0:
            self._write_error_log(session, None, return_code)
        if self.report_path:
            self._write_report(session, return_code, datetime.now() - start_datetime)
        return return_code

    def _write_error_log(self, session: MovieSession, error: Optional[BaseException], return_code: Optional[int] = None):
        ErrorLog(self.error_dir).write(
            f"Movie: {session.movie_filename}",
            f"Command: {format_command(session.build_command(self.locator.resolve()))}",
            f"Frames staged: {session.frame_count}",
            f"Error: {type(error).__name__}: {error}" if error else f"Encoder exit code: {return_code}",
            f"Encoder output:\n{self.encoder_output}",
        )
        logger.info(f"Failure recorded in {self.error_dir}")

    def _ffprobe_cmd(self) -> str:
        encoder_path = Path(self.locator.resolve())
        if encoder_path.is_absolute():
            return str(encoder_path.with_name(encoder_path.name.replace("ffmpeg", "ffprobe")))
        return "ffprobe"

    def _write_report(self, session: MovieSession, return_code: int, elapsed):
        report = {
            "movie_file": str(session.movie_file.resolve()),
            "video_format": session.video_format.name,
            "width": session.width,
            "height": session.height,
            "frame_rate": session.frame_rate,
            "frame_count": session.frame_count,
            "skipped_frames": self.skipped_frames,
            "encoder": self.locator.resolve(),
            "return_code": return_code,
            "elapsed_time_formatted": format_timedelta(elapsed),
            "ended_datetime": datetime.now().strftime("%Y%m%d_%H:%M:%S"),
        }
        if session.movie_file.is_file():
            size = session.movie_file.stat().st_size
            report["size_bytes"] = size
            report["size_formatted"] = formatted_size(size)
            try:
                movie = MovieFile(session.movie_file, ffprobe_cmd=self._ffprobe_cmd())
                report["duration_seconds"] = round(movie.duration, 3)
                report["codec"] = movie.codec
                if movie.frame_count is not None:
                    report["probed_frame_count"] = movie.frame_count
            except MediaFileException as e:
                logger.warning(f"Could not probe {session.movie_file}: {e}")
        ExportLog(Path(self.report_path)).write(report)
