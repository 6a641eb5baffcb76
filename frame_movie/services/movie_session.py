"""
The movie session: collects frames and exports them as a single movie.

A session stages every frame as a PNG file, then hands the whole numbered
sequence to the external encoder in one invocation. Staged files are removed
when the export finishes, whether it succeeded or not, and whenever a frame
cannot be written.

Example:
    with MovieSession("out.mp4", HIGH_FORMAT, 640, 480) as movie:
        for image in images:
            movie.add_frame(image)
        movie.save()
"""
import io
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

import numpy as np
from loguru import logger
from PIL import Image

from ..config.common import TEMP_DIR
from ..config.video import DEFAULT_FRAME_RATE
from ..domain.exceptions import (
    EncodingIOException,
    InvalidInputException,
    SessionUnusableException,
)
from ..domain.frame_store import TemporaryFrameStore
from ..domain.video_format import VideoFormat
from ..utils.encoder_locator import EncoderLocator, default_locator
from ..utils.ffmpeg_utils import ProcessRunner, SubprocessRunner, format_command
from ..utils.format_utils import format_timedelta, formatted_size


def frame_size(image: Any) -> Tuple[int, int]:
    """
    Returns the (width, height) of a Pillow image or a numpy array.

    Raises:
        InvalidInputException: For any other object, or an array that is not
                               2D or 3D.
    """
    if isinstance(image, Image.Image):
        return image.size
    if isinstance(image, np.ndarray):
        if image.ndim not in (2, 3):
            raise InvalidInputException(f"Frame arrays must be 2D or 3D, got shape {image.shape}.")
        return int(image.shape[1]), int(image.shape[0])
    raise InvalidInputException(f"Unsupported frame type: {type(image).__name__}")


def to_rgba_image(image: Any) -> Image.Image:
    """Converts a frame to an RGBA Pillow image, the staged PNG's pixel format."""
    if isinstance(image, Image.Image):
        return image if image.mode == "RGBA" else image.convert("RGBA")

    frame = image
    if np.issubdtype(frame.dtype, np.floating):
        frame = (frame * 255).clip(0, 255).astype(np.uint8)
    elif frame.dtype != np.uint8:
        frame = frame.clip(0, 255).astype(np.uint8)

    if frame.ndim == 3 and frame.shape[2] == 1:
        frame = frame[:, :, 0]
    if frame.ndim == 3 and frame.shape[2] not in (3, 4):
        raise InvalidInputException(f"Frame arrays need 1, 3 or 4 channels, got shape {image.shape}.")
    return Image.fromarray(frame).convert("RGBA")


class MovieSession:
    """
    One movie export, from the first frame to the final cleanup.

    The output path, format, size and frame rate are fixed for the lifetime of
    the session. The session is not thread-safe: calls must be sequenced by
    the caller. Separate sessions never share staged files.

    Args:
        movie_filename: Path of the movie to write. An existing file is overwritten.
        video_format: The format tier producing the encoder arguments.
        width: Frame width in pixels; every added frame must match it.
        height: Frame height in pixels; every added frame must match it.
        verbose: Echo the encoder command and its output to the console.
        frame_rate: Output frames per second.
        temp_dir: Directory for staged frames (system default if None).
        locator: Resolves the encoder executable (process-wide locator if None).
        runner: Executes the encoder (a `SubprocessRunner` if None).

    Raises:
        InvalidInputException: If width, height or frame rate is not positive.
        SessionInitException: If the staged frame names cannot be allocated.
    """

    def __init__(
        self,
        movie_filename: str | Path,
        video_format: VideoFormat,
        width: int,
        height: int,
        verbose: bool = False,
        *,
        frame_rate: int = DEFAULT_FRAME_RATE,
        temp_dir: Optional[Path] = TEMP_DIR,
        locator: Optional[EncoderLocator] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        if width <= 0 or height <= 0:
            raise InvalidInputException(f"Movie size must be positive, got {width}x{height}.")
        if frame_rate <= 0:
            raise InvalidInputException(f"Frame rate must be positive, got {frame_rate}.")

        self._movie_filename = str(movie_filename)
        self._video_format = video_format
        self._width = int(width)
        self._height = int(height)
        self._frame_rate = frame_rate
        self.verbose = verbose
        self._frame_count = 0
        self._usable = True

        self.locator = locator if locator is not None else default_locator()
        self.runner = runner if runner is not None else SubprocessRunner()
        self._store = TemporaryFrameStore(temp_dir)

    # --- Read accessors ---

    @property
    def movie_filename(self) -> str:
        return self._movie_filename

    @property
    def movie_file(self) -> Path:
        return Path(self._movie_filename)

    @property
    def video_format(self) -> VideoFormat:
        return self._video_format

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def frame_rate(self) -> int:
        return self._frame_rate

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def temporary_file_template(self) -> str:
        return self._store.template

    @property
    def is_usable(self) -> bool:
        return self._usable

    def temporary_file_for_frame(self, frame: int) -> Path:
        return self._store.path_for_frame(frame)

    # --- Frame staging ---

    def add_frame(self, image: Any):
        """
        Adds an image to the movie.

        The image must be exactly the size of the movie. It is written as a
        PNG to the staged file of the current frame index, and the frame
        counter is increased.

        Args:
            image: A Pillow image, or a numpy array of shape (H, W), (H, W, 3)
                   or (H, W, 4). Float arrays are read as values in [0, 1].

        Raises:
            InvalidInputException: The image has the wrong size or type.
                                   Nothing was written; the session is still usable.
            EncodingIOException: The staged file could not be written. All
                                 staged files were removed and the session is
                                 no longer usable.
            SessionUnusableException: The session has failed or was saved.
        """
        self._ensure_usable()
        image_width, image_height = frame_size(image)
        if image_width != self._width or image_height != self._height:
            raise InvalidInputException(
                f"Given image is {image_width}x{image_height}, "
                f"but the movie is {self._width}x{self._height}."
            )
        rgba_image = to_rgba_image(image)

        frame_path = self._store.path_for_frame(self._frame_count)
        try:
            rgba_image.save(frame_path, format="PNG")
        except OSError as e:
            # The partially written file has the current index, which cleanup()
            # only covers once the counter includes it.
            self._store.remove(self._frame_count + 1)
            self._cleanup_and_raise(f"Could not write staged frame {frame_path}", e)

        self._frame_count += 1
        logger.debug(f"Staged frame {self._frame_count - 1} at {frame_path}")

    # --- Export ---

    def build_command(self, encoder: str) -> List[str]:
        """Builds the encoder argument list for the frames staged so far."""
        cmd_list = [encoder]
        cmd_list.append("-hide_banner")  # No compilation banner in the captured output.
        cmd_list.append("-y")  # Overwrite the target if it exists.
        cmd_list += ["-i", self._store.template]
        cmd_list += self._video_format.get_argument_list(self)
        cmd_list.append(self._movie_filename)
        return cmd_list

    def save(self, output: Any = None) -> int:
        """
        Encodes the staged frames into the movie file and removes them.

        The call blocks until the encoder exits. Staged files are removed on
        every exit path. The encoder's exit code is returned but not acted on:
        a non-zero exit is only logged, and the captured output is the
        diagnostic.

        Args:
            output: A writable text object (anything with `write`) receiving
                    the encoder's combined stdout and stderr. Defaults to a
                    discarded `io.StringIO`.

        Returns:
            The encoder's exit code.

        Raises:
            EncodingIOException: The encoder could not be launched or its
                                 output could not be read. Staged files were
                                 removed; the session is no longer usable.
            SessionUnusableException: The session has failed or was saved.
        """
        self._ensure_usable()
        self._usable = False
        sink = output if output is not None else io.StringIO()

        with self._staged_frames():
            encoder = self.locator.resolve()
            cmd_list = self.build_command(encoder)
            logger.info(
                f"Exporting movie {self._movie_filename} with inputs {self._store.template} "
                f"({self._frame_count} frames, format {self._video_format.name}, encoder {encoder})"
            )
            start_datetime = datetime.now()
            try:
                return_code = self.runner.run(cmd_list, sink, verbose=self.verbose)
            except OSError as e:
                logger.error(f"Error while exporting movie {self._movie_filename}: {e}")
                raise EncodingIOException(
                    f"Could not run encoder for {self._movie_filename}: {format_command(cmd_list)}"
                ) from e

        elapsed = datetime.now() - start_datetime
        if return_code != 0:
            logger.warning(
                f"Encoder exited with code {return_code} for {self._movie_filename}; see captured output."
            )
        elif self.movie_file.is_file():
            logger.success(
                f"Exported {self.movie_file.name}: {self._frame_count} frames, "
                f"{formatted_size(self.movie_file.stat().st_size)}, time: {format_timedelta(elapsed)}"
            )
        return return_code

    # --- Cleanup ---

    def cleanup(self):
        """
        Removes the staged images for every frame added so far.

        `save()` calls this automatically, as does any failed frame write. Call
        it directly to abandon a session without producing a movie. Calling it
        more than once is harmless.
        """
        self._store.remove(self._frame_count)

    @contextmanager
    def _staged_frames(self) -> Iterator[None]:
        try:
            yield
        finally:
            self.cleanup()

    def _cleanup_and_raise(self, message: str, cause: BaseException):
        self._usable = False
        self.cleanup()
        logger.error(f"Error while exporting movie {self._movie_filename}: {message}: {cause}")
        raise EncodingIOException(f"{message}: {cause}") from cause

    def _ensure_usable(self):
        if not self._usable:
            raise SessionUnusableException(
                f"Movie session for {self._movie_filename} has already been saved or has failed."
            )

    def __enter__(self) -> "MovieSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def __repr__(self):
        return (
            f"MovieSession({self._movie_filename!r}, {self._video_format.name}, "
            f"{self._width}x{self._height}, frames={self._frame_count})"
        )
