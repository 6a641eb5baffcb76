"""
Frame Movie: export a sequence of in-memory frames as a movie with FFmpeg.

Frames are staged as PNG files and encoded in a single FFmpeg run. The main
entry point for library use is `MovieSession`:

    from frame_movie import MovieSession, HIGH_FORMAT

    with MovieSession("out.mp4", HIGH_FORMAT, 640, 480) as movie:
        movie.add_frame(image)
        movie.save()
"""
from .domain.exceptions import (
    EncodingIOException,
    FrameMovieException,
    InvalidInputException,
    SessionInitException,
    SessionUnusableException,
    UnknownFormatException,
)
from .domain.video_format import (
    DEFAULT_FORMAT,
    HIGH_FORMAT,
    LOSSLESS_FORMAT,
    LOW_FORMAT,
    MEDIUM_FORMAT,
    VIDEO_FORMATS,
    MP4VideoFormat,
    VideoFormat,
    get_video_format,
)
from .services.movie_session import MovieSession
from .utils.encoder_locator import EncoderLocator, default_locator
from .utils.ffmpeg_utils import ProcessRunner, SubprocessRunner

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_FORMAT",
    "EncoderLocator",
    "EncodingIOException",
    "FrameMovieException",
    "HIGH_FORMAT",
    "InvalidInputException",
    "LOSSLESS_FORMAT",
    "LOW_FORMAT",
    "MEDIUM_FORMAT",
    "MP4VideoFormat",
    "MovieSession",
    "ProcessRunner",
    "SessionInitException",
    "SessionUnusableException",
    "SubprocessRunner",
    "UnknownFormatException",
    "VIDEO_FORMATS",
    "VideoFormat",
    "default_locator",
    "get_video_format",
]
