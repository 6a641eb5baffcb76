"""
Defines custom exception types for the Frame Movie application.

These exceptions allow callers of a movie session to react to specific
failures: a frame of the wrong size can simply be skipped, while an I/O
failure means the session has already cleaned up after itself and must be
discarded.

All custom exceptions inherit from the base `FrameMovieException`.
"""


class FrameMovieException(Exception):
    """Base class for all custom exceptions in the Frame Movie application."""

    pass


# --- Session Lifecycle Exceptions ---
class SessionInitException(FrameMovieException):
    """
    Raised when a movie session cannot allocate its unique naming template.

    The template is derived from a marker temporary file; if that file cannot
    be created (for example because the temporary directory is not writable),
    the session cannot stage any frames and construction fails.
    """

    pass


class SessionUnusableException(FrameMovieException):
    """
    Raised when a frame is added to, or a save is requested from, a session
    that has already failed or has already been saved.
    """

    pass


# --- Input Validation Exceptions ---
class InvalidInputException(FrameMovieException, ValueError):
    """
    Raised when a frame's pixel dimensions do not match the movie's size, or
    when a session is created with non-positive dimensions.

    Nothing is written to disk before this is raised, so the session stays
    usable for subsequent correctly sized frames.
    """

    pass


class UnknownFormatException(FrameMovieException, ValueError):
    """Raised when a video format tier name is not in the catalog."""

    pass


# --- Encoding Specific Exceptions ---
class EncodingIOException(FrameMovieException):
    """
    Raised when writing a staged frame fails, or when the encoder process
    cannot be launched or its output cannot be read.

    Every staged file of the session is removed before this is raised.
    """

    pass


# --- Probe Specific Exceptions ---
class MediaFileException(FrameMovieException):
    """Raised when a finished movie cannot be probed with ffprobe."""

    pass
