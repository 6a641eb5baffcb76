import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from frame_movie.domain.exceptions import (
    EncodingIOException,
    InvalidInputException,
    SessionInitException,
    SessionUnusableException,
)
from frame_movie.domain.video_format import HIGH_FORMAT, LOSSLESS_FORMAT
from frame_movie.services.movie_session import MovieSession, frame_size, to_rgba_image
from frame_movie.utils.encoder_locator import EncoderLocator
from frame_movie.utils.ffmpeg_utils import SubprocessRunner
from tests.conftest import RecordingRunner


@pytest.fixture
def session_factory(tmp_path: Path, frames_dir: Path, locator: EncoderLocator, runner: RecordingRunner):
    def _make(width: int = 640, height: int = 480, video_format=HIGH_FORMAT, **kwargs) -> MovieSession:
        kwargs.setdefault("temp_dir", frames_dir)
        kwargs.setdefault("locator", locator)
        kwargs.setdefault("runner", runner)
        return MovieSession(tmp_path / "movie.mp4", video_format, width, height, **kwargs)

    return _make


def _staged(frames_dir: Path) -> list:
    return sorted(frames_dir.glob("*.png"))


def test_new_session_has_no_frames(session_factory, frames_dir: Path) -> None:
    session = session_factory()

    assert session.frame_count == 0
    assert (session.width, session.height) == (640, 480)
    assert session.video_format is HIGH_FORMAT
    assert session.verbose is False
    assert session.is_usable
    assert session.temporary_file_template.endswith("-%05d.png")
    assert _staged(frames_dir) == []


@pytest.mark.parametrize(("width", "height"), [(0, 480), (640, 0), (-1, 10)])
def test_non_positive_size_is_rejected(session_factory, width: int, height: int) -> None:
    with pytest.raises(InvalidInputException):
        session_factory(width, height)


def test_format_and_size_are_required(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        MovieSession(tmp_path / "movie.mp4", HIGH_FORMAT)  # type: ignore[call-arg]


def test_unwritable_temp_dir_fails_initialization(session_factory, tmp_path: Path) -> None:
    with pytest.raises(SessionInitException):
        session_factory(temp_dir=tmp_path / "missing")


def test_verbose_is_settable(session_factory, runner: RecordingRunner, make_image) -> None:
    session = session_factory(64, 48)
    session.verbose = True
    session.add_frame(make_image(64, 48))

    session.save()

    assert runner.verbose_flags == [True]


def test_each_frame_is_staged_with_its_index(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(64, 48)

    for _ in range(3):
        session.add_frame(make_image(64, 48))

    assert session.frame_count == 3
    assert _staged(frames_dir) == [session.temporary_file_for_frame(i) for i in range(3)]
    assert [p.name[-9:] for p in _staged(frames_dir)] == ["00000.png", "00001.png", "00002.png"]


def test_staging_is_logged_at_debug(session_factory, make_image, log_messages) -> None:
    session = session_factory(64, 48)

    session.add_frame(make_image(64, 48))

    staged = [level for level, m in log_messages if m.startswith("Staged frame 0 at ")]
    assert staged == ["DEBUG"]


def test_staged_frames_are_rgba_png(session_factory, make_array) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_array(64, 48, channels=3))

    with Image.open(session.temporary_file_for_frame(0)) as staged:
        assert staged.format == "PNG"
        assert staged.mode == "RGBA"
        assert staged.size == (64, 48)
        assert staged.getpixel((0, 0)) == (128, 128, 128, 255)


def test_wrong_size_is_rejected_without_writing(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(640, 480)

    with pytest.raises(InvalidInputException):
        session.add_frame(make_image(320, 240))

    assert session.frame_count == 0
    assert _staged(frames_dir) == []
    assert session.is_usable


def test_session_stays_usable_after_wrong_size(session_factory, make_image) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_image(64, 48))

    with pytest.raises(InvalidInputException):
        session.add_frame(make_image(48, 64))
    session.add_frame(make_image(64, 48))

    assert session.frame_count == 2


@pytest.mark.parametrize(
    "frame",
    [
        np.zeros((48, 64), dtype=np.uint8),
        np.zeros((48, 64, 1), dtype=np.uint8),
        np.zeros((48, 64, 4), dtype=np.uint8),
        np.ones((48, 64, 3), dtype=np.float32),
    ],
)
def test_array_frames_are_accepted(session_factory, frame: np.ndarray) -> None:
    session = session_factory(64, 48)

    session.add_frame(frame)

    assert session.frame_count == 1


def test_float_arrays_are_scaled_to_bytes() -> None:
    image = to_rgba_image(np.full((2, 2, 3), 0.5, dtype=np.float64))

    assert image.getpixel((0, 0)) == (127, 127, 127, 255)


@pytest.mark.parametrize("frame", ["not an image", np.zeros((2, 2, 2, 2), dtype=np.uint8)])
def test_unsupported_frames_are_invalid_input(frame) -> None:
    with pytest.raises(InvalidInputException):
        frame_size(frame)


def test_two_channel_arrays_are_invalid_input(session_factory) -> None:
    session = session_factory(64, 48)

    with pytest.raises(InvalidInputException):
        session.add_frame(np.zeros((48, 64, 2), dtype=np.uint8))
    assert session.frame_count == 0


def test_save_scenario_high_tier(session_factory, frames_dir: Path, runner: RecordingRunner, locator, make_image) -> None:
    session = session_factory(640, 480, HIGH_FORMAT)
    for _ in range(3):
        session.add_frame(make_image(640, 480))
    expected_staged = [session.temporary_file_for_frame(i) for i in range(3)]

    return_code = session.save()

    assert return_code == 0
    assert runner.staged_during_run == [expected_staged]
    assert _staged(frames_dir) == []
    cmd = runner.commands[0]
    assert cmd[:5] == [locator.resolve(), "-hide_banner", "-y", "-i", session.temporary_file_template]
    assert cmd[5:-1] == HIGH_FORMAT.get_argument_list(session)
    assert cmd[-1] == session.movie_filename


def test_save_writes_encoder_output_to_caller_sink(session_factory, make_image) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_image(64, 48))
    sink = io.StringIO()

    session.save(sink)

    assert sink.getvalue() == "encoder output\n"


def test_non_zero_exit_is_returned_and_still_cleans_up(session_factory, frames_dir: Path, make_image, log_messages) -> None:
    session = session_factory(64, 48, runner=RecordingRunner(return_code=1, output="Invalid argument\n"))
    session.add_frame(make_image(64, 48))
    sink = io.StringIO()

    assert session.save(sink) == 1
    assert "Invalid argument" in sink.getvalue()
    assert _staged(frames_dir) == []
    assert any(level == "WARNING" and "exited with code 1" in m for level, m in log_messages)


def test_launch_failure_raises_encoding_io_after_cleanup(session_factory, frames_dir: Path, tmp_path: Path, make_image) -> None:
    session = session_factory(
        64, 48,
        locator=EncoderLocator(binary=tmp_path / "no-such-ffmpeg"),
        runner=SubprocessRunner(echo=io.StringIO()),
    )
    for _ in range(2):
        session.add_frame(make_image(64, 48))

    with pytest.raises(EncodingIOException) as exc_info:
        session.save()

    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert _staged(frames_dir) == []
    assert not session.is_usable


def test_output_drain_failure_raises_encoding_io(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(64, 48, runner=RecordingRunner(error=BrokenPipeError("pipe closed")))
    session.add_frame(make_image(64, 48))

    with pytest.raises(EncodingIOException):
        session.save()

    assert _staged(frames_dir) == []


def test_unexpected_runner_error_still_cleans_up(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(64, 48, runner=RecordingRunner(error=RuntimeError("bug")))
    session.add_frame(make_image(64, 48))

    with pytest.raises(RuntimeError):
        session.save()

    assert _staged(frames_dir) == []


def test_session_is_finished_after_save(session_factory, make_image) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_image(64, 48))
    session.save()

    with pytest.raises(SessionUnusableException):
        session.add_frame(make_image(64, 48))
    with pytest.raises(SessionUnusableException):
        session.save()


def test_frame_write_failure_cleans_up_and_disables_session(session_factory, frames_dir: Path, make_image, monkeypatch) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_image(64, 48))
    session.add_frame(make_image(64, 48))

    def failing_save(self, fp, format=None, **params):
        Path(fp).write_bytes(b"partial")
        raise OSError("disk full")

    monkeypatch.setattr(Image.Image, "save", failing_save)

    with pytest.raises(EncodingIOException, match="disk full"):
        session.add_frame(make_image(64, 48))

    assert _staged(frames_dir) == []
    assert session.frame_count == 2
    assert not session.is_usable
    with pytest.raises(SessionUnusableException):
        session.save()


def test_cleanup_is_idempotent(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(64, 48)
    for _ in range(2):
        session.add_frame(make_image(64, 48))

    session.cleanup()
    session.cleanup()

    assert _staged(frames_dir) == []
    assert session.frame_count == 2


def test_cleanup_after_save_is_harmless(session_factory, frames_dir: Path, make_image) -> None:
    session = session_factory(64, 48)
    session.add_frame(make_image(64, 48))
    session.save()

    session.cleanup()

    assert _staged(frames_dir) == []


def test_context_manager_abandons_unsaved_frames(session_factory, frames_dir: Path, make_image) -> None:
    with session_factory(64, 48) as session:
        session.add_frame(make_image(64, 48))
        assert len(_staged(frames_dir)) == 1

    assert _staged(frames_dir) == []


def test_concurrent_sessions_use_distinct_names(session_factory, frames_dir: Path, make_image) -> None:
    first = session_factory(64, 48)
    second = session_factory(64, 48)
    first.add_frame(make_image(64, 48))
    second.add_frame(make_image(64, 48))

    assert first.temporary_file_template != second.temporary_file_template
    assert len(_staged(frames_dir)) == 2

    first.cleanup()

    assert _staged(frames_dir) == [second.temporary_file_for_frame(0)]


def test_lossless_session_builds_lossless_arguments(session_factory, runner: RecordingRunner, make_image) -> None:
    session = session_factory(64, 48, LOSSLESS_FORMAT)
    session.add_frame(make_image(64, 48))

    session.save()

    cmd = runner.commands[0]
    assert cmd[cmd.index("-qp") + 1] == "0"
    assert cmd[-1] == session.movie_filename


def test_save_without_frames_still_invokes_encoder(session_factory, runner: RecordingRunner) -> None:
    session = session_factory(64, 48)

    session.save()

    assert len(runner.commands) == 1
