from pathlib import Path
from typing import Any, List, Optional

import numpy as np
import pytest
from loguru import logger
from PIL import Image

from frame_movie.utils.encoder_locator import EncoderLocator
from frame_movie.utils.ffmpeg_utils import ProcessRunner


class RecordingRunner(ProcessRunner):
    """Records each command and which staged frames existed while it ran."""

    def __init__(self, return_code: int = 0, output: str = "encoder output\n", error: Optional[BaseException] = None):
        self.return_code = return_code
        self.output = output
        self.error = error
        self.commands: List[List[str]] = []
        self.staged_during_run: List[List[Path]] = []
        self.verbose_flags: List[bool] = []

    def run(self, cmd_list: List[str], sink: Any, verbose: bool = False) -> int:
        self.commands.append(list(cmd_list))
        self.verbose_flags.append(verbose)
        template = cmd_list[cmd_list.index("-i") + 1]
        prefix = Path(template.split("-%")[0])
        self.staged_during_run.append(sorted(prefix.parent.glob(prefix.name + "-*.png")))
        if self.error is not None:
            raise self.error
        sink.write(self.output)
        return self.return_code


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def locator(tmp_path: Path) -> EncoderLocator:
    """A locator pinned to a fake encoder path, so no search takes place."""
    return EncoderLocator(binary=tmp_path / "bin" / "ffmpeg")


@pytest.fixture
def frames_dir(tmp_path: Path) -> Path:
    staged = tmp_path / "staged"
    staged.mkdir()
    return staged


@pytest.fixture
def make_image():
    def _make(width: int = 64, height: int = 48, color=(255, 0, 0, 255)) -> Image.Image:
        return Image.new("RGBA", (width, height), color)

    return _make


@pytest.fixture
def make_array():
    def _make(width: int = 64, height: int = 48, channels: int = 3) -> np.ndarray:
        return np.full((height, width, channels), 128, dtype=np.uint8)

    return _make


@pytest.fixture
def log_messages():
    """Collects loguru records as (level, message) tuples."""
    messages = []
    handler_id = logger.add(lambda m: messages.append((m.record["level"].name, m.record["message"])), level="TRACE")
    yield messages
    logger.remove(handler_id)
