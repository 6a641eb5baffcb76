"""
This module provides the EncoderLocator class, which finds the external
encoder (FFmpeg) executable.

The search runs once and the result is cached. Misses along the way are
reported as warnings; the last candidate is the bare executable name, which
the operating system resolves through PATH when the encoder is launched, so
resolution itself never fails.
"""
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from ..config.common import (
    BUNDLED_BINARY_DIR,
    ENCODER_NAME,
    FFMPEG_BINARY,
    INSTALL_ROOT,
    SYSTEM_ENCODER_DIRS,
)


def executable_name(name: str = ENCODER_NAME, platform: Optional[str] = None) -> str:
    """Returns the executable file name for the host OS (adds '.exe' on Windows)."""
    platform = platform or sys.platform
    return f"{name}.exe" if platform.startswith("win") else name


class EncoderLocator:
    """
    Resolves and caches the path of the encoder executable.

    Resolution order, first existing file wins:
    1. `<install_root>/bin/ffmpeg` (`ffmpeg.exe` on Windows), a bundled copy.
    2. `/usr/bin/ffmpeg`
    3. `/usr/local/bin/ffmpeg`
    4. `ffmpeg`, looked up on PATH at launch time.

    Args:
        install_root: Installation root holding the bundled binary.
        system_dirs: System directories searched after the bundled binary.
        binary: An explicit executable. When given, no search takes place.
        platform: Overrides `sys.platform` when choosing the executable name.
    """

    def __init__(
        self,
        install_root: Path = INSTALL_ROOT,
        system_dirs: Tuple[Path, ...] = SYSTEM_ENCODER_DIRS,
        binary: Optional[Path] = None,
        platform: Optional[str] = None,
        name: str = ENCODER_NAME,
    ):
        self.install_root = Path(install_root)
        self.system_dirs = tuple(Path(d) for d in system_dirs)
        self.binary = Path(binary) if binary else None
        self.name = name
        self.platform = platform or sys.platform
        self._resolved: Optional[str] = None

    def candidates(self) -> List[Path]:
        bundled = self.install_root / BUNDLED_BINARY_DIR / executable_name(self.name, self.platform)
        return [bundled] + [d / self.name for d in self.system_dirs]

    def resolve(self) -> str:
        """
        Returns the encoder command, resolving it on the first call.

        Returns:
            An absolute path to an existing executable, or the bare name.
        """
        if self._resolved is not None:
            return self._resolved

        if self.binary:
            logger.debug(f"Using configured encoder binary: '{self.binary}'")
            self._resolved = str(self.binary)
            return self._resolved

        for candidate in self.candidates():
            if candidate.is_file():
                logger.debug(f"Using encoder found at '{candidate}'")
                self._resolved = str(candidate.resolve())
                return self._resolved
            logger.warning(f"Could not find {self.name} at '{candidate}'")

        logger.warning(f"Falling back to '{self.name}' on the system PATH.")
        self._resolved = self.name
        return self._resolved

    @property
    def is_resolved(self) -> bool:
        return self._resolved is not None

    def reset(self):
        """Forgets the cached result so the next `resolve()` searches again."""
        self._resolved = None

    def verify(self) -> Optional[str]:
        """
        Checks that the encoder can be executed by running `<encoder> -version`.

        Returns:
            The first line of the version output, or None if the encoder could
            not be run.
        """
        encoder_cmd = self.resolve()
        try:
            result = subprocess.run(
                [encoder_cmd, "-version"],
                check=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"Encoder version command failed (return code {e.returncode}):\n{e.stderr}")
            return None
        except OSError as e:
            logger.error(
                f"Encoder '{encoder_cmd}' could not be executed: {e}\n"
                "Install FFmpeg, add it to your PATH, or set 'paths.ffmpeg_binary' in 'config.user.yaml'."
            )
            return None

        version_output_lines = result.stdout.splitlines()
        first_line = version_output_lines[0] if version_output_lines else ""
        logger.info(f"Encoder version check successful: {first_line}")
        return first_line


_default_locator: Optional[EncoderLocator] = None


def default_locator() -> EncoderLocator:
    """Returns the process-wide locator built from the user configuration."""
    global _default_locator
    if _default_locator is None:
        _default_locator = EncoderLocator(binary=FFMPEG_BINARY)
    return _default_locator
