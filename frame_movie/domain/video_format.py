"""
The video format catalog.

A video format is a named quality tier that knows which encoder arguments to
pass for a given movie session. Sessions only ever call
`get_argument_list(session)`, so a new tier is a new table entry in
`config.video.MP4_TIERS` and never a change to the session code.
"""
from typing import Any, Dict, List, Optional, Tuple

from ..config.video import (
    DEFAULT_TIER_NAME,
    EVEN_DIMENSION_PIXEL_FORMATS,
    MP4_TIERS,
    VIDEO_CODEC,
    VIDEO_EXTENSION,
)
from .exceptions import UnknownFormatException


class VideoFormat:
    """
    Base class for a container/codec family.

    Instances are immutable: all attributes are exposed read-only, and the
    argument list depends only on the session's width, height and frame rate.
    """

    def __init__(self, name: str, label: str, extension: str):
        self._name = name
        self._label = label
        self._extension = extension

    @property
    def name(self) -> str:
        return self._name

    @property
    def label(self) -> str:
        return self._label

    @property
    def extension(self) -> str:
        return self._extension

    def get_argument_list(self, session: Any) -> List[str]:
        raise NotImplementedError("Subclasses must implement get_argument_list().")

    def __repr__(self):
        return f"{self.__class__.__name__}({self._name!r})"


class MP4VideoFormat(VideoFormat):
    """
    H.264 video in an MP4 container.

    Args:
        name: Tier identifier used for lookups (e.g. "high").
        label: Human-readable tier name.
        crf: Constant Rate Factor, or None for mathematically lossless output.
        preset: x264 speed/compression preset.
        pixel_format: Output pixel format.
    """

    def __init__(self, name: str, label: str, crf: Optional[int], preset: str, pixel_format: str):
        super().__init__(name, label, VIDEO_EXTENSION)
        self._crf = crf
        self._preset = preset
        self._pixel_format = pixel_format

    @property
    def crf(self) -> Optional[int]:
        return self._crf

    @property
    def preset(self) -> str:
        return self._preset

    @property
    def pixel_format(self) -> str:
        return self._pixel_format

    @property
    def is_lossless(self) -> bool:
        return self._crf is None

    def get_argument_list(self, session: Any) -> List[str]:
        args = ["-c:v", VIDEO_CODEC, "-preset", self._preset]
        if self.is_lossless:
            args += ["-qp", "0"]
        else:
            args += ["-crf", str(self._crf)]
        args += ["-pix_fmt", self._pixel_format]
        args += ["-vf", ",".join(self.get_filter_list(session))]
        args += ["-r", str(session.frame_rate), "-movflags", "+faststart"]
        return args

    def get_filter_list(self, session: Any) -> List[str]:
        """
        Returns the video filters for a session, in application order.

        The image sequence is demuxed at 25 fps whatever the session rate, so
        the timestamps are rewritten to one staged frame per output frame.
        Without this, `-r` would drop or duplicate frames.
        """
        filters = [f"setpts=N/({session.frame_rate}*TB)"]
        # Odd sizes are padded up by one pixel instead of failing in the encoder.
        if self._pixel_format in EVEN_DIMENSION_PIXEL_FORMATS and (session.width % 2 or session.height % 2):
            filters.append("pad=ceil(iw/2)*2:ceil(ih/2)*2")
        return filters


def _build_catalog(tiers: Tuple[Dict[str, Any], ...]) -> Tuple[MP4VideoFormat, ...]:
    return tuple(
        MP4VideoFormat(
            tier["name"], tier["label"], tier["crf"], tier["preset"], tier["pixel_format"]
        )
        for tier in tiers
    )


VIDEO_FORMATS: Tuple[MP4VideoFormat, ...] = _build_catalog(MP4_TIERS)
_FORMATS_BY_NAME: Dict[str, MP4VideoFormat] = {fmt.name: fmt for fmt in VIDEO_FORMATS}

LOSSLESS_FORMAT = _FORMATS_BY_NAME["lossless"]
HIGH_FORMAT = _FORMATS_BY_NAME["high"]
MEDIUM_FORMAT = _FORMATS_BY_NAME["medium"]
LOW_FORMAT = _FORMATS_BY_NAME["low"]
DEFAULT_FORMAT = _FORMATS_BY_NAME[DEFAULT_TIER_NAME]


def get_video_format(name: str) -> VideoFormat:
    """
    Looks up a catalog tier by name, case-insensitively.

    Raises:
        UnknownFormatException: If no tier has that name.
    """
    try:
        return _FORMATS_BY_NAME[name.strip().lower()]
    except KeyError:
        available = ", ".join(fmt.name for fmt in VIDEO_FORMATS)
        raise UnknownFormatException(f"Unknown video format '{name}'. Available formats: {available}") from None
