"""
Configuration settings related to the exported video.

This module defines the codec, the frame rate and the parameters of each
quality tier in the MP4 format catalog, plus the image extensions accepted
when exporting a directory of frames.
"""

# --- General Video Settings ---
VIDEO_CODEC = "libx264"
VIDEO_EXTENSION = ".mp4"

# Matches the default input rate of FFmpeg's image sequence demuxer, so the
# output rate never duplicates or drops staged frames.
DEFAULT_FRAME_RATE = 25

# --- Quality Tiers ---
# Listed from best to smallest. `crf` None means lossless (`-qp 0`).
MP4_TIERS = (
    {"name": "lossless", "label": "Lossless", "crf": None, "preset": "veryslow", "pixel_format": "yuv444p"},
    {"name": "high", "label": "High", "crf": 18, "preset": "slow", "pixel_format": "yuv420p"},
    {"name": "medium", "label": "Medium", "crf": 23, "preset": "medium", "pixel_format": "yuv420p"},
    {"name": "low", "label": "Low", "crf": 28, "preset": "fast", "pixel_format": "yuv420p"},
)
DEFAULT_TIER_NAME = "high"

# Chroma-subsampled pixel formats need even frame dimensions.
EVEN_DIMENSION_PIXEL_FORMATS = {"yuv420p"}

# --- Directory Export ---
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp")
