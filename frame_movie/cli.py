"""
Command-Line Interface (CLI) setup for Frame Movie.

This module uses Python's `argparse` to define and parse the command-line
arguments that control an export.
"""
import argparse
from pathlib import Path
from typing import List, Optional

from .config.video import DEFAULT_FRAME_RATE, DEFAULT_TIER_NAME
from .domain.video_format import VIDEO_FORMATS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frame-movie",
        description="Export a sequence of images as a movie using FFmpeg.",
    )
    parser.add_argument(
        "output", type=Path, nargs="?", default=None, help="Path of the movie to write (overwritten if present)."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input-dir", type=Path, default=None, help="Directory of images to export, in file name order."
    )
    source.add_argument(
        "--demo", type=int, default=None, metavar="FRAMES", help="Render the demo animation with this many frames."
    )
    parser.add_argument(
        "--format",
        dest="format_name",
        type=str,
        default=DEFAULT_TIER_NAME,
        choices=[fmt.name for fmt in VIDEO_FORMATS],
        help="Quality tier of the exported movie.",
    )
    parser.add_argument("--width", type=int, default=None, help="Movie width (defaults to the first image's).")
    parser.add_argument("--height", type=int, default=None, help="Movie height (defaults to the first image's).")
    parser.add_argument(
        "--frame-rate", type=int, default=DEFAULT_FRAME_RATE, help="Output frames per second."
    )
    parser.add_argument(
        "--temp-dir", type=str, default=None,
        help="Directory for staged frames. Useful for pointing to a RAM disk to reduce disk writes."
    )
    parser.add_argument("--report", type=Path, default=None, help="Write a YAML export report to this path.")
    parser.add_argument("--error-dir", type=Path, default=None, help="Directory for failure records.")
    parser.add_argument(
        "--verbose", action="store_true", help="Echo the encoder command and its output."
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )
    parser.add_argument("--list-formats", action="store_true", help="List the available formats and exit.")
    parser.add_argument("--check-encoder", action="store_true", help="Check that FFmpeg can be run and exit.")
    return parser


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for Frame Movie.

    Returns:
        argparse.Namespace: The parsed arguments. `temp_dir` is a resolved
                            Path (created if missing) or None.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not (args.list_formats or args.check_encoder):
        if args.output is None:
            parser.error("the output movie path is required")
        if args.input_dir is None and args.demo is None:
            parser.error("one of --input-dir or --demo is required")
    if args.demo is not None and args.demo <= 0:
        parser.error("--demo needs a positive number of frames")
    if (args.width is None) != (args.height is None):
        parser.error("--width and --height must be given together")
    if args.frame_rate <= 0:
        parser.error("--frame-rate must be positive")

    # Validate temp_dir if provided. If it doesn't exist, try to create it.
    if args.temp_dir:
        temp_dir_path = Path(args.temp_dir)
        if not temp_dir_path.is_dir():
            try:
                temp_dir_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                parser.error(f"The temporary directory '{args.temp_dir}' could not be created: {e}")
        args.temp_dir = temp_dir_path.resolve()

    return args
