"""
Main entry point for the Frame Movie application.

This script parses the command line, configures logging and runs the export:
either a directory of images or the built-in demo animation is turned into a
movie by FFmpeg.
"""

import sys
from typing import List, Optional

from loguru import logger

from frame_movie.cli import get_args
from frame_movie.config.common import LOGGER_FORMAT
from frame_movie.domain.exceptions import FrameMovieException
from frame_movie.domain.video_format import DEFAULT_FORMAT, VIDEO_FORMATS, get_video_format
from frame_movie.pipeline.export_pipeline import (
    DEMO_HEIGHT,
    DEMO_WIDTH,
    ImageSequenceExporter,
    render_demo_frames,
)
from frame_movie.utils.encoder_locator import default_locator


def main(argv: Optional[List[str]] = None) -> int:
    """
    Runs one export and returns the process exit code.

    0 means the encoder ran and exited cleanly, 1 means the export failed or
    the encoder reported an error.
    """
    args = get_args(argv)

    effective_log_level = "DEBUG" if args.verbose and args.log_level == "INFO" else args.log_level
    logger.remove()
    logger.add(sys.stderr, level=effective_log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    if args.list_formats:
        for fmt in VIDEO_FORMATS:
            marker = " (default)" if fmt is DEFAULT_FORMAT else ""
            print(f"{fmt.name:<10} {fmt.label}{marker}")
        return 0

    locator = default_locator()
    if args.check_encoder:
        return 0 if locator.verify() else 1

    exporter = ImageSequenceExporter(
        args.output, get_video_format(args.format_name), args=args, locator=locator
    )
    try:
        if args.demo is not None:
            width, height = args.width or DEMO_WIDTH, args.height or DEMO_HEIGHT
            logger.info(f"Rendering {args.demo} demo frame(s) at {width}x{height}")
            return_code = exporter.export_frames(render_demo_frames(args.demo, width, height), width, height)
        else:
            return_code = exporter.export_directory(args.input_dir, args.width, args.height)
    except (FrameMovieException, FileNotFoundError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    if return_code != 0:
        logger.error(f"FFmpeg exited with code {return_code}. Encoder output:\n{exporter.encoder_output}")
        return 1
    logger.success("Frame Movie export finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
