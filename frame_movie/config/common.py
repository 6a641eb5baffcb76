"""
Common configuration settings used throughout the application.

This module contains globally shared settings and constants for Frame Movie:
logging, staged frame naming, encoder lookup locations and report file names.
It also loads user-specific overrides from an external YAML file, so the
encoder location or the temporary directory can be customized without
modifying the source code.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Path Configuration ---
# This block loads user-specific paths from a 'config.user.yaml' file located
# at the project root.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

# The application's installation root. A bundled encoder is looked up under
# `<INSTALL_ROOT>/bin`. Defaults to the project root.
INSTALL_ROOT: Path = PROJECT_ROOT

# An explicit encoder executable. When set, the encoder search is skipped.
FFMPEG_BINARY: Path | None = None

# Directory for staged frame files. None means the system temporary directory.
TEMP_DIR: Path | None = None

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
        if user_config and "paths" in user_config:
            paths_config = user_config.get("paths") or {}
            install_root_str = paths_config.get("install_root")
            ffmpeg_binary_str = paths_config.get("ffmpeg_binary")
            temp_dir_str = paths_config.get("temp_dir")

            if install_root_str:
                INSTALL_ROOT = Path(install_root_str)
            if ffmpeg_binary_str:
                FFMPEG_BINARY = Path(ffmpeg_binary_str)
            if temp_dir_str:
                TEMP_DIR = Path(temp_dir_str)
    except Exception as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Using default encoder search order.")


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)


# --- Staged Frame Files ---

# Prefix of the marker temporary file a session allocates to obtain its
# unique naming prefix.
TEMPORARY_FILE_PREFIX = "sme"

# Number of digits in the zero-padded frame index of a staged file name.
FRAME_INDEX_DIGITS = 5

# Staged frames are always lossless PNG.
FRAME_FILE_SUFFIX = ".png"


# --- Encoder Lookup ---

# Name of the external encoder executable, without any OS-specific suffix.
ENCODER_NAME = "ffmpeg"

# Directory, relative to the install root, holding a bundled encoder binary.
BUNDLED_BINARY_DIR = "bin"

# System locations checked, in order, after the bundled binary.
SYSTEM_ENCODER_DIRS = (Path("/usr/bin"), Path("/usr/local/bin"))


# --- Reports and Error Logs ---

# Where the CLI writes failure records when no `--error-dir` is given.
DEFAULT_ERROR_DIR = Path("export_error").resolve()

# Default file name of the YAML export report.
EXPORT_REPORT_FILE_NAME = "export_report.yaml"
