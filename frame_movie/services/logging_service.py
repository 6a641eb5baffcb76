"""
This module provides the persistent logs written by the export pipeline.

They complement the real-time console logging: `ExportLog` records each
finished export as a YAML document (machine-readable, easy to aggregate),
while `ErrorLog` appends human-readable failure records, including the exact
encoder command and its captured output, to a plain text file.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from loguru import logger

from ..config.common import EXPORT_REPORT_FILE_NAME


class Log:
    """
    Base class for the persistent logs.

    Args:
        log_base_path: A directory, or a file path whose parent directory is
                       used. The directory is created if needed.
    """

    linesep_marker: str = "=" * 50

    def __init__(self, log_base_path: Path):
        self.log_file_path: Path
        log_base_path = Path(log_base_path)
        if log_base_path.is_dir() or not log_base_path.suffix:
            self.log_dir: Path = log_base_path.resolve()
        else:
            self.log_dir: Path = log_base_path.parent.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """Appends failure records to a plain text file (`error.txt` by default)."""

    DEFAULT_ERROR_FILENAME = "error.txt"

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        super().__init__(error_log_dir)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Appends a timestamped record made of the given messages, one per line,
        followed by a separator line.
        """
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(f"[{datetime.now().isoformat(timespec='seconds')}]\n")
                for message in error_messages:
                    f.write(f"{message}\n")
                f.write(f"{self.linesep_marker}\n")
        except OSError as e:
            logger.error(f"Failed to write error log {self.log_file_path}: {e}")


class ExportLog(Log):
    """
    Writes the YAML report of a finished export.

    When the given path has a file suffix it is used as the report file;
    otherwise the report is written as `export_report.yaml` in that directory.
    """

    def __init__(self, report_path: Path):
        report_path = Path(report_path)
        super().__init__(report_path)
        if report_path.suffix and not report_path.is_dir():
            self.log_file_path = self.log_dir / report_path.name
        else:
            self.log_file_path = self.log_dir / EXPORT_REPORT_FILE_NAME

    def write(self, log_content: Dict[str, Any]):
        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(log_content, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
            logger.debug(f"Export report written to {self.log_file_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to write export report {self.log_file_path}: {e}")

    def read(self) -> Dict[str, Any]:
        """Loads a previously written report; an empty dict if there is none."""
        if not self.log_file_path.is_file():
            return {}
        with self.log_file_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
