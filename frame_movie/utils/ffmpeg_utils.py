"""
This module runs the external encoder and captures what it prints.

`ProcessRunner` is the seam between a movie session and the operating
system: the session hands over a ready-made argument list and a text sink,
and gets the exit code back. `SubprocessRunner` is the synchronous,
blocking implementation used by default.
"""

import os
import shlex
import subprocess
import sys
from typing import Any, List, Optional, TextIO

from loguru import logger


def format_command(cmd_list: List[str]) -> str:
    """
    Renders an argument list as a single, correctly quoted command line.

    The result is for display and logging only; commands are always executed
    from the list itself.
    """
    try:
        if os.name == "nt":
            return subprocess.list2cmdline(cmd_list)
        return shlex.join(cmd_list)
    except Exception as e:
        logger.warning(f"Could not format command list for display: {e}. Using simple join.")
        return " ".join(map(str, cmd_list))


class ProcessRunner:
    """
    Runs a command to completion and writes its combined output to a sink.

    Subclasses implement `run()`. A movie session only depends on this
    interface, so an asynchronous or cancellable runner can be swapped in
    without touching the session.
    """

    def run(self, cmd_list: List[str], sink: Any, verbose: bool = False) -> int:
        raise NotImplementedError("Subclasses must implement the run() method.")


class SubprocessRunner(ProcessRunner):
    """
    Runs commands with `subprocess.Popen`, blocking until they exit.

    The command is never passed through a shell. The child gets no input (its
    stdin is closed immediately), stderr is merged into stdout, and the output
    is copied line by line into the sink. There is no timeout.

    Args:
        echo: Operator-facing stream for verbose mode. Defaults to `sys.stdout`
              at the time of the call.
    """

    def __init__(self, echo: Optional[TextIO] = None):
        self.echo = echo

    def run(self, cmd_list: List[str], sink: Any, verbose: bool = False) -> int:
        """
        Executes the command and returns its exit code.

        Raises:
            ValueError: If the command list is empty.
            OSError: If the process cannot be started (e.g. `FileNotFoundError`
                     for a missing executable) or its output cannot be read.
        """
        if not cmd_list:
            raise ValueError("Cannot run an empty command list.")

        echo = self.echo if self.echo is not None else sys.stdout
        display_cmd_str = format_command(cmd_list)
        logger.debug(f"Executing command: {display_cmd_str}")
        if verbose:
            print(display_cmd_str, file=echo)

        captured: List[str] = []
        with subprocess.Popen(
            cmd_list,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
        ) as process:
            process.stdin.close()
            for line in process.stdout:
                sink.write(line)
                captured.append(line)
            return_code = process.wait()

        if verbose:
            print("".join(captured), file=echo)

        if return_code != 0:
            logger.debug(f"Command exited with rc={return_code}: {display_cmd_str}")
        else:
            logger.trace(f"Command finished (rc=0), {len(captured)} line(s) of output.")
        return return_code
