"""
External command execution.

Plugins and notification backends run external programs through a
CommandRunner, which logs each command before running it when debug
mode is on.
"""

import logging
import shlex
import subprocess
from typing import Sequence, Union


logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands, logging them in debug mode."""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def run(
        self,
        command: Union[str, Sequence[str]],
        capture_output: bool = False,
        check: bool = False,
    ) -> subprocess.CompletedProcess:
        """
        Run a command.

        Args:
            command: Shell string (run through the shell) or argument list
            capture_output: Capture stdout/stderr as text
            check: Raise CalledProcessError on non-zero exit

        Returns:
            CompletedProcess
        """
        shell = isinstance(command, str)
        if self.debug:
            printable = command if shell else shlex.join(command)
            logger.debug(f"Command execution: {printable}")

        return subprocess.run(
            command,
            shell=shell,
            capture_output=capture_output,
            text=True,
            check=check,
        )
