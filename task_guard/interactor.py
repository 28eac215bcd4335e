"""
Interactive console.

Reads one command per line from stdin on a background thread and maps it to
Supervisor operations. An interrupt (Ctrl-C) forwarded by the signal
controller only prints a notice instead of stopping task-guard; the terminal
itself drops the half-typed line.
"""

import logging
import sys
import threading
from typing import Callable, Dict, Optional, TextIO

from task_guard.constants import TASK_GUARD_INTERACTOR


logger = logging.getLogger(__name__)

HELP = """\
Commands:
  all, a      run all plugins (run_all)
  reload, r   reload all plugins
  pause, p    toggle file watching
  exit, e     stop task-guard
  help, h     show this help
  (empty)     run all plugins"""


class Interactor:
    """Line-based console driving a Supervisor."""

    # Globally enabled unless TASK_GUARD_INTERACTOR=false
    enabled = TASK_GUARD_INTERACTOR

    def __init__(self, supervisor, stdin: Optional[TextIO] = None):
        self.supervisor = supervisor
        self.stdin = stdin or sys.stdin
        self.thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._commands: Dict[str, Callable[[], None]] = {
            "": supervisor.run_all,
            "a": supervisor.run_all,
            "all": supervisor.run_all,
            "r": supervisor.reload,
            "reload": supervisor.reload,
            "p": self._toggle_pause,
            "pause": self._toggle_pause,
            "e": supervisor.stop,
            "exit": supervisor.stop,
            "quit": supervisor.stop,
            "h": self._help,
            "help": self._help,
        }

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._run, name="task-guard-interactor", daemon=True)
        self.thread.start()

    def stop(self) -> None:
        # A blocked readline cannot be cancelled; the daemon thread exits
        # on its next line or with the process.
        self._stop_event.set()
        self.thread = None

    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive() and not self._stop_event.is_set()

    def interrupt(self) -> None:
        """Acknowledge Ctrl-C; the next line read is a fresh command."""
        print("\nInterrupted (type 'exit' to quit)", flush=True)

    def handle(self, line: str) -> bool:
        """
        Execute one console command.

        Returns:
            False if the command is unknown
        """
        command = line.strip().lower()
        action = self._commands.get(command)
        if action is None:
            print(f"Unknown command: {command} (type 'help')", flush=True)
            return False
        action()
        return True

    def _run(self) -> None:
        while not self._stop_event.is_set():
            line = self.stdin.readline()
            if not line:
                # EOF
                break
            if self._stop_event.is_set():
                break
            try:
                self.handle(line)
            except Exception as e:
                logger.exception(f"Console command failed: {e}")

    def _toggle_pause(self) -> None:
        if self.supervisor.listener is not None and self.supervisor.listener.is_paused():
            self.supervisor.resume()
        else:
            self.supervisor.pause()

    def _help(self) -> None:
        print(HELP, flush=True)
