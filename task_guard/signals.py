"""
Signal control.

SIGUSR1 pauses file watching, SIGUSR2 resumes it and SIGINT is forwarded to
the console when one is attached, stopping task-guard otherwise. Handlers
only spawn a short-lived thread; the action itself runs under the
supervisor's lock on that thread.
"""

import logging
import signal
import threading
from typing import Callable, Dict


logger = logging.getLogger(__name__)


def supported_signals(*names: str) -> Dict[str, int]:
    """Signal numbers for the names the host actually supports."""
    return {name: getattr(signal, name) for name in names if hasattr(signal, name)}


class SignalController:
    """Installs the control signal traps for a Supervisor."""

    def __init__(self, supervisor):
        self.supervisor = supervisor
        self.installed = False
        self._previous: Dict[int, object] = {}

    def install(self) -> None:
        """Install the traps; calling again is a no-op."""
        if self.installed:
            return

        handlers = {
            "SIGUSR1": self._on_pause,
            "SIGUSR2": self._on_resume,
            "SIGINT": self._on_interrupt,
        }
        for name, signum in supported_signals(*handlers).items():
            try:
                self._previous[signum] = signal.signal(signum, handlers[name])
            except (ValueError, OSError) as e:
                # Not the main thread, or the platform refuses the trap
                logger.debug(f"Cannot trap {name}: {e}")
        self.installed = True

    def uninstall(self) -> None:
        """Restore the handlers that were in place before install()."""
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, OSError, TypeError) as e:
                logger.debug(f"Cannot restore handler for signal {signum}: {e}")
        self._previous = {}
        self.installed = False

    def _spawn(self, action: Callable[[], None], name: str) -> threading.Thread:
        thread = threading.Thread(target=action, name=f"task-guard-{name}", daemon=True)
        thread.start()
        return thread

    # ===== Handlers =====

    def _on_pause(self, signum, frame) -> None:
        self._spawn(self.pause_unless_paused, "pause")

    def _on_resume(self, signum, frame) -> None:
        self._spawn(self.resume_if_paused, "resume")

    def _on_interrupt(self, signum, frame) -> None:
        interactor = self.supervisor.attached_interactor()
        if interactor is not None and interactor.is_running():
            interactor.interrupt()
        else:
            self._spawn(self.supervisor.stop, "stop")

    # ===== Actions =====

    def pause_unless_paused(self) -> None:
        with self.supervisor.within_preserved_state():
            if not self.supervisor.is_paused():
                self.supervisor.pause()

    def resume_if_paused(self) -> None:
        with self.supervisor.within_preserved_state():
            if self.supervisor.is_paused():
                self.supervisor.resume()
