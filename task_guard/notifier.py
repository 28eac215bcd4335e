"""
System notifications.

The Notifier fans a message out to the backends declared in the Guardfile.
Delivery failures are logged and never interrupt the caller.
"""

import logging
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from task_guard.commands import CommandRunner
from task_guard.constants import DEFAULT_NOTIFICATION_TITLE
from task_guard.exceptions import EvaluationError
from task_guard.models import NotifierSpec


logger = logging.getLogger(__name__)

IMAGES = ("success", "pending", "failed")


class NotificationBackend:
    """Base class for notification backends."""

    def __init__(self, options: Optional[Dict[str, Any]] = None, commands: Optional[CommandRunner] = None):
        self.options = dict(options or {})
        self.commands = commands or CommandRunner()

    @classmethod
    def available(cls) -> bool:
        return True

    def notify(self, message: str, title: str, image: str) -> None:
        raise NotImplementedError


class LogBackend(NotificationBackend):
    """Writes notifications to the log."""

    def notify(self, message: str, title: str, image: str) -> None:
        if image == "failed":
            logger.error(f"[{title}] {message}")
        else:
            logger.info(f"[{title}] {message}")


class FileBackend(NotificationBackend):
    """Appends notifications to the file given by the `path` option."""

    def notify(self, message: str, title: str, image: str) -> None:
        path = self.options.get("path")
        if not path:
            raise ValueError("file notification requires a 'path' option")
        fmt = self.options.get("format", "{image} - {title} - {message}\n")
        with open(Path(path).expanduser(), "a") as f:
            f.write(fmt.format(image=image, title=title, message=message))


class TerminalTitleBackend(NotificationBackend):
    """Shows the last notification in the terminal title."""

    @classmethod
    def available(cls) -> bool:
        return sys.stdout.isatty()

    def notify(self, message: str, title: str, image: str) -> None:
        first_line = message.splitlines()[0] if message else ""
        sys.stdout.write(f"\033]2;[{title}] {first_line}\007")
        sys.stdout.flush()


class NotifySendBackend(NotificationBackend):
    """Desktop notifications through libnotify's notify-send."""

    URGENCY = {"failed": "critical", "pending": "normal", "success": "low"}

    @classmethod
    def available(cls) -> bool:
        return sys.platform.startswith("linux") and shutil.which("notify-send") is not None

    def notify(self, message: str, title: str, image: str) -> None:
        command = [
            "notify-send",
            "-u", self.URGENCY.get(image, "normal"),
            "-t", str(self.options.get("timeout", 3000)),
            title,
            message,
        ]
        self.commands.run(command, capture_output=True, check=True)


BACKENDS: Dict[str, Type[NotificationBackend]] = {
    "log": LogBackend,
    "file": FileBackend,
    "terminal_title": TerminalTitleBackend,
    "notify_send": NotifySendBackend,
}

# Tried in order when turning on without any declared backend
AUTODETECT_ORDER = ("notify_send", "terminal_title")


class Notifier:
    """
    Notification hub.

    Notifications are only delivered while turned on.
    """

    def __init__(self, commands: Optional[CommandRunner] = None):
        self.commands = commands or CommandRunner()
        self.notifiers: List[NotifierSpec] = []
        self._backends: List[NotificationBackend] = []
        self._enabled = False

    def add(self, name: str, options: Optional[Dict[str, Any]] = None, silent: bool = False) -> bool:
        """
        Register a notification backend.

        Args:
            name: Backend name
            options: Backend options
            silent: Skip unavailable backends without a warning

        Returns:
            True if the backend was added

        Raises:
            EvaluationError: If the backend name is unknown
        """
        key = name.lower().replace("-", "_")
        if key not in BACKENDS:
            raise EvaluationError(f"Unknown notification backend: {name}")

        backend_class = BACKENDS[key]
        if not backend_class.available():
            if not silent:
                logger.warning(f"Notification backend '{name}' is not available on this system")
            return False

        spec = NotifierSpec(name=key, options=dict(options or {}))
        self.notifiers.append(spec)
        self._backends.append(backend_class(spec.options, commands=self.commands))
        return True

    def clear(self) -> None:
        """Remove all registered backends."""
        self.notifiers = []
        self._backends = []

    def turn_on(self) -> None:
        """Enable notifications, auto-detecting a backend if none is declared."""
        if not self._backends:
            for name in AUTODETECT_ORDER:
                if self.add(name, silent=True):
                    break
            else:
                self.add("log")

        for spec in self.notifiers:
            logger.debug(f"Using {spec.name} to send notifications.")
        self._enabled = True

    def turn_off(self) -> None:
        self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def notify(self, message: str, title: str = DEFAULT_NOTIFICATION_TITLE, image: str = "success") -> None:
        """
        Deliver a notification to every registered backend.

        Args:
            message: Notification body
            title: Notification title
            image: One of "success", "pending", "failed"
        """
        if not self._enabled:
            return

        for spec, backend in zip(self.notifiers, self._backends):
            try:
                backend.notify(message, title=title, image=image)
            except Exception as e:
                logger.warning(f"Notification via {spec.name} failed: {e}")
