"""
Filesystem listener built on watchdog.

Collects watchdog events for the watched directories into batches of
modified/added/removed absolute paths and hands each batch to a callback on
the listener's worker thread.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from task_guard.constants import DEFAULT_WAIT_FOR_DELAY, OBSERVER_JOIN_TIMEOUT
from task_guard.models import ChangeSet


logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[str], List[str], List[str]], None]


class Listener(FileSystemEventHandler):
    """
    Watches directories and reports batched changes.

    Events arriving while paused are dropped.
    """

    def __init__(
        self,
        directories: Sequence[Path],
        callback: ChangeCallback,
        latency: Optional[float] = None,
        force_polling: bool = False,
        wait_for_delay: Optional[float] = None,
    ):
        """
        Initialize listener.

        Args:
            directories: Absolute directories to watch recursively
            callback: Called with (modified, added, removed) absolute paths
            latency: Observer polling timeout in seconds
            force_polling: Use the polling observer instead of native events
            wait_for_delay: Quiet period before a batch is delivered
        """
        super().__init__()
        self.directories = [Path(d) for d in directories]
        self.callback = callback
        self.latency = latency
        self.force_polling = force_polling
        self.wait_for_delay = wait_for_delay if wait_for_delay is not None else DEFAULT_WAIT_FOR_DELAY

        self._observer = None
        self._worker: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._changed = threading.Event()
        self._paused = threading.Event()
        self._pending_lock = threading.Lock()
        self._pending: Dict[str, List[str]] = {"modified": [], "added": [], "removed": []}
        self._last_event = 0.0

    # ===== watchdog event handlers =====

    def on_created(self, event):
        if not event.is_directory:
            self._record("added", event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self._record("modified", event.src_path)

    def on_deleted(self, event):
        if not event.is_directory:
            self._record("removed", event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._record("removed", event.src_path)
            self._record("added", event.dest_path)

    def _record(self, change_type: str, path) -> None:
        if self._paused.is_set():
            return
        path = os.fsdecode(path)
        with self._pending_lock:
            bucket = self._pending[change_type]
            if path not in bucket:
                bucket.append(path)
            self._last_event = time.monotonic()
        self._changed.set()

    def _drain(self) -> ChangeSet:
        with self._pending_lock:
            changes = ChangeSet(
                modified=self._pending["modified"],
                added=self._pending["added"],
                removed=self._pending["removed"],
            )
            self._pending = {"modified": [], "added": [], "removed": []}
        return changes

    # ===== Worker =====

    def _run(self) -> None:
        while not self._stop_event.is_set():
            if not self._changed.wait(timeout=0.5):
                continue

            # Let bursts of events settle into one batch
            while not self._stop_event.is_set():
                with self._pending_lock:
                    quiet_for = time.monotonic() - self._last_event
                if quiet_for >= self.wait_for_delay:
                    break
                time.sleep(self.wait_for_delay - quiet_for)

            self._changed.clear()
            changes = self._drain()
            if changes.is_empty() or self._paused.is_set():
                continue
            self._deliver(changes)

    def _deliver(self, changes: ChangeSet) -> None:
        try:
            self.callback(list(changes.modified), list(changes.added), list(changes.removed))
        except Exception as e:
            logger.exception(f"Error handling file changes: {e}")

    # ===== Lifecycle =====

    def start(self) -> None:
        """Start watching all directories."""
        if self.is_running():
            logger.warning("Listener already running")
            return

        observer_class = PollingObserver if self.force_polling else Observer
        kwargs = {"timeout": self.latency} if self.latency else {}
        observer = observer_class(**kwargs)

        for directory in self.directories:
            if not directory.exists():
                logger.warning(f"Watch directory does not exist: {directory}")
                continue
            observer.schedule(self, str(directory), recursive=True)

        self._stop_event.clear()
        observer.start()
        self._observer = observer

        self._worker = threading.Thread(target=self._run, name="task-guard-listener", daemon=True)
        self._worker.start()

        logger.info(
            f"Listening to changes in {', '.join(str(d) for d in self.directories)}"
            f"{' (polling)' if self.force_polling else ''}"
        )

    def stop(self) -> None:
        """Stop watching and wait for the observer to finish."""
        self._stop_event.set()
        self._changed.set()

        if self._observer is not None:
            try:
                self._observer.stop()
                self._observer.join(timeout=OBSERVER_JOIN_TIMEOUT)
            except Exception as e:
                logger.error(f"Error stopping observer: {e}")
            self._observer = None

        # Not joined: the worker exits once it sees the stop event
        self._worker = None

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def pause(self) -> None:
        self._paused.set()

    def resume(self) -> None:
        self._paused.clear()

    def is_paused(self) -> bool:
        return self._paused.is_set()
