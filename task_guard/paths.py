"""
Path resolution relative to the watched directories.

The listener reports absolute paths; plugins and watch patterns work with
paths relative to whichever watched directory contains them.
"""

import os
from pathlib import Path
from typing import Iterable, List, Sequence

from task_guard.exceptions import UnwatchedPathError


def canonical_watchdirs(watchdirs: Iterable[str]) -> List[Path]:
    """
    Expand and canonicalize the configured watch directories.

    Args:
        watchdirs: Directories as given by the user (may be relative or use ~)

    Returns:
        Absolute directories; the current working directory when none given
    """
    dirs = [Path(d).expanduser().resolve() for d in watchdirs if d]
    if not dirs:
        return [Path.cwd().resolve()]
    return dirs


class PathResolver:
    """Maps absolute changed paths to paths relative to their watched root."""

    def __init__(self, watchdirs: Sequence[Path]):
        self.watchdirs = [Path(d) for d in watchdirs]

    def relativize(self, path) -> str:
        """
        Express an absolute path relative to the watched directory containing it.

        Args:
            path: Absolute path reported by the listener

        Returns:
            Relative path as a string

        Raises:
            UnwatchedPathError: If the path is relative or lies outside every
                watched directory
        """
        path = Path(path)
        if not path.is_absolute():
            raise UnwatchedPathError(f"Relative paths are not supported: {path}")

        for watchdir in self.watchdirs:
            try:
                rel = os.path.relpath(path, watchdir)
            except ValueError:
                # Different drive on Windows
                continue
            if ".." not in Path(rel).parts:
                return Path(rel).as_posix()

        raise UnwatchedPathError(
            f"File not watched: {path} within: {[str(d) for d in self.watchdirs]}"
        )

    def relativize_all(self, paths: Iterable) -> List[str]:
        """Relativize a collection of paths, dropping duplicates but keeping order."""
        result = []
        for path in paths:
            rel = self.relativize(path)
            if rel not in result:
                result.append(rel)
        return result
