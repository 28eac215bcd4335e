"""
Watch patterns declared by plugins.

A watcher matches relative paths against a regular expression or a glob and
may rewrite a matching path into a target path (e.g. a source file into the
test file that covers it).
"""

import fnmatch
import re
from typing import Any, Iterable, List, Optional

from task_guard.exceptions import EvaluationError


class Watcher:
    """A single watch pattern."""

    def __init__(self, pattern: str, target: Optional[str] = None, glob: bool = False):
        self.pattern = pattern
        self.target = target
        self.glob = glob
        if glob:
            self._regex = re.compile(fnmatch.translate(pattern))
        else:
            try:
                self._regex = re.compile(pattern)
            except re.error as e:
                raise EvaluationError(f"Invalid watch pattern {pattern!r}: {e}") from e

    @classmethod
    def from_config(cls, entry: Any) -> "Watcher":
        """
        Build a watcher from a Guardfile entry.

        Args:
            entry: A regex string, {"pattern": regex, "target": template} or
                {"glob": "*.py"}

        Returns:
            Watcher instance
        """
        if isinstance(entry, str):
            return cls(entry)
        if isinstance(entry, dict):
            if "glob" in entry:
                return cls(str(entry["glob"]), target=entry.get("target"), glob=True)
            if "pattern" in entry:
                return cls(str(entry["pattern"]), target=entry.get("target"))
        raise EvaluationError(f"Invalid watch entry: {entry!r}")

    def match(self, path: str) -> Optional[str]:
        """
        Match a relative path.

        Returns:
            The path (or its rewritten target) on match, None otherwise
        """
        if self.glob:
            m = self._regex.match(path)
        else:
            m = self._regex.search(path)
        if not m:
            return None
        if self.target is None:
            return path
        return m.expand(self.target)

    def __repr__(self) -> str:
        return f"Watcher({self.pattern!r}, target={self.target!r}, glob={self.glob})"


def match_files(plugin, paths: Iterable[str]) -> List[str]:
    """
    Paths matched by any of the plugin's watchers, rewritten where targets are set.

    Args:
        plugin: Plugin with a ``watchers`` list
        paths: Relative paths

    Returns:
        Matched paths in input order, duplicates dropped
    """
    matched = []
    for path in paths:
        for watcher in plugin.watchers:
            result = watcher.match(path)
            if result is not None:
                if result not in matched:
                    matched.append(result)
                break
    return matched


def match_any(plugins: Iterable, paths: Iterable[str]) -> bool:
    """Whether any plugin has a watcher matching any of the paths."""
    paths = list(paths)
    for plugin in plugins:
        for path in paths:
            if any(watcher.match(path) is not None for watcher in plugin.watchers):
                return True
    return False
