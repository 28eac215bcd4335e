"""
Relevance check for batches of filesystem changes.

Called from the listener thread before any lock is taken, so nothing here
may modify supervisor state.
"""

import logging
from typing import Callable, Iterable

from task_guard.models import ChangeSet
from task_guard.paths import PathResolver
from task_guard.watcher import match_any


logger = logging.getLogger(__name__)


class ChangeFilter:
    """
    Decides whether a change set warrants a dispatch.

    A change is relevant when it modifies an active Guardfile, or when any
    scoped plugin watches one of the changed paths.
    """

    def __init__(
        self,
        path_resolver: PathResolver,
        is_source: Callable[[str], bool],
        scoped_plugins: Callable[[], Iterable],
    ):
        """
        Args:
            path_resolver: Resolver for the current watch directories
            is_source: Predicate telling whether a path is an active Guardfile
            scoped_plugins: Returns the currently scoped plugins
        """
        self.path_resolver = path_resolver
        self.is_source = is_source
        self.scoped_plugins = scoped_plugins

    def guardfile_modified(self, changes: ChangeSet) -> bool:
        return any(self.is_source(path) for path in changes.modified)

    def is_relevant(self, changes: ChangeSet) -> bool:
        """
        Check whether the changes should be dispatched.

        Args:
            changes: Absolute paths as reported by the listener

        Returns:
            True if the Guardfile changed or a scoped plugin matches a path
        """
        if self.guardfile_modified(changes):
            return True

        paths = self.path_resolver.relativize_all(changes.all_paths())
        if not paths:
            return False

        relevant = match_any(self.scoped_plugins(), paths)
        if not relevant:
            logger.debug(f"Ignoring {len(paths)} unwatched change(s)")
        return relevant
