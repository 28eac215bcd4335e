"""
Plugin base class.

A plugin is a configured unit of watched behaviour. The runner calls its
task methods; each may raise TaskFailed to report a failed task.
"""

import logging
from typing import Any, Dict, List, Optional

from task_guard.commands import CommandRunner
from task_guard.models import Group


logger = logging.getLogger(__name__)


class Plugin:
    """
    Base class for all plugin types.

    Subclasses override whichever tasks they support. The per-change-type
    methods default to run_on_changes.
    """

    # Entry added under `guard:` by `task-guard init <plugin>`
    template: Optional[str] = None

    def __init__(
        self,
        name: str,
        group: Group,
        options: Optional[Dict[str, Any]] = None,
        watchers: Optional[List] = None,
        commands: Optional[CommandRunner] = None,
    ):
        """
        Initialize plugin.

        Args:
            name: Plugin type name as declared in the Guardfile
            group: Group the plugin belongs to
            options: Plugin options
            watchers: Watch patterns
            commands: Runner for external commands
        """
        self.name = name
        self.group = group
        self.options = dict(options or {})
        self.watchers = list(watchers or [])
        self.commands = commands or CommandRunner()

    @property
    def title(self) -> str:
        return self.name.replace("_", " ").title().replace(" ", "")

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def reload(self) -> None:
        pass

    def run_all(self) -> None:
        pass

    def run_on_changes(self, paths: List[str]) -> None:
        pass

    def run_on_modifications(self, paths: List[str]) -> None:
        self.run_on_changes(paths)

    def run_on_additions(self, paths: List[str]) -> None:
        self.run_on_changes(paths)

    def run_on_removals(self, paths: List[str]) -> None:
        self.run_on_changes(paths)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} group={self.group.name}>"
