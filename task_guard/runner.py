"""
Task runner.

Fans tasks out to the scoped plugins, group by group, in declaration order.
A plugin raising TaskFailed inside a halt_on_fail group stops the rest of
that group; any other exception removes the plugin from the live model.
"""

import logging
from typing import Dict, List, Optional

from task_guard.exceptions import TaskFailed
from task_guard.models import Scope
from task_guard.watcher import match_files


logger = logging.getLogger(__name__)

TASKS = ("start", "stop", "reload", "run_all")

# Change type -> plugin task, in dispatch order
CHANGE_TASKS = (
    ("modified", "run_on_modifications"),
    ("added", "run_on_additions"),
    ("removed", "run_on_removals"),
)

# _supervise outcomes
TASK_OK = "ok"
TASK_FAILED = "failed"
TASK_ERROR = "error"


class Runner:
    """
    Runs plugin tasks for a Supervisor.

    Uses the supervisor's groups, plugins, scope, options and notifier.
    """

    def __init__(self, supervisor):
        self.supervisor = supervisor

    def _scoped_groups(self, scope: Optional[Scope] = None) -> List:
        """
        Groups to run, each with the plugins selected within it.

        Plugin scope wins over group scope; an empty scope selects every group.
        """
        scope = scope if scope is not None else self.supervisor.scope
        plugins = self.supervisor.plugins

        if scope.plugins:
            groups: Dict[str, list] = {}
            order = []
            for plugin in scope.plugins:
                if plugin.group.name not in groups:
                    groups[plugin.group.name] = []
                    order.append(plugin.group)
                groups[plugin.group.name].append(plugin)
            return [(group, groups[group.name]) for group in order]

        selected = scope.groups or self.supervisor.groups
        return [
            (group, [p for p in plugins if p.group.name == group.name])
            for group in selected
        ]

    def scoped_plugins(self, scope: Optional[Scope] = None) -> List:
        """Plugins in scope, in run order."""
        result = []
        for _group, plugins in self._scoped_groups(scope):
            result.extend(plugins)
        return result

    def run(self, task: str, scope: Optional[Scope] = None) -> None:
        """
        Run a task on every scoped plugin.

        Args:
            task: One of start, stop, reload, run_all
            scope: Scope override (defaults to the supervisor's scope)
        """
        if task not in TASKS:
            raise ValueError(f"Unknown task: {task}")

        for group, plugins in self._scoped_groups(scope):
            for plugin in plugins:
                outcome = self._supervise(plugin, task)
                if outcome == TASK_FAILED and group.halt_on_fail:
                    logger.info(f"Group {group.title} halted after {plugin.title} failed")
                    break

    def run_on_changes(self, modified: List[str], added: List[str], removed: List[str]) -> None:
        """
        Dispatch relative changed paths to the plugins watching them.

        Args:
            modified: Modified paths
            added: Added paths
            removed: Removed paths
        """
        changes = {"modified": modified, "added": added, "removed": removed}

        if self.supervisor.options.clear:
            self._clear_screen()

        for group, plugins in self._scoped_groups():
            for plugin in plugins:
                outcome = TASK_OK
                for change_type, task in CHANGE_TASKS:
                    paths = changes[change_type]
                    if not paths:
                        continue
                    matched = match_files(plugin, paths)
                    if not matched:
                        continue
                    outcome = self._supervise(plugin, task, matched)
                    if outcome != TASK_OK:
                        break
                if outcome == TASK_FAILED and group.halt_on_fail:
                    logger.info(f"Group {group.title} halted after {plugin.title} failed")
                    break

    def _supervise(self, plugin, task: str, *args) -> str:
        """
        Run one plugin task, containing its failures.

        Returns:
            TASK_OK, TASK_FAILED (TaskFailed raised) or TASK_ERROR (plugin removed)
        """
        try:
            getattr(plugin, task)(*args)
            return TASK_OK
        except TaskFailed as e:
            logger.error(f"{plugin.title} failed: {e}")
            self.supervisor.notifier.notify(str(e), title=f"{plugin.title} failed", image="failed")
            return TASK_FAILED
        except Exception as e:
            logger.exception(
                f"{plugin.title} failed to achieve its <{task}>, exception was: "
                f"{type(e).__name__}: {e}"
            )
            self.supervisor.remove_plugin(plugin)
            logger.info(f"{plugin.title} has just been fired")
            self.supervisor.notifier.notify(
                f"{plugin.title} has failed and was removed", title="Plugin error", image="failed"
            )
            return TASK_ERROR

    def _clear_screen(self) -> None:
        print("\033[H\033[2J", end="", flush=True)
