"""
Plugin registry and built-in plugin types.

Plugin types are looked up by name in an explicit registry populated at
process start; unknown names fail evaluation.
"""

import logging
import shlex
from typing import Callable, Dict, List, Optional

from task_guard.exceptions import TaskFailed, UnknownPluginError
from task_guard.plugin import Plugin


logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    return str(name).strip().lower().replace("-", "_")


class ShellPlugin(Plugin):
    """
    Runs shell commands on changes.

    Options:
        command: Run on changes; "{paths}" expands to the changed paths,
            otherwise they are appended
        all_command: Run by run_all (defaults to command)
        start_command: Run once on start
    """

    template = """\
  - shell:
      command: "echo changed:"
      watch:
        - '.*'
"""

    def start(self) -> None:
        command = self.options.get("start_command")
        if command:
            self._execute(command, "start")

    def run_all(self) -> None:
        command = self.options.get("all_command") or self.options.get("command")
        if command:
            self._execute(self._expand(command, []), "run_all")

    def run_on_changes(self, paths: List[str]) -> None:
        command = self.options.get("command")
        if not command:
            return
        self._execute(self._expand(command, paths), "run_on_changes")

    def _expand(self, command: str, paths: List[str]) -> str:
        quoted = " ".join(shlex.quote(p) for p in paths)
        if "{paths}" in command:
            return command.replace("{paths}", quoted)
        if quoted:
            return f"{command} {quoted}"
        return command

    def _execute(self, command: str, task: str) -> None:
        logger.info(f"{self.title}: {command}")
        result = self.commands.run(command)
        if result.returncode != 0:
            raise TaskFailed(
                f"{self.title} <{task}> exited with status {result.returncode}"
            )


class EchoPlugin(Plugin):
    """
    Logs every task it receives.

    Options:
        fail_on: Task name (or list of names) that raises TaskFailed
    """

    template = """\
  - echo:
      watch:
        - '.*'
"""

    def _echo(self, task: str, paths: Optional[List[str]] = None) -> None:
        if paths is None:
            logger.info(f"{self.title} <{task}>")
        else:
            logger.info(f"{self.title} <{task}>: {', '.join(paths)}")

        fail_on = self.options.get("fail_on") or []
        if isinstance(fail_on, str):
            fail_on = [fail_on]
        if task in fail_on:
            raise TaskFailed(f"{self.title} <{task}> failed")

    def start(self) -> None:
        self._echo("start")

    def stop(self) -> None:
        self._echo("stop")

    def reload(self) -> None:
        self._echo("reload")

    def run_all(self) -> None:
        self._echo("run_all")

    def run_on_modifications(self, paths: List[str]) -> None:
        self._echo("run_on_modifications", paths)

    def run_on_additions(self, paths: List[str]) -> None:
        self._echo("run_on_additions", paths)

    def run_on_removals(self, paths: List[str]) -> None:
        self._echo("run_on_removals", paths)


PluginFactory = Callable[..., Plugin]


class PluginRegistry:
    """Maps plugin type names to factories."""

    def __init__(self, factories: Optional[Dict[str, PluginFactory]] = None):
        self._factories: Dict[str, PluginFactory] = {}
        for name, factory in (factories or {}).items():
            self.register(name, factory)

    def register(self, name: str, factory: PluginFactory) -> None:
        self._factories[normalize_name(name)] = factory

    def resolve(self, name: str) -> PluginFactory:
        """
        Look up the factory for a plugin type.

        Raises:
            UnknownPluginError: If no factory is registered under the name
        """
        try:
            return self._factories[normalize_name(name)]
        except KeyError:
            raise UnknownPluginError(name) from None

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._factories


def default_registry() -> PluginRegistry:
    """Registry holding the built-in plugin types."""
    return PluginRegistry({
        "shell": ShellPlugin,
        "echo": EchoPlugin,
    })
