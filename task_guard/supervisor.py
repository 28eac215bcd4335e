"""
Supervisor: the live model and its lifecycle.

Owns the options, groups, plugins, scope, watch directories and listener of
one task-guard process, and ties setup, re-evaluation, pause/resume and stop
together. Every state mutation happens under a single re-entrant lock; the
listener callback only checks relevance before taking it.

Lifecycle: UNINITIALIZED -> CONFIGURING -> RUNNING <-> PAUSED -> STOPPED
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from task_guard.change_filter import ChangeFilter
from task_guard.commands import CommandRunner
from task_guard.constants import NOTIFY_ENV_VAR, REEVALUATE_TITLE
from task_guard.evaluator import NO_PLUGINS_MESSAGE, Evaluator
from task_guard.exceptions import ScopeResolutionError, UnwatchedPathError
from task_guard.interactor import Interactor
from task_guard.listener import Listener
from task_guard.models import DEFAULT_GROUP, ChangeSet, Group, Options, Scope, SupervisorState
from task_guard.notifier import Notifier
from task_guard.paths import PathResolver, canonical_watchdirs
from task_guard.plugin import Plugin
from task_guard.plugins import PluginRegistry, default_registry, normalize_name
from task_guard.runner import Runner
from task_guard.signals import SignalController


logger = logging.getLogger(__name__)

REEVALUATED_MESSAGE = "Guardfile has been re-evaluated."


class Supervisor:
    """
    Process-wide live model of what is currently configured.

    Collaborators are injected so embedding programs and tests can replace
    the listener, console, notifier and signal handling.
    """

    def __init__(
        self,
        registry: Optional[PluginRegistry] = None,
        notifier: Optional[Notifier] = None,
        listener_factory=Listener,
        interactor_factory=Interactor,
        signal_controller: Optional[SignalController] = None,
        source_paths: Optional[Dict[str, Path]] = None,
    ):
        """
        Initialize supervisor.

        Args:
            registry: Plugin type registry (built-in types if None)
            notifier: Notification hub
            listener_factory: Called as factory(directories, callback, **tuning)
            interactor_factory: Called as factory(supervisor); its `enabled`
                attribute disables the console globally
            signal_controller: Signal trap installer
            source_paths: primary/fallback/user overrides for the default
                Guardfile locations
        """
        self.registry = registry or default_registry()
        self.notifier = notifier or Notifier()
        self.listener_factory = listener_factory
        self.interactor_factory = interactor_factory
        self.signals = signal_controller or SignalController(self)
        self.source_paths = dict(source_paths or {})
        self.runner = Runner(self)

        self.options: Options = Options()
        self.groups: List[Group] = []
        self.plugins: List[Plugin] = []
        self.scope = Scope()
        self.watchdirs: List[Path] = []
        self.listener = None
        self.evaluator: Optional[Evaluator] = None
        self.path_resolver: Optional[PathResolver] = None
        self.change_filter: Optional[ChangeFilter] = None
        self.commands = CommandRunner()
        self.state = SupervisorState.UNINITIALIZED

        self._lock = threading.RLock()
        self._dsl_scope = ([], [])
        self._interactor = None
        self._stopped = threading.Event()
        self._fatal_error: Optional[BaseException] = None

    @contextmanager
    def within_preserved_state(self) -> Iterator["Supervisor"]:
        """Hold the supervisor lock for the duration of the block."""
        with self._lock:
            yield self

    # ===== Setup =====

    def setup(self, options: Optional[Options] = None, **kwargs: Any) -> "Supervisor":
        """
        Configure the supervisor from scratch.

        Args:
            options: Options snapshot (built from kwargs if None)
            kwargs: Option values, see Options

        Returns:
            self, for chaining

        Raises:
            SystemExit: A required Guardfile is missing or unreadable
            ScopeResolutionError: A group/plugin filter names nothing
        """
        with self._lock:
            self.state = SupervisorState.CONFIGURING
            self.options = options if options is not None else Options(**kwargs)
            self._stopped.clear()
            self._fatal_error = None

            self.commands = CommandRunner(debug=self.options.debug)
            self.notifier.commands = self.commands
            if self.options.debug:
                self._setup_debug()

            self.reset_groups()
            self.reset_plugins()
            self.reset_scope()
            self.notifier.clear()

            self.watchdirs = canonical_watchdirs(self.options.watchdirs)
            self.path_resolver = PathResolver(self.watchdirs)
            self.change_filter = ChangeFilter(
                self.path_resolver, self.is_source, self.runner.scoped_plugins
            )

            self.signals.install()
            self._setup_listener()

            self._evaluate_model()

            self._setup_notifier()
            self.state = SupervisorState.RUNNING
            return self

    def load(self, options: Optional[Options] = None, **kwargs: Any) -> "Supervisor":
        """
        Evaluate the Guardfile(s) into a fresh live model without watching.

        Returns:
            self, for chaining
        """
        with self._lock:
            self.options = options if options is not None else Options(**kwargs)
            self.reset_groups()
            self.reset_plugins()
            self.reset_scope()
            self.notifier.clear()
            self._evaluate_model()
            return self

    def _evaluate_model(self) -> None:
        self.evaluator = Evaluator(self.options, **self.source_paths)
        self.evaluate()
        self._apply_scope()

    def _setup_debug(self) -> None:
        logging.getLogger("task_guard").setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled, external commands are logged")

    def _setup_listener(self) -> None:
        if self.listener is not None:
            self.listener.stop()
        self.listener = self.listener_factory(
            self.watchdirs, self._on_changes, **self.options.listener_options()
        )

    def _setup_notifier(self) -> None:
        if self.options.notify and os.getenv(NOTIFY_ENV_VAR) != "false":
            self.notifier.turn_on()
        else:
            self.notifier.turn_off()

    @property
    def interactor(self):
        """Console, created on first use unless disabled."""
        if self.options.no_interactions or not getattr(self.interactor_factory, "enabled", True):
            return None
        if self._interactor is None:
            self._interactor = self.interactor_factory(self)
        return self._interactor

    def attached_interactor(self):
        """Console if one has been created, without creating it."""
        return self._interactor

    # ===== Live model =====

    def reset_groups(self) -> None:
        with self._lock:
            self.groups = [Group(name=DEFAULT_GROUP)]

    def reset_plugins(self) -> None:
        with self._lock:
            self.plugins = []

    def reset_scope(self) -> None:
        with self._lock:
            self.scope = Scope()
            self._dsl_scope = ([], [])

    def get_group(self, name: str) -> Optional[Group]:
        for group in self.groups:
            if group.name == str(name):
                return group
        return None

    def get_plugin(self, name: str) -> Optional[Plugin]:
        key = normalize_name(name)
        for plugin in self.plugins:
            if plugin.name == key:
                return plugin
        return None

    def add_group(self, name: str, options: Optional[Dict[str, Any]] = None) -> Group:
        """Add a group, or return the existing one with its options updated."""
        with self._lock:
            group = self.get_group(name)
            if group is None:
                group = Group(name=str(name), options=dict(options or {}))
                self.groups.append(group)
            elif options:
                group.options.update(options)
            return group

    def add_plugin(
        self,
        name: str,
        group: str = DEFAULT_GROUP,
        options: Optional[Dict[str, Any]] = None,
        watchers: Optional[List] = None,
    ) -> Plugin:
        """
        Instantiate a plugin type from the registry and add it to a group.

        Raises:
            UnknownPluginError: If the plugin type is not registered
        """
        with self._lock:
            factory = self.registry.resolve(name)
            group_obj = group if isinstance(group, Group) else self.add_group(group)
            plugin = factory(
                normalize_name(name),
                group_obj,
                options=options,
                watchers=watchers,
                commands=self.commands,
            )
            self.plugins.append(plugin)
            return plugin

    def remove_plugin(self, plugin: Plugin) -> None:
        with self._lock:
            self.plugins = [p for p in self.plugins if p is not plugin]
            if plugin in self.scope.plugins:
                self.scope = Scope(
                    groups=list(self.scope.groups),
                    plugins=[p for p in self.scope.plugins if p is not plugin],
                )

    def add_notification(self, name: str, options: Optional[Dict[str, Any]] = None) -> None:
        self.notifier.add(name, options)

    def set_dsl_scope(self, groups: List[str], plugins: List[str]) -> None:
        with self._lock:
            self._dsl_scope = (list(groups), list(plugins))

    def setup_scope(self, groups=(), plugins=()) -> Scope:
        """
        Compute the scope from group and plugin names.

        Raises:
            ScopeResolutionError: If a name matches no group/plugin
        """
        with self._lock:
            scope = Scope(groups=list(self.scope.groups), plugins=list(self.scope.plugins))
            if groups:
                scope.groups = [self._resolve_group(name) for name in groups]
            if plugins:
                scope.plugins = [self._resolve_plugin(name) for name in plugins]
            self.scope = scope
            return scope

    def _apply_scope(self) -> None:
        dsl_groups, dsl_plugins = self._dsl_scope
        self.setup_scope(
            groups=self.options.groups or dsl_groups,
            plugins=self.options.plugins or dsl_plugins,
        )

    def _resolve_group(self, name: str) -> Group:
        group = self.get_group(name)
        if group is None:
            available = ", ".join(g.name for g in self.groups)
            raise ScopeResolutionError(f"Unknown group '{name}' (available: {available})")
        return group

    def _resolve_plugin(self, name: str) -> Plugin:
        plugin = self.get_plugin(name)
        if plugin is None:
            available = ", ".join(p.name for p in self.plugins) or "none"
            raise ScopeResolutionError(f"Unknown plugin '{name}' (available: {available})")
        return plugin

    # ===== Evaluation =====

    def is_source(self, path) -> bool:
        """Whether the path is one of the active Guardfiles."""
        return self.evaluator is not None and self.evaluator.is_source(path)

    def evaluate(self) -> None:
        """Evaluate the Guardfile(s) into the live model."""
        with self._lock:
            if self.evaluator is None:
                self.evaluator = Evaluator(self.options, **self.source_paths)
            self.evaluator.evaluate(self)

    def reevaluate(self) -> None:
        """
        Stop all plugins, rebuild the live model from the Guardfile(s) and
        restart the plugins if any were found.
        """
        with self._lock:
            try:
                self.runner.run("stop")
            except Exception as e:
                logger.error(f"Stopping plugins before re-evaluation failed: {e}")

            self.reset_groups()
            self.reset_plugins()
            self.reset_scope()
            self.notifier.clear()

            self._evaluate_model()

            if self.notifier.is_enabled():
                self.notifier.turn_on()

            if not self.plugins:
                self.notifier.notify(NO_PLUGINS_MESSAGE, title=REEVALUATE_TITLE, image="failed")
            else:
                logger.info(REEVALUATED_MESSAGE)
                self.notifier.notify(REEVALUATED_MESSAGE, title=REEVALUATE_TITLE)
                self.runner.run("start")

    # ===== Running =====

    def start(self, options: Optional[Options] = None, **kwargs: Any) -> None:
        """
        Start watching and block until stopped.

        Raises:
            Any fatal error recorded by a background thread
        """
        if self.state == SupervisorState.UNINITIALIZED or options is not None or kwargs:
            self.setup(options, **kwargs)

        with self._lock:
            logger.info(f"Task Guard is now watching at {', '.join(str(d) for d in self.watchdirs)}")
            self.runner.run("start")
            self.listener.start()
            interactor = self.interactor
            if interactor is not None:
                interactor.start()

        while not self._stopped.wait(timeout=0.5):
            pass

        if self._fatal_error is not None:
            raise self._fatal_error

    def run_all(self) -> None:
        with self._lock:
            self.runner.run("run_all")

    def reload(self) -> None:
        with self._lock:
            self.runner.run("reload")

    def is_paused(self) -> bool:
        if self.listener is not None:
            return self.listener.is_paused()
        return self.state == SupervisorState.PAUSED

    def pause(self) -> None:
        """Pause file watching; no-op when already paused."""
        with self._lock:
            if self.listener is None or self.listener.is_paused():
                return
            self.listener.pause()
            self.state = SupervisorState.PAUSED
            logger.info("File modification listening is now paused")
            self.notifier.notify("Paused", image="pending")

    def resume(self) -> None:
        """Resume file watching; no-op when not paused."""
        with self._lock:
            if self.listener is None or not self.listener.is_paused():
                return
            self.listener.resume()
            self.state = SupervisorState.RUNNING
            logger.info("File modification listening is now resumed")
            self.notifier.notify("Resumed", image="pending")

    def stop(self) -> None:
        """Stop all plugins and the listener. Terminal."""
        with self._lock:
            if self.state == SupervisorState.STOPPED:
                return

            try:
                self.runner.run("stop")
            finally:
                if self.listener is not None:
                    self.listener.stop()
                if self._interactor is not None:
                    self._interactor.stop()

                logger.info("Bye bye...")
                self.notifier.notify("Bye bye...", image="pending")
                self.notifier.turn_off()
                self.signals.uninstall()

                self.state = SupervisorState.STOPPED
                self._stopped.set()

    # ===== Listener callback =====

    def _on_changes(self, modified: List[str], added: List[str], removed: List[str]) -> None:
        """Listener callback, runs on the listener's worker thread."""
        changes = ChangeSet(modified=modified, added=added, removed=removed)
        try:
            relevant = self.change_filter.is_relevant(changes)
        except UnwatchedPathError as e:
            self._fail(e)
            return
        if not relevant:
            return

        with self.within_preserved_state():
            if self.state != SupervisorState.RUNNING:
                return
            try:
                self._dispatch(changes)
            except (Exception, SystemExit) as e:
                self._fail(e)

    def _fail(self, error: BaseException) -> None:
        """Record a fatal error for start() to re-raise, then stop."""
        with self._lock:
            logger.error(f"Fatal error while handling changes: {error!r}")
            self._fatal_error = error
            self.stop()

    def _dispatch(self, changes: ChangeSet) -> None:
        if any(self.is_source(path) for path in changes.modified):
            self.reevaluate()
            changes = ChangeSet(
                modified=[p for p in changes.modified if not self.is_source(p)],
                added=[p for p in changes.added if not self.is_source(p)],
                removed=[p for p in changes.removed if not self.is_source(p)],
            )
            if changes.is_empty():
                return

        self.runner.run_on_changes(
            self.path_resolver.relativize_all(changes.modified),
            self.path_resolver.relativize_all(changes.added),
            self.path_resolver.relativize_all(changes.removed),
        )
