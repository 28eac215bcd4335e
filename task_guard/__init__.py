"""
Task Guard - run plugin tasks when watched files change.

A Guardfile declares plugins, groups, notifications and a default scope.
The Supervisor evaluates it, watches the configured directories and hands
relevant changes to the plugins whose watch patterns match them.
"""

__version__ = "1.0.0"

from task_guard.models import (
    DEFAULT_GROUP,
    SupervisorState,
    Options,
    Group,
    NotifierSpec,
    ChangeSet,
    Scope,
)

from task_guard.exceptions import (
    TaskGuardError,
    ConfigSourceError,
    SourceNotFoundError,
    SourceReadError,
    EvaluationError,
    UnknownPluginError,
    ScopeResolutionError,
    UnwatchedPathError,
    TaskFailed,
)
from task_guard.sources import InlineSource, FileSource, select_sources
from task_guard.dsl import Dsl
from task_guard.evaluator import Evaluator
from task_guard.plugin import Plugin
from task_guard.plugins import PluginRegistry, ShellPlugin, EchoPlugin, default_registry
from task_guard.watcher import Watcher
from task_guard.paths import PathResolver
from task_guard.change_filter import ChangeFilter
from task_guard.notifier import Notifier
from task_guard.listener import Listener
from task_guard.signals import SignalController
from task_guard.supervisor import Supervisor

__all__ = [
    # Models
    "DEFAULT_GROUP",
    "SupervisorState",
    "Options",
    "Group",
    "NotifierSpec",
    "ChangeSet",
    "Scope",
    # Errors
    "TaskGuardError",
    "ConfigSourceError",
    "SourceNotFoundError",
    "SourceReadError",
    "EvaluationError",
    "UnknownPluginError",
    "ScopeResolutionError",
    "UnwatchedPathError",
    "TaskFailed",
    # Guardfile
    "InlineSource",
    "FileSource",
    "select_sources",
    "Dsl",
    "Evaluator",
    # Plugins
    "Plugin",
    "PluginRegistry",
    "ShellPlugin",
    "EchoPlugin",
    "default_registry",
    "Watcher",
    # Components
    "PathResolver",
    "ChangeFilter",
    "Notifier",
    "Listener",
    "SignalController",
    "Supervisor",
]
