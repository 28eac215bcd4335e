"""
Guardfile DSL.

A Guardfile is a YAML document whose top-level keys are directives run once,
in document order, against a registration target (normally the Supervisor):

    notification:
      - terminal_title
    guard:
      - echo:
          watch: ['\\.py$']
    group:
      backend:
        halt_on_fail: true
        guard:
          - shell:
              command: pytest
              watch:
                - pattern: '^src/(.+)\\.py$'
                  target: 'tests/test_\\1.py'
    scope:
      groups: [backend]

The same registration API is available to Python callers through Dsl's
declare_* methods; declare_group is a context manager so plugins declared
inside it land in that group.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from task_guard.exceptions import EvaluationError
from task_guard.models import DEFAULT_GROUP
from task_guard.watcher import Watcher


logger = logging.getLogger(__name__)

PLUGIN_DIRECTIVES = ("guard", "plugin")
GROUP_DIRECTIVE = "group"


class GuardfileLoader(yaml.SafeLoader):
    """Safe YAML loader rejecting duplicate mapping keys."""
    pass


def _construct_unique_mapping(loader, node, deep=False):
    loader.flatten_mapping(node)
    mapping = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise EvaluationError(
                f"Duplicate key {key!r} on line {key_node.start_mark.line + 1}"
            )
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


GuardfileLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping
)


def parse_guardfile(content: str, filename: str = "(inline)") -> Optional[Dict[str, Any]]:
    """
    Parse Guardfile text.

    Returns:
        Top-level directive mapping, or None for an empty document

    Raises:
        EvaluationError: On YAML syntax errors or a non-mapping document
    """
    try:
        document = yaml.load(content, Loader=GuardfileLoader)
    except yaml.YAMLError as e:
        raise EvaluationError(f"Invalid Guardfile {filename}: {e}") from e

    if document is None:
        return None
    if not isinstance(document, dict):
        raise EvaluationError(
            f"Invalid Guardfile {filename}: expected a mapping of directives, "
            f"got {type(document).__name__} {document!r}"
        )
    return document


def _entries(value: Any, directive: str) -> List[Tuple[str, Dict[str, Any]]]:
    """Normalize a list of `name` / `{name: options}` entries."""
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        raise EvaluationError(f"'{directive}' expects a list, got {value!r}")

    entries = []
    for entry in value:
        if isinstance(entry, str):
            entries.append((entry, {}))
        elif isinstance(entry, dict) and len(entry) == 1:
            name, options = next(iter(entry.items()))
            if options is None:
                options = {}
            if not isinstance(options, dict):
                raise EvaluationError(
                    f"Options for {directive} '{name}' must be a mapping, got {options!r}"
                )
            entries.append((str(name), dict(options)))
        else:
            raise EvaluationError(f"Invalid {directive} entry: {entry!r}")
    return entries


def _names(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise EvaluationError(f"scope '{key}' expects a list of names, got {value!r}")


class Dsl:
    """
    Registration API driven by Guardfile evaluation.

    The target must provide add_group(name, options), add_plugin(name,
    group=, options=, watchers=), add_notification(name, options) and
    set_dsl_scope(groups, plugins).
    """

    def __init__(self, target):
        self.target = target
        self._current_group: Optional[str] = None

    # ===== Registration API =====

    @contextmanager
    def declare_group(self, name: str, options: Optional[Dict[str, Any]] = None) -> Iterator[Any]:
        """
        Declare a group; plugins declared inside the block belong to it.

        Raises:
            EvaluationError: On nested groups
        """
        if self._current_group is not None:
            raise EvaluationError(
                f"Groups cannot be nested: '{name}' declared inside '{self._current_group}'"
            )
        group = self.target.add_group(str(name), dict(options or {}))
        self._current_group = str(name)
        try:
            yield group
        finally:
            self._current_group = None

    def declare_plugin(self, name: str, options: Optional[Dict[str, Any]] = None) -> Any:
        """Declare a plugin in the current group, or the default group outside one."""
        options = dict(options or {})
        watch = options.pop("watch", None) or []
        if not isinstance(watch, list):
            watch = [watch]
        watchers = [Watcher.from_config(entry) for entry in watch]

        return self.target.add_plugin(
            str(name),
            group=self._current_group or DEFAULT_GROUP,
            options=options,
            watchers=watchers,
        )

    def declare_notification(self, name: str, options: Optional[Dict[str, Any]] = None) -> None:
        self.target.add_notification(str(name), dict(options or {}))

    def declare_scope(self, groups: Optional[List[str]] = None, plugins: Optional[List[str]] = None) -> None:
        self.target.set_dsl_scope(list(groups or []), list(plugins or []))

    # ===== Guardfile evaluation =====

    def evaluate(self, content: Optional[str], filename: str = "(inline)") -> None:
        """
        Evaluate Guardfile text, one pass, directives in document order.

        Args:
            content: Guardfile text; None or empty is a no-op
            filename: Name used in error messages

        Raises:
            EvaluationError: On any malformed declaration
        """
        if not content:
            return

        document = parse_guardfile(content, filename)
        if document is None:
            return

        for directive, value in document.items():
            if directive == "notification":
                for name, options in _entries(value, directive):
                    self.declare_notification(name, options)
            elif directive in PLUGIN_DIRECTIVES:
                for name, options in _entries(value, directive):
                    self.declare_plugin(name, options)
            elif directive == GROUP_DIRECTIVE:
                self._evaluate_groups(value)
            elif directive == "scope":
                if not isinstance(value, dict):
                    raise EvaluationError(f"'scope' expects a mapping, got {value!r}")
                self.declare_scope(
                    groups=_names(value.get("groups"), "groups"),
                    plugins=_names(value.get("plugins"), "plugins"),
                )
            else:
                raise EvaluationError(f"Unknown directive '{directive}' in {filename}")

    def _evaluate_groups(self, value: Any) -> None:
        if not isinstance(value, dict):
            raise EvaluationError(f"'group' expects a mapping of group names, got {value!r}")

        for name, body in value.items():
            if body is not None and not isinstance(body, dict):
                raise EvaluationError(f"Group '{name}' expects a mapping, got {body!r}")
            body = dict(body or {})
            if GROUP_DIRECTIVE in body:
                raise EvaluationError(f"Groups cannot be nested: found 'group' inside '{name}'")

            plugins = []
            for key in PLUGIN_DIRECTIVES:
                plugins.extend(_entries(body.pop(key, None), key))

            with self.declare_group(name, body):
                for plugin_name, options in plugins:
                    self.declare_plugin(plugin_name, options)
