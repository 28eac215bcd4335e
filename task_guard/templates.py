"""Guardfile templates used by `task-guard init`."""

import logging
from typing import Iterable

from task_guard.plugins import PluginRegistry


logger = logging.getLogger(__name__)


GUARDFILE_HEADER = """\
# A sample Guardfile
# More info: task-guard --help
#
# Directives run top to bottom:
#   notification: backends to notify through (log, file, terminal_title, notify_send)
#   guard:        plugins in the default group
#   group:        named groups of plugins, optionally with halt_on_fail
#   scope:        groups/plugins to run by default

guard:
"""


def render_guardfile(registry: PluginRegistry, plugin_names: Iterable[str] = ()) -> str:
    """
    Build Guardfile text from the header and the requested plugin templates.

    Args:
        registry: Plugin types to draw templates from
        plugin_names: Plugin types to include (every type with a template if empty)

    Returns:
        Guardfile text

    Raises:
        UnknownPluginError: If a requested plugin type is not registered
    """
    names = list(plugin_names) or registry.names()
    parts = [GUARDFILE_HEADER]
    for name in names:
        factory = registry.resolve(name)
        template = getattr(factory, "template", None)
        if template:
            parts.append(template)
        else:
            logger.warning(f"Plugin type '{name}' has no Guardfile template")
    return "".join(parts)
