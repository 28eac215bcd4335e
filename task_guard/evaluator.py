"""
Guardfile evaluation.

Selects the Guardfile sources for the current options and evaluates each of
them, in order, against the registration target.
"""

import logging
from typing import List, Optional

from task_guard.constants import EXIT_GUARDFILE_ERROR
from task_guard.dsl import Dsl
from task_guard.exceptions import ConfigSourceError
from task_guard.models import Options
from task_guard.sources import select_sources


logger = logging.getLogger(__name__)

NO_PLUGINS_MESSAGE = "No plugins found in Guardfile, please add at least one."


class Evaluator:
    """Evaluates the default, explicit or inline Guardfile(s)."""

    def __init__(self, options: Optional[Options] = None, **source_paths):
        """
        Initialize evaluator.

        Args:
            options: Options snapshot; guardfile_contents and guardfiles select
                the sources
            source_paths: Optional primary/fallback/user overrides for the
                default sources
        """
        options = options or Options()
        self.sources: List = select_sources(
            inline=options.guardfile_contents,
            paths=options.guardfiles,
            **source_paths,
        )

    def evaluate(self, target) -> None:
        """
        Evaluate every source against the target, then report an empty result.

        Args:
            target: Registration target (see Dsl)

        Raises:
            SystemExit: A required Guardfile is missing or unreadable
            Exception: Any evaluation failure, logged then re-raised
        """
        try:
            for source in self.sources:
                Dsl(target).evaluate(source.read(), source.name)
        except ConfigSourceError as e:
            logger.error(f"Failed to read Guardfile: {e}")
            raise SystemExit(EXIT_GUARDFILE_ERROR) from e
        except Exception as e:
            logger.error(f"Evaluating guardfile failed: {e}")
            raise

        if not target.plugins:
            logger.error(NO_PLUGINS_MESSAGE)

    def is_source(self, path) -> bool:
        """Whether the path is one of the active Guardfiles."""
        return any(source.is_source(path) for source in self.sources)
