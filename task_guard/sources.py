"""
Guardfile sources.

A source is either inline text (given on the command line or by an
embedding program) or a file, optionally with a fallback file or marked
optional. Sources are rebuilt on every evaluation pass.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from task_guard.constants import (
    DEFAULT_HOME_GUARDFILE,
    DEFAULT_USER_CONFIG,
    TASK_GUARD_GUARDFILE,
)
from task_guard.exceptions import SourceNotFoundError, SourceReadError


logger = logging.getLogger(__name__)


def normalize_path(path) -> Path:
    """Absolute, user-expanded, normalized form of a path."""
    return Path(os.path.abspath(os.path.expanduser(str(path))))


@dataclass(frozen=True)
class InlineSource:
    """Guardfile text passed in directly."""

    content: str
    name: str = "(inline)"

    def read(self) -> Optional[str]:
        logger.info("Using inline Guardfile.")
        return self.content

    def is_source(self, path) -> bool:
        return False


@dataclass(frozen=True)
class FileSource:
    """
    Guardfile read from disk.

    Attributes:
        path: Primary file
        fallback: File read when the primary does not exist
        optional: Missing file is silently skipped
    """

    path: Path
    fallback: Optional[Path] = None
    optional: bool = False

    @property
    def name(self) -> str:
        return str(self.path)

    def read(self) -> Optional[str]:
        """
        Read the Guardfile text.

        Returns:
            File contents, or None for a missing optional file

        Raises:
            SourceNotFoundError: Required file (and fallback) missing
            SourceReadError: Any other read failure, optional or not
        """
        content = self._read(self.path)
        if content is not None or self.optional:
            return content

        if self.fallback is not None:
            content = self._read(self.fallback)
            if content is not None:
                return content
            message = (
                f"Guardfile {normalize_path(self.path)} not found, "
                f"please create one with `task-guard init`."
            )
        else:
            message = f"No Guardfile exists at {self.path}."

        logger.error(message)
        raise SourceNotFoundError(message, path=self.path)

    def is_source(self, path) -> bool:
        """Whether the given path is this source's primary or fallback file."""
        candidate = normalize_path(path)
        if normalize_path(self.path) == candidate:
            return True
        return self.fallback is not None and normalize_path(self.fallback) == candidate

    def _read(self, path: Path) -> Optional[str]:
        logger.info(f"Using Guardfile at {path}.")
        try:
            return normalize_path(path).read_text()
        except FileNotFoundError:
            logger.info(f"Failed to read: {path}.")
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading file {path}: {e!r}")
            raise SourceReadError(f"Error reading file {path}: {e}", path=path) from e


def select_sources(
    inline: Optional[str] = None,
    paths: Sequence = (),
    primary: Optional[Path] = None,
    fallback: Optional[Path] = None,
    user: Optional[Path] = None,
) -> List:
    """
    Pick the Guardfile sources for an evaluation pass.

    Inline text wins (an empty string counts, None does not), then explicit
    paths, then the working-directory Guardfile with its home fallback plus
    the optional user config.

    Args:
        inline: Inline Guardfile text
        paths: Explicit Guardfile paths
        primary: Default Guardfile (defaults to ./Guardfile)
        fallback: Fallback for the default Guardfile
        user: Optional user config file

    Returns:
        Ordered list of sources
    """
    if inline is not None:
        return [InlineSource(inline)]

    explicit = [FileSource(Path(p)) for p in paths if p]
    if explicit:
        return explicit

    primary = primary if primary is not None else Path.cwd() / TASK_GUARD_GUARDFILE
    fallback = fallback if fallback is not None else DEFAULT_HOME_GUARDFILE
    user = user if user is not None else DEFAULT_USER_CONFIG
    return [
        FileSource(primary, fallback=fallback),
        FileSource(user, optional=True),
    ]
