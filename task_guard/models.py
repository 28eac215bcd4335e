"""
Data models for task-guard.

Options and ChangeSet are immutable value objects; Group and Scope make up
the live model owned by the Supervisor and are rebuilt on every (re)evaluation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from task_guard.plugin import Plugin


DEFAULT_GROUP = "default"


class SupervisorState(str, Enum):
    """Lifecycle states of the Supervisor."""
    UNINITIALIZED = "uninitialized"
    CONFIGURING = "configuring"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class Options(BaseModel):
    """
    Configuration snapshot for one setup pass.

    Built once per setup and replaced wholesale, never partially mutated.
    """
    model_config = ConfigDict(frozen=True)

    clear: bool = False
    notify: bool = True
    debug: bool = False
    groups: Tuple[str, ...] = ()
    plugins: Tuple[str, ...] = ()
    watchdirs: Tuple[str, ...] = ()
    guardfiles: Tuple[str, ...] = ()
    guardfile_contents: Optional[str] = None
    no_interactions: bool = False
    latency: Optional[float] = None
    force_polling: bool = False
    wait_for_delay: Optional[float] = None

    @field_validator("groups", "plugins", "watchdirs", "guardfiles", mode="before")
    @classmethod
    def _wrap_single(cls, v):
        """Accept a single string where a list is expected."""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return v

    def listener_options(self) -> Dict[str, Any]:
        """Listener tuning parameters, only those explicitly set."""
        tuning = {}
        for name in ("latency", "force_polling", "wait_for_delay"):
            value = getattr(self, name)
            if value:
                tuning[name] = value
        return tuning


class Group(BaseModel):
    """A named collection of plugins sharing options."""
    name: str
    options: Dict[str, Any] = Field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.name.capitalize()

    @property
    def halt_on_fail(self) -> bool:
        return bool(self.options.get("halt_on_fail", False))


class NotifierSpec(BaseModel):
    """A notification backend declared in the Guardfile."""
    name: str
    options: Dict[str, Any] = Field(default_factory=dict)


class ChangeSet(BaseModel):
    """Paths reported by the listener for one batch of filesystem events."""
    model_config = ConfigDict(frozen=True)

    modified: Tuple[str, ...] = ()
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()

    def all_paths(self) -> List[str]:
        """Modified, added and removed paths flattened, duplicates dropped."""
        seen = []
        for path in self.modified + self.added + self.removed:
            if path not in seen:
                seen.append(path)
        return seen

    def is_empty(self) -> bool:
        return not (self.modified or self.added or self.removed)


@dataclass
class Scope:
    """
    Active subset of groups and plugins.

    Empty sequences mean "everything".
    """
    groups: List[Group] = field(default_factory=list)
    plugins: List["Plugin"] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.groups and not self.plugins
