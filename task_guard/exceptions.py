"""Exceptions for task-guard."""


class TaskGuardError(Exception):
    """Base exception for task-guard errors."""

    pass


class ConfigSourceError(TaskGuardError):
    """Error locating or reading a Guardfile."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class SourceNotFoundError(ConfigSourceError):
    """A required Guardfile does not exist and no fallback applies."""

    pass


class SourceReadError(ConfigSourceError):
    """Permission or I/O failure while reading a Guardfile."""

    pass


class EvaluationError(TaskGuardError):
    """The Guardfile could not be evaluated."""

    pass


class UnknownPluginError(EvaluationError):
    """A plugin type name is not present in the plugin registry."""

    def __init__(self, name: str):
        super().__init__(f"Unknown plugin type: {name}")
        self.name = name


class ScopeResolutionError(TaskGuardError):
    """A group or plugin filter does not name anything in the evaluated Guardfile."""

    pass


class UnwatchedPathError(TaskGuardError):
    """A changed path lies outside every watched directory."""

    pass


class TaskFailed(TaskGuardError):
    """Raised by a plugin to signal that one of its tasks has failed."""

    pass
