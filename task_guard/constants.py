"""
Environment variable names and default values for task-guard.

All environment variables are optional and have sensible defaults.
"""

import os
from pathlib import Path

# Notification kill switch, read at setup time: "false" disables notifications outright
NOTIFY_ENV_VAR = "TASK_GUARD_NOTIFY"

# Console
TASK_GUARD_INTERACTOR = os.getenv("TASK_GUARD_INTERACTOR", "true").lower() != "false"

# Guardfile locations
TASK_GUARD_GUARDFILE = os.getenv("TASK_GUARD_GUARDFILE", "Guardfile")
TASK_GUARD_HOME_GUARDFILE = os.getenv("TASK_GUARD_HOME_GUARDFILE", "~/.Guardfile")
TASK_GUARD_USER_CONFIG = os.getenv("TASK_GUARD_USER_CONFIG", "~/.task-guard.yaml")

# Default paths
DEFAULT_HOME_GUARDFILE = Path(TASK_GUARD_HOME_GUARDFILE)
DEFAULT_USER_CONFIG = Path(TASK_GUARD_USER_CONFIG)

# Listener
DEFAULT_WAIT_FOR_DELAY = 0.1
OBSERVER_JOIN_TIMEOUT = 5.0

# Notifications
DEFAULT_NOTIFICATION_TITLE = "Task Guard"
REEVALUATE_TITLE = "Task Guard re-evaluate"

# Exit status used when a required Guardfile cannot be read
EXIT_GUARDFILE_ERROR = 1
