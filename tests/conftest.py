"""Test fixtures for task-guard tests."""

import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import MagicMock

from task_guard.notifier import Notifier
from task_guard.supervisor import Supervisor


SAMPLE_GUARDFILE = """\
guard:
  - echo:
      watch:
        - '\\.py$'
group:
  docs:
    guard:
      - echo:
          watch:
            - glob: '*.md'
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def source_paths(temp_dir):
    """Default Guardfile locations inside the temporary directory."""
    return {
        "primary": temp_dir / "Guardfile",
        "fallback": temp_dir / "home" / ".Guardfile",
        "user": temp_dir / "home" / ".task-guard.yaml",
    }


@pytest.fixture
def guardfile(source_paths):
    """Write the sample Guardfile at the primary location."""
    path = source_paths["primary"]
    path.write_text(SAMPLE_GUARDFILE)
    return path


@pytest.fixture
def mock_listener():
    """Listener double that tracks pause state like the real one."""
    listener = MagicMock()
    paused = {"value": False}
    listener.pause.side_effect = lambda: paused.update(value=True)
    listener.resume.side_effect = lambda: paused.update(value=False)
    listener.is_paused.side_effect = lambda: paused["value"]
    return listener


@pytest.fixture
def listener_factory(mock_listener):
    """Factory returning the mock listener."""
    return MagicMock(return_value=mock_listener)


@pytest.fixture
def notifier():
    """Notifier with delivery mocked out."""
    mock_notifier = MagicMock(spec=Notifier)
    mock_notifier.is_enabled.return_value = True
    return mock_notifier


@pytest.fixture
def signal_controller():
    """Signal controller that never touches process signal handlers."""
    return MagicMock()


@pytest.fixture
def interactor_factory():
    """Console factory that is disabled."""
    factory = MagicMock()
    factory.enabled = False
    return factory


@pytest.fixture
def supervisor(source_paths, listener_factory, notifier, signal_controller, interactor_factory):
    """Supervisor wired to mock collaborators and temp Guardfile locations."""
    return Supervisor(
        notifier=notifier,
        listener_factory=listener_factory,
        interactor_factory=interactor_factory,
        signal_controller=signal_controller,
        source_paths=source_paths,
    )
