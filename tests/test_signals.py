"""Tests for signal control and the interactive console."""

import io
import os
import signal
import threading
from unittest.mock import MagicMock, patch

import pytest

from task_guard.interactor import Interactor
from task_guard.signals import SignalController, supported_signals


@pytest.fixture
def mock_supervisor():
    """Supervisor double with a real lock and pause tracking."""
    supervisor = MagicMock()
    lock = threading.RLock()
    paused = {"value": False}

    class Preserved:
        def __enter__(self):
            lock.acquire()
            return supervisor

        def __exit__(self, *exc):
            lock.release()
            return False

    supervisor.within_preserved_state.side_effect = Preserved
    supervisor.is_paused.side_effect = lambda: paused["value"]
    supervisor.pause.side_effect = lambda: paused.update(value=True)
    supervisor.resume.side_effect = lambda: paused.update(value=False)
    supervisor.attached_interactor.return_value = None
    return supervisor


class TestSignalController:
    """Tests for SignalController."""

    def test_supported_signals(self):
        """Test that unsupported names are skipped."""
        assert supported_signals("SIGINT", "SIGNOPE") == {"SIGINT": signal.SIGINT}

    def test_pause_unless_paused(self, mock_supervisor):
        """Test that pause is only requested when running."""
        controller = SignalController(mock_supervisor)

        controller.pause_unless_paused()
        controller.pause_unless_paused()

        mock_supervisor.pause.assert_called_once()

    def test_resume_if_paused(self, mock_supervisor):
        """Test that resume is only requested when paused."""
        controller = SignalController(mock_supervisor)

        controller.resume_if_paused()
        mock_supervisor.resume.assert_not_called()

        controller.pause_unless_paused()
        controller.resume_if_paused()
        mock_supervisor.resume.assert_called_once()

    def test_handlers_spawn_threads(self, mock_supervisor):
        """Test that handlers defer their action to a thread."""
        controller = SignalController(mock_supervisor)

        with patch.object(controller, "_spawn") as spawn:
            controller._on_pause(signal.SIGINT, None)
            controller._on_resume(signal.SIGINT, None)

        assert [c.args[1] for c in spawn.call_args_list] == ["pause", "resume"]

    def test_interrupt_stops_without_console(self, mock_supervisor):
        """Test that SIGINT stops when no console is running."""
        controller = SignalController(mock_supervisor)

        with patch.object(controller, "_spawn") as spawn:
            controller._on_interrupt(signal.SIGINT, None)

        spawn.assert_called_once_with(mock_supervisor.stop, "stop")

    def test_interrupt_forwarded_to_console(self, mock_supervisor):
        """Test that SIGINT goes to a running console."""
        console = MagicMock()
        console.is_running.return_value = True
        mock_supervisor.attached_interactor.return_value = console
        controller = SignalController(mock_supervisor)

        controller._on_interrupt(signal.SIGINT, None)

        console.interrupt.assert_called_once()
        mock_supervisor.stop.assert_not_called()

    def test_install_and_uninstall(self, mock_supervisor):
        """Test that install is idempotent and uninstall restores handlers."""
        previous = signal.getsignal(signal.SIGINT)
        controller = SignalController(mock_supervisor)

        controller.install()
        controller.install()
        assert signal.getsignal(signal.SIGINT) == controller._on_interrupt

        controller.uninstall()
        assert signal.getsignal(signal.SIGINT) == previous
        assert not controller.installed

    @pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="POSIX only")
    def test_sigusr1_pauses(self, mock_supervisor):
        """Test delivering SIGUSR1 to the process."""
        controller = SignalController(mock_supervisor)
        controller.install()
        try:
            os.kill(os.getpid(), signal.SIGUSR1)
            for thread in threading.enumerate():
                if thread.name == "task-guard-pause":
                    thread.join(5)
        finally:
            controller.uninstall()

        mock_supervisor.pause.assert_called_once()


class TestInteractor:
    """Tests for the interactive console."""

    def test_commands_map_to_supervisor(self, mock_supervisor):
        """Test the command table."""
        console = Interactor(mock_supervisor, stdin=io.StringIO())

        console.handle("\n")
        console.handle("reload")
        console.handle("e")

        mock_supervisor.run_all.assert_called_once()
        mock_supervisor.reload.assert_called_once()
        mock_supervisor.stop.assert_called_once()

    def test_unknown_command(self, mock_supervisor, capsys):
        """Test that unknown commands are reported."""
        console = Interactor(mock_supervisor, stdin=io.StringIO())

        assert console.handle("dance") is False
        assert "Unknown command: dance" in capsys.readouterr().out

    def test_pause_toggles(self, mock_supervisor):
        """Test that `p` pauses, then resumes."""
        mock_supervisor.listener.is_paused.return_value = False
        console = Interactor(mock_supervisor, stdin=io.StringIO())

        console.handle("p")
        mock_supervisor.pause.assert_called_once()

        mock_supervisor.listener.is_paused.return_value = True
        console.handle("p")
        mock_supervisor.resume.assert_called_once()

    def test_reads_until_eof(self, mock_supervisor):
        """Test the input loop."""
        console = Interactor(mock_supervisor, stdin=io.StringIO("all\nreload\n"))

        console.start()
        console.thread.join(5)

        mock_supervisor.run_all.assert_called_once()
        mock_supervisor.reload.assert_called_once()

    def test_command_after_interrupt_runs(self, mock_supervisor, capsys):
        """Test that the line typed after Ctrl-C is executed."""
        console = Interactor(mock_supervisor, stdin=io.StringIO("all\n"))

        console.interrupt()
        console._run()

        mock_supervisor.run_all.assert_called_once()
        mock_supervisor.stop.assert_not_called()
        assert "Interrupted" in capsys.readouterr().out
