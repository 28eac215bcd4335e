"""Tests for Guardfile evaluation."""

import logging
from unittest.mock import MagicMock

import pytest

from task_guard.evaluator import NO_PLUGINS_MESSAGE, Evaluator
from task_guard.exceptions import EvaluationError
from task_guard.models import Options


def make_target():
    target = MagicMock()
    target.plugins = []
    target.add_plugin.side_effect = lambda name, **kwargs: target.plugins.append(name)
    return target


class TestEvaluator:
    """Tests for Evaluator."""

    def test_inline_contents(self):
        """Test evaluating inline Guardfile text."""
        target = make_target()

        Evaluator(Options(guardfile_contents="guard: [echo]")).evaluate(target)

        assert target.plugins == ["echo"]

    def test_empty_inline_reports_no_plugins(self, caplog):
        """Test that an empty Guardfile is reported, not raised."""
        caplog.set_level(logging.ERROR)
        target = make_target()

        Evaluator(Options(guardfile_contents="")).evaluate(target)

        assert NO_PLUGINS_MESSAGE in caplog.text

    def test_missing_guardfile_exits(self, source_paths, caplog):
        """Test that a missing required Guardfile terminates with status 1."""
        caplog.set_level(logging.ERROR)

        with pytest.raises(SystemExit) as exc_info:
            Evaluator(Options(), **source_paths).evaluate(make_target())

        assert exc_info.value.code == 1
        assert str(source_paths["primary"]) in caplog.text

    def test_fallback_guardfile(self, source_paths):
        """Test that the home fallback is used when ./Guardfile is missing."""
        source_paths["fallback"].parent.mkdir(parents=True)
        source_paths["fallback"].write_text("guard: [shell]")
        target = make_target()

        Evaluator(Options(), **source_paths).evaluate(target)

        assert target.plugins == ["shell"]

    def test_user_config_appended(self, guardfile, source_paths):
        """Test that the optional user config is evaluated after the Guardfile."""
        source_paths["user"].parent.mkdir(parents=True)
        source_paths["user"].write_text("guard: [shell]")
        target = make_target()

        Evaluator(Options(), **source_paths).evaluate(target)

        assert target.plugins == ["echo", "echo", "shell"]

    def test_explicit_guardfiles(self, temp_dir):
        """Test evaluating explicit Guardfiles in order."""
        first = temp_dir / "one.yaml"
        second = temp_dir / "two.yaml"
        first.write_text("guard: [echo]")
        second.write_text("guard: [shell]")
        target = make_target()

        Evaluator(Options(guardfiles=[str(first), str(second)])).evaluate(target)

        assert target.plugins == ["echo", "shell"]

    def test_evaluation_error_is_logged_and_raised(self, caplog):
        """Test that evaluation errors surface to the caller."""
        caplog.set_level(logging.ERROR)

        with pytest.raises(EvaluationError):
            Evaluator(Options(guardfile_contents="bogus: 1")).evaluate(make_target())

        assert "Evaluating guardfile failed" in caplog.text

    def test_is_source(self, source_paths):
        """Test recognizing the active Guardfile paths."""
        evaluator = Evaluator(Options(), **source_paths)

        assert evaluator.is_source(source_paths["primary"])
        assert evaluator.is_source(source_paths["user"])
        assert not evaluator.is_source(source_paths["primary"].parent / "other")
