"""Tests for Guardfile source selection and reading."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from task_guard.exceptions import SourceNotFoundError, SourceReadError
from task_guard.sources import FileSource, InlineSource, normalize_path, select_sources


class TestSelectSources:
    """Tests for select_sources."""

    def test_inline_wins(self, temp_dir):
        """Test that inline text is the only source when given."""
        sources = select_sources(inline="guard: [echo]", paths=[temp_dir / "Guardfile"])

        assert sources == [InlineSource("guard: [echo]")]

    def test_empty_inline_is_still_inline(self):
        """Test that an empty string is treated as an inline Guardfile."""
        sources = select_sources(inline="")

        assert len(sources) == 1
        assert isinstance(sources[0], InlineSource)
        assert sources[0].content == ""

    def test_none_inline_falls_through_to_files(self, temp_dir):
        """Test that None selects the file-based defaults."""
        sources = select_sources(
            inline=None,
            primary=temp_dir / "Guardfile",
            fallback=temp_dir / ".Guardfile",
            user=temp_dir / ".task-guard.yaml",
        )

        assert sources == [
            FileSource(temp_dir / "Guardfile", fallback=temp_dir / ".Guardfile"),
            FileSource(temp_dir / ".task-guard.yaml", optional=True),
        ]

    def test_explicit_paths(self, temp_dir):
        """Test that explicit paths replace the defaults, in order."""
        sources = select_sources(paths=[temp_dir / "a.yaml", temp_dir / "b.yaml"])

        assert [s.path for s in sources] == [temp_dir / "a.yaml", temp_dir / "b.yaml"]
        assert all(s.fallback is None and not s.optional for s in sources)

    def test_default_primary_is_in_working_directory(self, temp_dir, monkeypatch):
        """Test that the default primary Guardfile lives in the cwd."""
        monkeypatch.chdir(temp_dir)

        sources = select_sources()

        assert sources[0].path == Path.cwd() / "Guardfile"


class TestInlineSource:
    """Tests for InlineSource."""

    def test_read_returns_content(self):
        """Test reading inline text."""
        assert InlineSource("guard: []").read() == "guard: []"

    def test_never_a_source_path(self, temp_dir):
        """Test that no filesystem path counts as the inline source."""
        assert InlineSource("x").is_source(temp_dir / "Guardfile") is False


class TestFileSource:
    """Tests for FileSource."""

    def test_read_existing(self, temp_dir):
        """Test reading an existing Guardfile."""
        path = temp_dir / "Guardfile"
        path.write_text("guard: [echo]\n")

        assert FileSource(path).read() == "guard: [echo]\n"

    def test_missing_optional_yields_none(self, temp_dir):
        """Test that a missing optional file is skipped silently."""
        assert FileSource(temp_dir / "missing", optional=True).read() is None

    def test_missing_required_without_fallback(self, temp_dir, caplog):
        """Test the error for a missing file without fallback."""
        path = temp_dir / "missing"
        caplog.set_level(logging.ERROR)

        with pytest.raises(SourceNotFoundError) as exc_info:
            FileSource(path).read()

        assert f"No Guardfile exists at {path}." in str(exc_info.value)
        assert str(path) in caplog.text

    def test_fallback_used_when_primary_missing(self, temp_dir):
        """Test that the fallback file is read when the primary is missing."""
        fallback = temp_dir / ".Guardfile"
        fallback.write_text("guard: [shell]\n")

        source = FileSource(temp_dir / "Guardfile", fallback=fallback)

        assert source.read() == "guard: [shell]\n"

    def test_primary_and_fallback_missing(self, temp_dir):
        """Test the "run init" error when neither file exists."""
        primary = temp_dir / "Guardfile"
        source = FileSource(primary, fallback=temp_dir / ".Guardfile")

        with pytest.raises(SourceNotFoundError) as exc_info:
            source.read()

        assert str(normalize_path(primary)) in str(exc_info.value)
        assert "task-guard init" in str(exc_info.value)

    def test_read_error_is_fatal_even_when_optional(self, temp_dir):
        """Test that non-missing read failures are always raised."""
        path = temp_dir / "Guardfile"
        path.write_text("guard: []")

        with patch("pathlib.Path.read_text", side_effect=PermissionError("denied")):
            with pytest.raises(SourceReadError) as exc_info:
                FileSource(path, optional=True).read()

        assert "denied" in str(exc_info.value)
        assert exc_info.value.path == path

    def test_directory_is_a_read_error(self, temp_dir):
        """Test that a directory at the Guardfile path is a read error."""
        with pytest.raises(SourceReadError):
            FileSource(temp_dir).read()

    def test_is_source_matches_primary_and_fallback(self, temp_dir):
        """Test path comparison after normalization."""
        source = FileSource(temp_dir / "Guardfile", fallback=temp_dir / "home" / ".Guardfile")

        assert source.is_source(str(temp_dir / "sub" / ".." / "Guardfile"))
        assert source.is_source(temp_dir / "home" / ".Guardfile")
        assert not source.is_source(temp_dir / "other")
