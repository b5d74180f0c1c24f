"""Unit tests for changelog generation."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from build_publish.config.models import ChangelogConfig
from build_publish.core.changelog import (
    ChangelogBuilder,
    ChangelogEntry,
    build_entries,
    extract_entry,
    render_changelog,
    write_changelog,
)
from build_publish.exceptions import ChangelogError, GitError
from build_publish.vcs.git import GitRepository

if TYPE_CHECKING:
    from conftest import GitRepoBuilder


@pytest.fixture
def mock_repo(tmp_path: Path) -> MagicMock:
    """Create a mock GitRepository."""
    repo = MagicMock(spec=GitRepository)
    repo.path = tmp_path
    repo.get_commits.return_value = []
    return repo


class TestExtractEntry:
    """Tests for extract_entry()."""

    def test_marked_subject(self, make_commit):
        entry = extract_entry(make_commit("fix bug #changelog", sha="a1"), "#changelog")

        assert entry == ChangelogEntry(text="fix bug", sha="a1")

    def test_unmarked_commit(self, make_commit):
        assert extract_entry(make_commit("refactor"), "#changelog") is None

    def test_marker_in_body(self, make_commit):
        """The first marked line is used, wherever it is."""
        commit = make_commit("ABC-1 internal\n\n[log]  Users can   export PDFs\n[log] second")

        entry = extract_entry(commit, "[log]")

        assert entry is not None
        assert entry.text == "Users can export PDFs"

    def test_marker_only_line_skipped(self, make_commit):
        commit = make_commit("#changelog\nAdd dark mode #changelog")

        entry = extract_entry(commit, "#changelog")

        assert entry is not None
        assert entry.text == "Add dark mode"

    def test_marker_only_message(self, make_commit):
        assert extract_entry(make_commit("#changelog"), "#changelog") is None

    def test_marker_is_literal(self, make_commit):
        """Regex characters in the marker are not special."""
        assert extract_entry(make_commit("fix crash [x]"), "[.]") is None
        assert extract_entry(make_commit("fix crash [.]"), "[.]") is not None


class TestBuildEntries:
    """Tests for build_entries() and render_changelog()."""

    def test_keeps_commit_order(self, make_commit):
        commits = [
            make_commit("first #changelog", sha="1"),
            make_commit("chore: bump deps", sha="2"),
            make_commit("second #changelog", sha="3"),
        ]

        entries = build_entries(commits, "#changelog")

        assert [e.sha for e in entries] == ["1", "3"]

    def test_render_one_entry_per_line(self):
        entries = [ChangelogEntry("first", "1"), ChangelogEntry("second", "2")]

        assert render_changelog(entries, "- ") == "- first\n- second\n"

    def test_render_empty(self):
        assert render_changelog([]) == ""


class TestWriteChangelog:
    """Tests for write_changelog()."""

    def test_rewrites_instead_of_appending(self, tmp_path: Path):
        path = tmp_path / "build" / "changelog.txt"

        write_changelog(path, "old entry\n")
        write_changelog(path, "new entry\n")

        assert path.read_text(encoding="utf-8") == "new entry\n"

    def test_unwritable_location(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(ChangelogError):
            write_changelog(blocker / "changelog.txt", "x")


class TestChangelogBuilder:
    """Tests for ChangelogBuilder with a mocked repository."""

    def test_range_from_tag(self, mock_repo: MagicMock, tmp_path: Path):
        builder = ChangelogBuilder(mock_repo, ChangelogConfig())

        builder.collect("v1.0.3-release")

        mock_repo.get_commits.assert_called_once_with("v1.0.3-release", "HEAD")

    def test_empty_range_gives_empty_file(self, mock_repo: MagicMock, tmp_path: Path):
        """No new commits is not an error."""
        path = tmp_path / "changelog.txt"
        path.write_text("stale\n", encoding="utf-8")

        builder = ChangelogBuilder(mock_repo, ChangelogConfig())

        artifact = builder.generate("release", path, "v1.0.1-release")

        assert artifact.is_empty
        assert path.read_text(encoding="utf-8") == ""

    def test_git_failure_propagates(self, mock_repo: MagicMock, tmp_path: Path):
        mock_repo.get_commits.side_effect = GitError("git log failed", stderr="bad revision")
        path = tmp_path / "changelog.txt"

        with pytest.raises(GitError, match="bad revision"):
            ChangelogBuilder(mock_repo, ChangelogConfig()).generate("release", path, "nope")

        assert not path.exists()

    def test_entry_prefix(self, mock_repo: MagicMock, tmp_path: Path, make_commit):
        mock_repo.get_commits.return_value = [make_commit("Add login CHANGELOG")]
        config = ChangelogConfig(entry_prefix="* ")

        artifact = ChangelogBuilder(mock_repo, config).generate("qa", tmp_path / "c.txt", None)

        assert artifact.read_text() == "* Add login\n"


class TestChangelogBuilderWithGit:
    """ChangelogBuilder against a real repository."""

    def test_first_release_uses_full_history(self, git_builder: GitRepoBuilder, tmp_path: Path):
        """No previous tag: every commit up to HEAD is considered."""
        git_builder.commit("fix bug #changelog")
        git_builder.commit("refactor")
        repo = GitRepository(git_builder.path)
        config = ChangelogConfig(commit_message_key="#changelog")

        artifact = ChangelogBuilder(repo, config).generate("release", tmp_path / "out.txt", None)

        assert [e.text for e in artifact.entries] == ["fix bug"]
        assert artifact.read_text() == "• fix bug\n"

    def test_oldest_first_since_tag(self, git_builder: GitRepoBuilder, tmp_path: Path):
        git_builder.commit("before tag #changelog")
        git_builder.tag("v1.0.1-release")
        git_builder.commit("one #changelog")
        git_builder.commit("skip me")
        git_builder.commit("two #changelog\n\nlonger body")
        repo = GitRepository(git_builder.path)
        config = ChangelogConfig(commit_message_key="#changelog", entry_prefix="")

        artifact = ChangelogBuilder(repo, config).generate(
            "release", tmp_path / "out.txt", "v1.0.1-release"
        )

        assert artifact.read_text() == "one\ntwo\n"

    def test_tag_at_head_gives_empty_changelog(self, git_builder: GitRepoBuilder, tmp_path: Path):
        git_builder.commit("done #changelog")
        git_builder.tag("v1.0.1-release")
        repo = GitRepository(git_builder.path)

        artifact = ChangelogBuilder(repo, ChangelogConfig()).generate(
            "release", tmp_path / "out.txt", "v1.0.1-release"
        )

        assert artifact.is_empty
        assert artifact.read_text() == ""

    def test_repository_without_commits(self, git_builder: GitRepoBuilder, tmp_path: Path):
        repo = GitRepository(git_builder.path)

        artifact = ChangelogBuilder(repo, ChangelogConfig()).generate(
            "release", tmp_path / "out.txt", None
        )

        assert artifact.is_empty
        assert artifact.read_text() == ""
