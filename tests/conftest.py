"""Shared fixtures for build-publish tests."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from build_publish.config.models import BuildPublishConfig
from build_publish.vcs.git import Commit, Tag


class GitRepoBuilder:
    """Creates commits and tags with strictly increasing timestamps."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._clock = 1_700_000_000
        self.git("init", "-q")

    def git(self, *args: str) -> str:
        self._clock += 60
        stamp = f"{self._clock} +0000"
        env = {
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@test.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@test.com",
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_DATE": stamp,
            "GIT_CONFIG_NOSYSTEM": "1",
            "GIT_CONFIG_GLOBAL": os.devnull,
        }
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
            cwd=self.path,
            env=env,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout

    def commit(self, message: str) -> str:
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD").strip()

    def tag(self, name: str, annotated: bool = False) -> None:
        if annotated:
            self.git("tag", "-a", name, "-m", name)
        else:
            self.git("tag", name)


@pytest.fixture
def git_builder(tmp_path: Path) -> GitRepoBuilder:
    """An empty git repository."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    return GitRepoBuilder(repo_path)


@pytest.fixture
def temp_git_repo_with_pyproject(git_builder: GitRepoBuilder) -> Path:
    """A git repository with one commit and a build-publish configuration."""
    (git_builder.path / "pyproject.toml").write_text(
        """\
[project]
name = "test-app"
version = "1.0.0"

[tool.build-publish]
base-output-file-name = "test-app"

[tool.build-publish.changelog]
commit-message-key = "#changelog"

[tool.build-publish.issues]
url-prefix = "https://issues.example.com/"
number-pattern = '[A-Z]+-\\d+'
"""
    )
    git_builder.git("add", "pyproject.toml")
    git_builder.commit("chore: initial commit")
    return git_builder.path


@pytest.fixture
def config() -> BuildPublishConfig:
    return BuildPublishConfig.model_validate({"changelog": {"commit_message_key": "#changelog"}})


@pytest.fixture
def make_tag() -> Callable[..., Tag]:
    """Factory for tags created ``minute`` minutes after a fixed epoch."""

    def _make(name: str, minute: int, sha: str | None = None) -> Tag:
        return Tag(
            name=name,
            commit_sha=sha or f"sha-{name}",
            created=datetime.fromtimestamp(1_700_000_000 + minute * 60, tz=UTC),
        )

    return _make


@pytest.fixture
def make_commit() -> Callable[..., Commit]:
    def _make(message: str, sha: str = "abc1234") -> Commit:
        return Commit(sha, message, "Test", "test@test.com", datetime.now(UTC))

    return _make
