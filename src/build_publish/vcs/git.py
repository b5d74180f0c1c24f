"""Thin wrapper around the git command line.

Only read operations are needed: tag history and commit ranges.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from build_publish.exceptions import GitError

logger = logging.getLogger(__name__)

# ASCII unit/record separators keep multi-line commit bodies intact.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"


@dataclass(frozen=True, slots=True)
class Commit:
    """A single commit."""

    sha: str
    message: str
    author_name: str
    author_email: str
    date: datetime

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.message.split("\n", 1)[0].strip()


@dataclass(frozen=True, slots=True)
class Tag:
    """A tag and the commit it points at."""

    name: str
    commit_sha: str
    created: datetime


def git_executable() -> str | None:
    """Return the path of the git binary, if installed."""
    return shutil.which("git")


class GitRepository:
    """Read access to a git repository."""

    def __init__(self, path: Path) -> None:
        self.path = path
        if not self._is_work_tree():
            raise GitError(f"Not a git repository: {path}")

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    def _is_work_tree(self) -> bool:
        try:
            return self._run("rev-parse", "--is-inside-work-tree").strip() == "true"
        except GitError as e:
            logger.debug("work tree check failed for %s: %s", self.path, e)
            return False

    def has_commits(self) -> bool:
        """False while HEAD is unborn, i.e. before the first commit."""
        try:
            self._run("rev-parse", "--verify", "--quiet", "HEAD")
        except GitError:
            return False
        return True

    def list_tags(self) -> list[Tag]:
        """List all tags, oldest first by creation date."""
        output = self._run(
            "for-each-ref",
            "--sort=creatordate",
            "--format=%(refname:strip=2)%09%(creatordate:unix)%09%(objectname)%09%(*objectname)",
            "refs/tags",
        )
        tags: list[Tag] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            name, created, obj, peeled = line.split("\t")
            tags.append(
                Tag(
                    name=name,
                    # annotated tags peel to their commit
                    commit_sha=peeled or obj,
                    created=datetime.fromtimestamp(int(created or 0), tz=UTC),
                )
            )
        return tags

    def get_commits(self, since: str | None = None, until: str = "HEAD") -> list[Commit]:
        """Return commits in ``(since, until]``, oldest first.

        With ``since`` unset, the whole history reachable from ``until``.
        """
        if until == "HEAD" and not self.has_commits():
            logger.debug("HEAD of %s has no commits yet", self.path)
            return []
        rev_range = f"{since}..{until}" if since else until
        output = self._run(
            "log",
            "--reverse",
            f"--format=%H{_FIELD_SEP}%an{_FIELD_SEP}%ae{_FIELD_SEP}%at{_FIELD_SEP}%B{_RECORD_SEP}",
            rev_range,
            "--",
        )
        commits: list[Commit] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, author_name, author_email, timestamp, message = record.split(_FIELD_SEP, 4)
            commits.append(
                Commit(
                    sha=sha,
                    message=message.strip(),
                    author_name=author_name,
                    author_email=author_email,
                    date=datetime.fromtimestamp(int(timestamp), tz=UTC),
                )
            )
        return commits
