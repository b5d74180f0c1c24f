"""Changelog generation from commit messages.

Only commits carrying the configured marker (``commit_message_key``) are
release-worthy. For each of them the first line holding the marker, with
the marker removed, becomes one changelog entry. Entries are ordered oldest
first and written one per line.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from build_publish.exceptions import ChangelogError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from build_publish.config.models import ChangelogConfig
    from build_publish.vcs.git import Commit, GitRepository

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class ChangelogEntry:
    """A single formatted changelog line."""

    text: str
    sha: str

    def format(self, prefix: str = "") -> str:
        return f"{prefix}{self.text}"


@dataclass(frozen=True, slots=True)
class ChangelogArtifact:
    """Output of the changelog stage."""

    variant: str
    path: Path
    entries: tuple[ChangelogEntry, ...]
    since_tag: str | None

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")


def extract_entry(commit: Commit, marker: str) -> ChangelogEntry | None:
    """Turn a commit into an entry if its message carries ``marker``.

    Args:
        commit: Commit to inspect
        marker: Literal marker string

    Returns:
        The entry, or None if the commit is not release-worthy
    """
    for line in commit.message.splitlines():
        if marker not in line:
            continue
        text = _WHITESPACE.sub(" ", line.replace(marker, "")).strip()
        if text:
            return ChangelogEntry(text=text, sha=commit.sha)
    return None


def build_entries(commits: Iterable[Commit], marker: str) -> list[ChangelogEntry]:
    """Filter and format commits, keeping their order."""
    return [entry for commit in commits if (entry := extract_entry(commit, marker)) is not None]


def render_changelog(entries: Iterable[ChangelogEntry], prefix: str = "") -> str:
    """Render entries as text, one per line."""
    lines = [entry.format(prefix) for entry in entries]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def write_changelog(path: Path, content: str) -> None:
    """Replace the changelog file at ``path`` with ``content``.

    Raises:
        ChangelogError: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise ChangelogError(f"Cannot write changelog {path}: {e}") from e


class ChangelogBuilder:
    """Builds the changelog for ``(since_tag, HEAD]`` of a repository."""

    def __init__(self, repo: GitRepository, config: ChangelogConfig) -> None:
        self.repo = repo
        self.config = config

    def collect(self, since_tag: str | None, until: str = "HEAD") -> list[ChangelogEntry]:
        """Collect entries for the range; the whole history if no tag.

        Raises:
            GitError: If the commit range cannot be read
        """
        commits = self.repo.get_commits(since_tag, until)
        entries = build_entries(commits, self.config.commit_message_key)
        logger.info(
            "%d of %d commits since %s are release-worthy",
            len(entries),
            len(commits),
            since_tag or "the first commit",
        )
        return entries

    def generate(
        self,
        variant: str,
        path: Path,
        since_tag: str | None,
        until: str = "HEAD",
    ) -> ChangelogArtifact:
        """Collect entries and rewrite the changelog file at ``path``.

        An empty range produces an empty file.
        """
        entries = self.collect(since_tag, until)
        write_changelog(path, render_changelog(entries, self.config.entry_prefix))
        return ChangelogArtifact(
            variant=variant,
            path=path,
            entries=tuple(entries),
            since_tag=since_tag,
        )
