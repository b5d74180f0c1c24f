"""Version control access."""

from __future__ import annotations

from build_publish.vcs.git import Commit, GitRepository, Tag

__all__ = ["Commit", "GitRepository", "Tag"]
