"""Core business logic for build-publish.

This module contains the pipeline building blocks:
- Tag records and their per-variant state files
- Build number and release name resolution from git tags
- Changelog generation from marked commits
- Issue reference linking
"""

from __future__ import annotations

from build_publish.core.changelog import (
    ChangelogArtifact,
    ChangelogBuilder,
    ChangelogEntry,
    build_entries,
    render_changelog,
)
from build_publish.core.issues import IssueLinker, LinkStyle, link_issues
from build_publish.core.resolver import (
    BuildSegmentNamePolicy,
    CarryNamePolicy,
    ExplicitNamePolicy,
    ReleaseNamePolicy,
    Resolution,
    TagResolver,
    policy_from_config,
)
from build_publish.core.tags import BuildVariant, TagRecord, TagStore, write_tag_record

__all__ = [
    # Tags
    "BuildVariant",
    "TagRecord",
    "TagStore",
    "write_tag_record",
    # Resolution
    "BuildSegmentNamePolicy",
    "CarryNamePolicy",
    "ExplicitNamePolicy",
    "ReleaseNamePolicy",
    "Resolution",
    "TagResolver",
    "policy_from_config",
    # Changelog
    "ChangelogArtifact",
    "ChangelogBuilder",
    "ChangelogEntry",
    "build_entries",
    "render_changelog",
    # Issues
    "IssueLinker",
    "LinkStyle",
    "link_issues",
]
