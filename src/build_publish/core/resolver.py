"""Resolve the next build number and release name from git tags.

A tag belongs to a variant when it matches the configured tag pattern for
that variant, e.g. ``v1.4.27-release`` for variant ``release`` with the
default pattern. The number captured by the ``build`` group is the build
counter of that release.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from build_publish.core.tags import TagRecord, default_release_name, write_tag_record
from build_publish.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from build_publish.config.models import TagConfig
    from build_publish.core.tags import TagStore
    from build_publish.vcs.git import GitRepository, Tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VariantTag:
    """A git tag parsed for a particular variant."""

    tag: Tag
    release_name: str
    build_number: int
    build_span: tuple[int, int]

    @property
    def name(self) -> str:
        return self.tag.name


# =============================================================================
# Release name policies
# =============================================================================


class ReleaseNamePolicy(Protocol):
    """Chooses the release name for a newly resolved build."""

    def next_name(self, variant: str, last: VariantTag | None, build_number: int) -> str: ...


class CarryNamePolicy:
    """Keep the release name of the last tag."""

    def next_name(self, variant: str, last: VariantTag | None, build_number: int) -> str:
        if last is None:
            return default_release_name(variant)
        return last.release_name


class BuildSegmentNamePolicy:
    """Replace the build segment of the last tag name with the new number.

    ``v1.4.27-release`` resolved to build 28 becomes ``v1.4.28-release``.
    """

    def next_name(self, variant: str, last: VariantTag | None, build_number: int) -> str:
        if last is None:
            return default_release_name(variant)
        start, end = last.build_span
        return f"{last.tag.name[:start]}{build_number}{last.tag.name[end:]}"


class ExplicitNamePolicy:
    """Use a name supplied from outside."""

    def __init__(self, name: str) -> None:
        if not name.strip():
            raise ConfigValidationError("Explicit release name must not be empty")
        self.name = name

    def next_name(self, variant: str, last: VariantTag | None, build_number: int) -> str:
        return self.name


def policy_from_config(config: TagConfig, release_name: str | None = None) -> ReleaseNamePolicy:
    """Build the configured policy; ``release_name`` forces ``explicit``."""
    if release_name:
        return ExplicitNamePolicy(release_name)
    match config.release_name_policy:
        case "carry":
            return CarryNamePolicy()
        case "build":
            return BuildSegmentNamePolicy()
        case "explicit":
            if not config.release_name:
                raise ConfigValidationError(
                    "release_name_policy = 'explicit' requires tags.release_name"
                )
            return ExplicitNamePolicy(config.release_name)
        case _:
            raise AssertionError(f"unexpected policy: {config.release_name_policy}")


# =============================================================================
# Resolver
# =============================================================================


@dataclass(frozen=True, slots=True)
class Resolution:
    """Output of the resolve stage."""

    variant: str
    record: TagRecord
    last_tag: VariantTag | None

    @property
    def is_first_release(self) -> bool:
        return self.last_tag is None


def parse_variant_tag(tag: Tag, pattern: re.Pattern[str]) -> VariantTag | None:
    """Parse ``tag`` against a variant pattern; None if it does not belong."""
    match = pattern.fullmatch(tag.name)
    if match is None:
        return None
    try:
        build_number = int(match.group("build"))
    except (TypeError, ValueError):
        return None
    return VariantTag(
        tag=tag,
        release_name=tag.name,
        build_number=build_number,
        build_span=match.span("build"),
    )


class TagResolver:
    """Computes the TagRecord of the current run for one variant."""

    def __init__(
        self,
        repo: GitRepository,
        store: TagStore,
        config: TagConfig,
        policy: ReleaseNamePolicy | None = None,
    ) -> None:
        self.repo = repo
        self.store = store
        self.config = config
        self.policy = policy or policy_from_config(config)

    def find_last_tag(self, variant: str) -> VariantTag | None:
        """Most recent tag of ``variant`` by creation order."""
        pattern = self.config.pattern_for(variant)
        candidates = [
            parsed
            for tag in self.repo.list_tags()
            if (parsed := parse_variant_tag(tag, pattern)) is not None
        ]
        if not candidates:
            logger.debug("no tags found for variant %s", variant)
            return None

        # list_tags() is oldest first; stable sort keeps that order on ties
        candidates.sort(key=lambda c: (c.tag.created, c.build_number))
        latest = candidates[-1]

        rivals = [
            c
            for c in candidates[:-1]
            if c.tag.commit_sha == latest.tag.commit_sha or c.tag.created == latest.tag.created
        ]
        if rivals:
            logger.warning(
                "Ambiguous tags for variant %s: %s; using %s",
                variant,
                ", ".join(c.name for c in rivals),
                latest.name,
            )
        return latest

    def resolve(self, variant: str) -> Resolution:
        """Compute the record for ``variant`` without writing it.

        Raises:
            GitError: If the tag history cannot be read
            TagStateError: If the existing state file is corrupt
        """
        previous = self.store.load(variant)
        last = self.find_last_tag(variant)

        build_number = last.build_number + 1 if last else 1
        if previous is not None and previous.build_number > build_number:
            logger.warning(
                "State for %s is ahead of git tags (build %d > %d); keeping build %d",
                variant,
                previous.build_number,
                build_number,
                previous.build_number,
            )
            build_number = previous.build_number

        record = TagRecord(
            name=self.policy.next_name(variant, last, build_number),
            build_number=build_number,
            last_tag=last.name if last else None,
        )
        logger.info("resolved %s: %s", variant, record.describe())
        return Resolution(variant=variant, record=record, last_tag=last)

    def resolve_and_store(self, variant: str) -> Resolution:
        """Resolve and persist; the write is the final step."""
        resolution = self.resolve(variant)
        write_tag_record(self.store.path_for(variant), resolution.record)
        return resolution

    def describe_last_increased_tag(self, variant: str) -> str:
        """Human-readable form of the variant's current record.

        Reads the state file only; nothing is computed or written.
        """
        record = self.store.load(variant)
        if record is None:
            default = TagRecord.default(variant)
            return f"{variant}: {default.describe()} [no state, defaults]"
        return f"{variant}: {record.describe()}"
