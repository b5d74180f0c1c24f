"""Per-variant pipeline: resolve -> generate changelog -> send changelog.

Each stage takes the previous stage's artifact as an argument, so stages can
also be run one at a time from persisted artifacts (the state file and the
changelog file). Pipelines of different variants share nothing but the
repository and may run in parallel.
"""

from __future__ import annotations

import contextlib
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from build_publish.core.changelog import ChangelogArtifact, ChangelogBuilder, ChangelogEntry
from build_publish.core.resolver import TagResolver, policy_from_config
from build_publish.core.tags import TagStore
from build_publish.exceptions import BuildPublishError, ChangelogError, GitError, PrerequisiteError
from build_publish.notify.base import ChangelogPayload
from build_publish.notify.dispatcher import DispatchReport, NotificationDispatcher, build_notifiers
from build_publish.vcs.git import GitRepository, git_executable

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from build_publish.config.models import BuildPublishConfig
    from build_publish.core.resolver import ReleaseNamePolicy, Resolution
    from build_publish.core.tags import BuildVariant, TagRecord

logger = logging.getLogger(__name__)


def check_prerequisites(
    config: BuildPublishConfig,
    path: Path,
    *,
    check_targets: bool = True,
) -> GitRepository:
    """Verify the environment before any stage runs.

    Args:
        config: Loaded configuration
        path: Project directory
        check_targets: Also require credentials of configured targets; read-only
            commands that never send anything skip this

    Returns:
        The repository at ``path``

    Raises:
        PrerequisiteError: Describing the first missing prerequisite
    """
    if git_executable() is None:
        raise PrerequisiteError("git is not installed or not on PATH")
    try:
        repo = GitRepository(path)
    except GitError as e:
        raise PrerequisiteError(f"{path} is not inside a git work tree") from e

    if not check_targets:
        return repo
    if config.slack is not None and config.slack.webhook_url is None:
        raise PrerequisiteError(
            "Slack target is configured without a webhook URL "
            "(set slack.webhook_url or BUILD_PUBLISH_SLACK_WEBHOOK_URL)"
        )
    if config.telegram is not None:
        if config.telegram.bot_token is None:
            raise PrerequisiteError(
                "Telegram target is configured without a bot token "
                "(set telegram.bot_token or BUILD_PUBLISH_TELEGRAM_BOT_TOKEN)"
            )
        if not config.telegram.chat_id:
            raise PrerequisiteError("Telegram target is configured without a chat_id")
    return repo


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Artifacts of a complete run for one variant."""

    resolution: Resolution
    changelog: ChangelogArtifact
    report: DispatchReport


class VariantPipeline:
    """Runs the three stages for a single build variant."""

    def __init__(
        self,
        config: BuildPublishConfig,
        repo: GitRepository,
        variant: BuildVariant,
        *,
        client: httpx.Client | None = None,
        policy: ReleaseNamePolicy | None = None,
    ) -> None:
        self.config = config
        self.repo = repo
        self.variant = variant
        self.client = client
        self.store = TagStore(config, repo.path)
        self.resolver = TagResolver(
            repo,
            self.store,
            config.tags,
            policy or policy_from_config(config.tags),
        )
        self.builder = ChangelogBuilder(repo, config.changelog)

    @property
    def changelog_path(self) -> Path:
        return self.config.changelog_path(self.repo.path, self.variant.name)

    # -- stage 1 ------------------------------------------------------------

    def resolve(self) -> Resolution:
        """Resolve the tag record and persist it."""
        return self.resolver.resolve_and_store(self.variant.name)

    def describe_last_increased_tag(self) -> str:
        return self.resolver.describe_last_increased_tag(self.variant.name)

    # -- stage 2 ------------------------------------------------------------

    def generate_changelog(self, record: TagRecord | None) -> ChangelogArtifact:
        """Write the changelog for commits after ``record``'s tag."""
        since = record.last_tag if record is not None else None
        return self.builder.generate(self.variant.name, self.changelog_path, since)

    def load_changelog(self) -> ChangelogArtifact:
        """Re-read a changelog written by an earlier run.

        Raises:
            ChangelogError: If no changelog has been generated for the variant
        """
        path = self.changelog_path
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ChangelogError(
                f"No changelog for {self.variant.name} at {path}; run generate-changelog first"
            ) from e
        except OSError as e:
            raise ChangelogError(f"Cannot read changelog {path}: {e}") from e
        return ChangelogArtifact(
            variant=self.variant.name,
            path=path,
            entries=tuple(
                ChangelogEntry(text=line, sha="") for line in content.splitlines() if line
            ),
            since_tag=None,
        )

    # -- stage 3 ------------------------------------------------------------

    @contextlib.contextmanager
    def _http_client(self) -> Iterator[httpx.Client]:
        if self.client is not None:
            yield self.client
            return
        with httpx.Client(timeout=self.config.http_timeout) as client:
            yield client

    def send_changelog(self, changelog: ChangelogArtifact, record: TagRecord) -> DispatchReport:
        """Deliver the changelog to every configured target."""
        try:
            text = changelog.read_text()
        except OSError as e:
            raise ChangelogError(f"Cannot read changelog {changelog.path}: {e}") from e
        payload = ChangelogPayload(
            changelog=text,
            base_output_file_name=self.config.base_output_file_name,
            release_name=record.name,
            build_number=record.build_number,
        )
        with self._http_client() as client:
            dispatcher = NotificationDispatcher(build_notifiers(self.config, client))
            return dispatcher.dispatch(payload)

    # -- all ----------------------------------------------------------------

    def run(self) -> PipelineResult:
        resolution = self.resolve()
        changelog = self.generate_changelog(resolution.record)
        report = self.send_changelog(changelog, resolution.record)
        return PipelineResult(resolution=resolution, changelog=changelog, report=report)


@dataclass(frozen=True, slots=True)
class VariantOutcome:
    """Result of one variant in a multi-variant run."""

    variant: str
    result: PipelineResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None and self.result.report.ok


def run_variants(
    config: BuildPublishConfig,
    repo: GitRepository,
    variants: Sequence[BuildVariant],
    *,
    max_workers: int | None = None,
    client: httpx.Client | None = None,
    policy: ReleaseNamePolicy | None = None,
) -> list[VariantOutcome]:
    """Run the pipeline for several variants, in parallel.

    A failure in one variant is recorded in its outcome and does not stop
    the others. Outcomes are returned in the order of ``variants``.
    """
    names = [v.name for v in variants]
    if len(set(names)) != len(names):
        raise PrerequisiteError(f"Duplicate build variants: {', '.join(names)}")

    def _run(variant: BuildVariant) -> VariantOutcome:
        pipeline = VariantPipeline(config, repo, variant, client=client, policy=policy)
        try:
            return VariantOutcome(variant=variant.name, result=pipeline.run())
        except BuildPublishError as e:
            logger.error("Pipeline for %s failed: %s", variant.name, e)
            return VariantOutcome(variant=variant.name, error=e)
        except Exception as e:
            logger.exception("Pipeline for %s failed unexpectedly", variant.name)
            return VariantOutcome(variant=variant.name, error=e)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(_run, variants))
