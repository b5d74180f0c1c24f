"""Pydantic models for the ``[tool.build-publish]`` configuration table."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class _Section(BaseModel):
    model_config = ConfigDict(
        alias_generator=_kebab,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )


DEFAULT_TAG_PATTERN = r"^.+\.(?P<build>\d+)-{variant}$"

ReleaseNamePolicyName = Literal["carry", "build", "explicit"]


class TagConfig(_Section):
    """How release tags are recognised and named."""

    pattern: str = DEFAULT_TAG_PATTERN
    release_name_policy: ReleaseNamePolicyName = "carry"
    release_name: str | None = None

    @field_validator("pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        if "{variant}" not in value:
            raise ValueError("tag pattern must contain a {variant} placeholder")
        try:
            compiled = re.compile(value.replace("{variant}", "variant"))
        except re.error as e:
            raise ValueError(f"invalid tag pattern: {e}") from e
        if "build" not in compiled.groupindex:
            raise ValueError("tag pattern must define a named group 'build'")
        return value

    def pattern_for(self, variant: str) -> re.Pattern[str]:
        """Compile the tag pattern for a single variant."""
        return re.compile(self.pattern.replace("{variant}", re.escape(variant)))


class ChangelogConfig(_Section):
    """Which commits become changelog entries and how they read."""

    commit_message_key: str = "CHANGELOG"
    entry_prefix: str = "• "

    @field_validator("commit_message_key")
    @classmethod
    def _check_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("commit message key must not be empty")
        return value


class IssuesConfig(_Section):
    """Issue tracker cross-linking."""

    url_prefix: str | None = None
    number_pattern: str | None = None

    @field_validator("number_pattern")
    @classmethod
    def _check_pattern(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid issue number pattern: {e}") from e
        return value

    @property
    def enabled(self) -> bool:
        return bool(self.url_prefix and self.number_pattern)


class SlackConfig(_Section):
    """Slack incoming-webhook target."""

    webhook_url: SecretStr | None = None
    user_mentions: list[str] = Field(default_factory=list)
    username: str | None = None
    icon_url: str | None = None


class TelegramConfig(_Section):
    """Telegram bot target."""

    bot_token: SecretStr | None = None
    chat_id: str | None = None
    topic_id: int | None = None
    user_mentions: list[str] = Field(default_factory=list)
    api_url: str = "https://api.telegram.org"

    @field_validator("chat_id", mode="before")
    @classmethod
    def _chat_id_as_str(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class BuildPublishConfig(_Section):
    """Root configuration for build-publish."""

    build_dir: Path = Path("build")
    base_output_file_name: str = "app"
    http_timeout: float = 10.0

    tags: TagConfig = Field(default_factory=TagConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    issues: IssuesConfig = Field(default_factory=IssuesConfig)
    slack: SlackConfig | None = None
    telegram: TelegramConfig | None = None

    def state_path(self, root: Path, variant: str) -> Path:
        """Path of the persisted tag record for ``variant``."""
        return self._build_root(root) / f"tag-build-{variant}.json"

    def changelog_path(self, root: Path, variant: str) -> Path:
        """Path of the changelog artifact for ``variant``."""
        return self._build_root(root) / f"changelog-{variant}.txt"

    def _build_root(self, root: Path) -> Path:
        if self.build_dir.is_absolute():
            return self.build_dir
        return root / self.build_dir
