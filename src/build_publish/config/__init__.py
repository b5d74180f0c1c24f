"""Configuration management for build-publish."""

from __future__ import annotations

from build_publish.config.loader import load_config
from build_publish.config.models import (
    BuildPublishConfig,
    ChangelogConfig,
    IssuesConfig,
    SlackConfig,
    TagConfig,
    TelegramConfig,
)

__all__ = [
    "BuildPublishConfig",
    "ChangelogConfig",
    "IssuesConfig",
    "SlackConfig",
    "TagConfig",
    "TelegramConfig",
    "load_config",
]
