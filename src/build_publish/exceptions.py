"""Exception hierarchy for build-publish.

Every error raised by the library derives from BuildPublishError so the
CLI can report a single-cause message and exit cleanly.
"""

from __future__ import annotations


class BuildPublishError(Exception):
    """Base class for all build-publish errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(BuildPublishError):
    """Configuration could not be used."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml was found."""


class ConfigValidationError(ConfigError):
    """Configuration values are invalid."""


class PrerequisiteError(ConfigError):
    """The host environment cannot run the pipeline."""


# =============================================================================
# Pipeline stages
# =============================================================================


class TagStateError(BuildPublishError):
    """A persisted tag record is unreadable.

    Never recovered by falling back to defaults: doing so would renumber
    builds that were already published.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class GitError(BuildPublishError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}: {self.stderr.strip()}"
        return base


class ChangelogError(BuildPublishError):
    """The changelog artifact could not be produced."""


class DeliveryError(BuildPublishError):
    """A notification target rejected or never received a message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
