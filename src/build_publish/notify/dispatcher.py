"""Deliver a changelog to every configured target.

Targets are independent: a failing target is logged and reported, and the
remaining targets are still attempted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from build_publish.core.issues import IssueLinker
from build_publish.exceptions import DeliveryError
from build_publish.notify.slack import SlackNotifier
from build_publish.notify.telegram import TelegramNotifier

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from build_publish.config.models import BuildPublishConfig
    from build_publish.notify.base import ChangelogPayload, Notifier, TargetKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Outcome for one target."""

    kind: TargetKind
    ok: bool
    error: str | None = None


@dataclass(slots=True)
class DispatchReport:
    """Outcome for all targets of one dispatch."""

    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def succeeded(self) -> list[DeliveryResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[DeliveryResult]:
        return [r for r in self.results if not r.ok]


def issue_linker_from_config(config: BuildPublishConfig) -> IssueLinker | None:
    pattern, prefix = config.issues.number_pattern, config.issues.url_prefix
    if not pattern or not prefix:
        return None
    return IssueLinker.create(pattern, prefix)


def build_notifiers(config: BuildPublishConfig, client: httpx.Client) -> list[Notifier]:
    """Instantiate a notifier for each configured target, in a fixed order."""
    linker = issue_linker_from_config(config)
    notifiers: list[Notifier] = []
    if config.slack is not None:
        notifiers.append(SlackNotifier(config.slack, client, linker))
    if config.telegram is not None:
        notifiers.append(TelegramNotifier(config.telegram, client, linker))
    return notifiers


class NotificationDispatcher:
    """Renders and delivers a payload to each notifier in turn."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self.notifiers = list(notifiers)

    def dispatch(self, payload: ChangelogPayload) -> DispatchReport:
        report = DispatchReport()
        for notifier in self.notifiers:
            try:
                notifier.deliver(notifier.render(payload))
            except DeliveryError as e:
                logger.error("Delivery to %s failed: %s", notifier.kind, e)
                report.results.append(DeliveryResult(kind=notifier.kind, ok=False, error=str(e)))
            except Exception as e:
                # the message of an unknown error may carry a credential
                error = f"unexpected {type(e).__name__}"
                logger.error("Delivery to %s failed: %s", notifier.kind, error)
                report.results.append(DeliveryResult(kind=notifier.kind, ok=False, error=error))
            else:
                logger.info("Delivered changelog to %s", notifier.kind)
                report.results.append(DeliveryResult(kind=notifier.kind, ok=True))
        return report
