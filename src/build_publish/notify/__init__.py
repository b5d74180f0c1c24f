"""Changelog notifications for chat targets."""

from __future__ import annotations

from build_publish.notify.base import ChangelogPayload, Notifier, RenderedMessage, TargetKind
from build_publish.notify.dispatcher import (
    DeliveryResult,
    DispatchReport,
    NotificationDispatcher,
    build_notifiers,
)
from build_publish.notify.slack import SlackNotifier
from build_publish.notify.telegram import TelegramNotifier

__all__ = [
    "ChangelogPayload",
    "DeliveryResult",
    "DispatchReport",
    "NotificationDispatcher",
    "Notifier",
    "RenderedMessage",
    "SlackNotifier",
    "TargetKind",
    "TelegramNotifier",
    "build_notifiers",
]
