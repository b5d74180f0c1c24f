"""Notification target interface and shared message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

ELLIPSIS = "…"


class TargetKind(StrEnum):
    """Supported messaging targets."""

    SLACK = "slack"
    TELEGRAM = "telegram"


@dataclass(frozen=True, slots=True)
class ChangelogPayload:
    """What a notification describes: one build of one variant."""

    changelog: str
    base_output_file_name: str
    release_name: str
    build_number: int

    @property
    def title(self) -> str:
        return f"{self.base_output_file_name} {self.release_name}"


@dataclass(frozen=True, slots=True)
class RenderedMessage:
    """A message ready for delivery.

    ``body`` is the request document without credentials; each notifier
    adds those at delivery time.
    """

    kind: TargetKind
    text: str
    body: dict[str, Any] = field(default_factory=dict)


class Notifier(Protocol):
    """Capability interface implemented by every target."""

    kind: TargetKind

    def render(self, payload: ChangelogPayload) -> RenderedMessage: ...

    def deliver(self, message: RenderedMessage) -> None:
        """Send ``message``.

        Raises:
            DeliveryError: If the target is unreachable or rejects the message
        """
        ...


def truncate_lines(text: str, limit: int) -> str:
    """Drop trailing lines until ``text`` fits in ``limit`` characters.

    Cuts happen at line boundaries so link markup is never split.
    """
    if len(text) <= limit:
        return text
    kept: list[str] = []
    size = len(ELLIPSIS)
    for line in text.split("\n"):
        if size + len(line) + 1 > limit:
            break
        kept.append(line)
        size += len(line) + 1
    if not kept:
        return text[: limit - len(ELLIPSIS)] + ELLIPSIS
    return "\n".join(kept) + "\n" + ELLIPSIS


def mention_line(mentions: list[str]) -> str:
    return " ".join(mentions)
