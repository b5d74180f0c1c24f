"""Slack incoming-webhook target."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from build_publish.core.issues import LinkStyle
from build_publish.exceptions import DeliveryError
from build_publish.notify.base import (
    ChangelogPayload,
    RenderedMessage,
    TargetKind,
    mention_line,
    truncate_lines,
)

if TYPE_CHECKING:
    from build_publish.config.models import SlackConfig
    from build_publish.core.issues import IssueLinker

logger = logging.getLogger(__name__)

# Slack truncates message text above this size.
MAX_TEXT_LENGTH = 40_000


def escape_slack(text: str) -> str:
    """Escape the three control characters of Slack mrkdwn."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def format_slack_mention(user: str) -> str:
    """``U012AB3CD`` or ``@U012AB3CD`` -> ``<@U012AB3CD>``; ``<...>`` kept."""
    user = user.strip()
    if user.startswith("<") and user.endswith(">"):
        return user
    return f"<@{user.lstrip('@')}>"


class SlackNotifier:
    kind = TargetKind.SLACK

    def __init__(
        self,
        config: SlackConfig,
        client: httpx.Client,
        linker: IssueLinker | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.linker = linker

    def render(self, payload: ChangelogPayload) -> RenderedMessage:
        body = escape_slack(payload.changelog.strip()) or "_No release-worthy changes_"
        if self.linker is not None:
            body = self.linker.apply(body, LinkStyle.SLACK)

        header = f"*{escape_slack(payload.title)}*"
        mentions = [format_slack_mention(u) for u in self.config.user_mentions if u.strip()]
        footer = mention_line(mentions) if mentions else ""
        # only the body is shortened; header and mentions always go out
        budget = MAX_TEXT_LENGTH - len(header) - 1 - (len(footer) + 1 if footer else 0)
        parts = [header, truncate_lines(body, max(budget, 1))]
        if footer:
            parts.append(footer)
        text = "\n".join(parts)

        document: dict[str, str] = {"text": text}
        if self.config.username:
            document["username"] = self.config.username
        if self.config.icon_url:
            document["icon_url"] = self.config.icon_url
        return RenderedMessage(kind=self.kind, text=text, body=document)

    def deliver(self, message: RenderedMessage) -> None:
        if self.config.webhook_url is None:
            raise DeliveryError("Slack webhook URL is not configured")
        try:
            response = self.client.post(
                self.config.webhook_url.get_secret_value(),
                json=message.body,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # the webhook URL is a credential; keep it out of the message
            raise DeliveryError(f"Slack request failed: {type(e).__name__}") from None
        if response.is_error:
            raise DeliveryError(
                f"Slack rejected the message: HTTP {response.status_code} {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.debug("slack accepted message (%d chars)", len(message.text))
