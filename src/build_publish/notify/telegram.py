"""Telegram Bot API target."""

from __future__ import annotations

import logging
from html import escape
from typing import TYPE_CHECKING, Any

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
    from build_publish.config.models import TelegramConfig
    from build_publish.core.issues import IssueLinker

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 4096


def format_telegram_mention(user: str) -> str:
    user = user.strip()
    return user if user.startswith("@") else f"@{user}"


class TelegramNotifier:
    kind = TargetKind.TELEGRAM

    def __init__(
        self,
        config: TelegramConfig,
        client: httpx.Client,
        linker: IssueLinker | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.linker = linker

    def render(self, payload: ChangelogPayload) -> RenderedMessage:
        body = escape(payload.changelog.strip(), quote=False)
        body = body or "<i>No release-worthy changes</i>"
        if self.linker is not None:
            body = self.linker.apply(body, LinkStyle.HTML)

        parts = [f"<b>{escape(payload.title, quote=False)}</b>"]
        mentions = [format_telegram_mention(u) for u in self.config.user_mentions if u.strip()]
        if mentions:
            parts.append(escape(mention_line(mentions), quote=False))
        parts.append(body)
        text = truncate_lines("\n".join(parts), MAX_TEXT_LENGTH)

        document: dict[str, Any] = {
            "chat_id": self.config.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if self.config.topic_id is not None:
            document["message_thread_id"] = self.config.topic_id
        return RenderedMessage(kind=self.kind, text=text, body=document)

    def _endpoint(self) -> str:
        if self.config.bot_token is None:
            raise DeliveryError("Telegram bot token is not configured")
        token = self.config.bot_token.get_secret_value()
        return f"{self.config.api_url.rstrip('/')}/bot{token}/sendMessage"

    def deliver(self, message: RenderedMessage) -> None:
        try:
            response = self.client.post(self._endpoint(), json=message.body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # the URL embeds the bot token; keep it out of the message
            raise DeliveryError(f"Telegram request failed: {type(e).__name__}") from None

        try:
            result = response.json()
        except ValueError:
            result = {}
        if not isinstance(result, dict):
            result = {}
        if response.is_error or not result.get("ok", False):
            description = result.get("description") or response.reason_phrase
            raise DeliveryError(
                f"Telegram rejected the message: HTTP {response.status_code} {description}",
                status_code=response.status_code,
            )
        logger.debug("telegram accepted message (%d chars)", len(message.text))
