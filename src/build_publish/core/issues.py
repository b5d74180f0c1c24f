"""Rewrite issue references as links."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from html import escape


class LinkStyle(StrEnum):
    """Markup dialect of the destination."""

    PLAIN = "plain"
    SLACK = "slack"
    HTML = "html"
    MARKDOWN = "markdown"


def format_link(url: str, label: str, style: LinkStyle) -> str:
    match style:
        case LinkStyle.PLAIN:
            return url
        case LinkStyle.SLACK:
            return f"<{url}|{label}>"
        case LinkStyle.HTML:
            return f'<a href="{escape(url, quote=True)}">{label}</a>'
        case LinkStyle.MARKDOWN:
            return f"[{label}]({url})"
        case _:
            raise AssertionError(f"unexpected link style: {style}")


def link_issues(
    text: str,
    pattern: str | re.Pattern[str],
    url_prefix: str,
    style: LinkStyle = LinkStyle.PLAIN,
) -> str:
    """Replace every issue reference in ``text`` with a link.

    Args:
        text: Text to transform
        pattern: Regex matching a single issue reference (e.g. ``[A-Z]+-\\d+``)
        url_prefix: Prepended to the reference to form the issue URL
        style: Link markup to produce

    Returns:
        Transformed text; ``text`` itself when nothing matches
    """
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _replace(match: re.Match[str]) -> str:
        ref = match.group(0)
        if not ref:
            return ref
        return format_link(f"{url_prefix}{ref}", ref, style)

    return compiled.sub(_replace, text)


@dataclass(frozen=True, slots=True)
class IssueLinker:
    """An issue pattern bound to its URL prefix."""

    pattern: re.Pattern[str]
    url_prefix: str

    @classmethod
    def create(cls, pattern: str, url_prefix: str) -> IssueLinker:
        return cls(pattern=re.compile(pattern), url_prefix=url_prefix)

    def apply(self, text: str, style: LinkStyle = LinkStyle.PLAIN) -> str:
        return link_issues(text, self.pattern, self.url_prefix, style)
