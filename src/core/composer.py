"""Notification text for a reviewer selection (core domain).

Two modes are supported:
- "text": plain text only. One reviewer gets a single combined message, two
  reviewers get an announcement followed by the review request.
- "html": the announcement is rendered with a clickable link and always sent
  on its own, followed by the plain-text request. Clients that cannot render
  html still get a readable request message.
"""

from __future__ import annotations

import html

from core.models import FORMAT_HTML, FORMAT_TEXT, ChatMessage, ReviewerSelection

COMPOSER_MODES = (FORMAT_TEXT, FORMAT_HTML)


class MessageComposer:
    """Builds the chat messages announcing a pull request to its reviewers."""

    def __init__(self, mode: str = FORMAT_TEXT) -> None:
        if mode not in COMPOSER_MODES:
            raise ValueError(f"Unsupported message mode: {mode}")
        self._mode = mode

    @property
    def mode(self) -> str:
        return self._mode

    def compose(self, selection: ReviewerSelection, pull_request_url: str) -> list[ChatMessage]:
        """Return the messages to send, in send order. Empty when nobody was picked."""

        primary = selection.primary
        if primary is None:
            return []

        request = _review_request(primary, selection.secondary)
        if self._mode == FORMAT_HTML:
            return [
                ChatMessage(_html_announcement(pull_request_url), FORMAT_HTML),
                ChatMessage(request, FORMAT_TEXT),
            ]

        announcement = _text_announcement(pull_request_url)
        if selection.secondary is None:
            return [ChatMessage(f"{announcement}\n{request}", FORMAT_TEXT)]
        return [
            ChatMessage(announcement, FORMAT_TEXT),
            ChatMessage(request, FORMAT_TEXT),
        ]


def _text_announcement(pull_request_url: str) -> str:
    return f"A new pull request is created at {pull_request_url}"


def _html_announcement(pull_request_url: str) -> str:
    safe_link = html.escape(pull_request_url)
    return f"A new pull request is created at <a href=\"{safe_link}\">{safe_link}</a>"


def _review_request(primary: str, secondary: "str | None") -> str:
    request = f"@{primary} could you please review this request?"
    if secondary is None:
        return f"{request} Thanks!"
    return f"{request} If not, @{secondary} could you do that? Thanks!"
