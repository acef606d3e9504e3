"""Exception hierarchy shared by the core and adapters."""

from __future__ import annotations


class ReviewBellError(Exception):
    """Base class for every error raised by reviewbell."""


class ConfigurationError(ReviewBellError):
    """Invalid or missing input detected before any network activity."""


class MalformedEntry(ConfigurationError):
    """A name list entry that is not a single `source-chat` pair."""

    def __init__(self, entry: str) -> None:
        super().__init__(
            f"Incorrect GitHub-HipChat name list entry {entry!r}. "
            "Use --help for an example of a correct name list."
        )
        self.entry = entry


class TransportError(ReviewBellError):
    """An HTTP call could not be completed (connection failure, timeout)."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        super().__init__(f"Problem with {method} request: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class RecordParseError(ReviewBellError):
    """The record store returned a body that is not a JSON object."""


class RecordStoreError(ReviewBellError):
    """The record store answered a write with a non-success status."""
