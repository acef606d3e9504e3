"""Names, selections and messages passed between reviewbell components.

Everything here is immutable and built once per run.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from urllib.parse import urlsplit

FORMAT_TEXT = "text"
FORMAT_HTML = "html"


@dataclass(frozen=True)
class NameMapping:
    """Read-only lookup of source (GitHub) username -> chat (HipChat) username."""

    names: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", MappingProxyType(dict(self.names)))

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, source_name: object) -> bool:
        return source_name in self.names

    def source_names(self) -> list[str]:
        return list(self.names)

    def chat_name(self, source_name: str) -> str:
        return self.names[source_name]


@dataclass(frozen=True)
class ReviewerSelection:
    """Chat usernames picked for one pull request, in selection order."""

    reviewers: Tuple[str, ...]
    candidates: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.reviewers)

    @property
    def primary(self) -> Optional[str]:
        return self.reviewers[0] if self.reviewers else None

    @property
    def secondary(self) -> Optional[str]:
        # A single pick is both first and last; it only counts once.
        if len(self.reviewers) < 2:
            return None
        return self.reviewers[-1]


@dataclass(frozen=True)
class ChatMessage:
    """One notification to post, with the HipChat message_format to use."""

    text: str
    format: str = FORMAT_TEXT


class AssignmentOutcome(str, enum.Enum):
    """Terminal state reached by one assignment run."""

    ALREADY_ASSIGNED = "already_assigned"
    NO_CANDIDATES = "no_candidates"
    RECORD_UPDATED = "record_updated"


def pull_request_id_from_url(pull_request_url: str) -> str:
    """Return the trailing path segment of a pull request URL.

    `https://github.com/org/repo/pull/42` and `.../pull/42/` both yield "42".
    """

    path = urlsplit(pull_request_url).path or pull_request_url
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        raise ValueError(f"Cannot derive a pull request id from {pull_request_url!r}")
    return segments[-1]
