"""Value objects describing where reviewbell talks to and how it picks.

`settings` builds these once from flags, environment and the optional JSON
file; the core and adapters only read them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ID_PLACEHOLDER = "{id}"


@dataclass(frozen=True)
class RecordStoreUrls:
    """URL templates for the pull request record store."""

    create_table: str
    check: str
    update: str

    def check_url(self, pull_request_id: str) -> str:
        return self.check.replace(ID_PLACEHOLDER, pull_request_id)

    def update_url(self, pull_request_id: str) -> str:
        return self.update.replace(ID_PLACEHOLDER, pull_request_id)


@dataclass(frozen=True)
class NotificationConfig:
    """HipChat delivery settings consumed by notifier adapters and the composer."""

    room_id: str
    auth_token: str
    api: str = "v2"
    message_format: str = "text"
    color: str = "purple"
    sender: str = "Pull Request"


@dataclass(frozen=True)
class SelectionConfig:
    """Reviewer selection settings."""

    max_reviewers: int = 2
    seed: Optional[str] = None
