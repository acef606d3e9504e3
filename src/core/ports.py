"""Contracts the assignment pipeline needs from the outside world.

The coordinator only awaits these two protocols: one for the per pull request
record store and one for posting chat messages. HTTP adapters and test fakes
both satisfy them structurally.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class RecordStorePort(Protocol):
    """Record store operations required by the assignment pipeline."""

    async def create_table_if_absent(self) -> bool:
        ...

    async def get_record(self, pull_request_id: str) -> dict[str, Any]:
        ...

    async def put_record(self, pull_request_id: str, fields: Mapping[str, Any]) -> None:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the assignment pipeline."""

    async def post_message(self, text: str, message_format: str) -> bool:
        ...
