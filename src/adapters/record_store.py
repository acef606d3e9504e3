"""HTTP record store adapter.

Implements the core RecordStorePort against a JSON document store reached
through three URL templates (table create, record check, record update).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from adapters.http_transport import HttpTransport
from core.config import RecordStoreUrls
from core.errors import RecordParseError, RecordStoreError

LOGGER = logging.getLogger(__name__)

_JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "*/*",
}


class HttpRecordStore:
    """Record store client that satisfies the RecordStorePort contract."""

    def __init__(self, urls: RecordStoreUrls, transport: HttpTransport) -> None:
        self._urls = urls
        self._transport = transport

    async def create_table_if_absent(self) -> bool:
        """PUT an empty document to the table URL. Returns True on a 2xx answer."""

        response = self._transport.request("PUT", self._urls.create_table, b"{}", _JSON_HEADERS)
        if not response.ok:
            LOGGER.debug("Table create answered %s: %s", response.status, response.body)
        return response.ok

    async def get_record(self, pull_request_id: str) -> dict[str, Any]:
        """Fetch and decode the record for a pull request."""

        response = self._transport.request("GET", self._urls.check_url(pull_request_id), headers=_JSON_HEADERS)
        if not response.ok:
            raise RecordStoreError(
                f"Record store check error {response.status} for pull request ID {pull_request_id}: "
                f"{response.body[:200]}"
            )
        try:
            record = json.loads(response.body)
        except ValueError as e:
            raise RecordParseError(
                f"Record for pull request ID {pull_request_id} is not valid JSON "
                f"(status {response.status}): {response.body[:200]!r}"
            ) from e
        if not isinstance(record, dict):
            raise RecordParseError(
                f"Record for pull request ID {pull_request_id} is not a JSON object: {response.body[:200]!r}"
            )
        return record

    async def put_record(self, pull_request_id: str, fields: Mapping[str, Any]) -> None:
        """Write `fields` to the record of a pull request."""

        data = json.dumps(dict(fields)).encode("utf-8")
        response = self._transport.request("PUT", self._urls.update_url(pull_request_id), data, _JSON_HEADERS)
        if not response.ok:
            raise RecordStoreError(f"Record store update error {response.status}: {response.body}")
