"""HipChat notification adapters.

Two wire formats are supported:
- v2 room notification: JSON body, token in the query string.
- v1 rooms/message: form-encoded body carrying the room id and sender name.
"""

from __future__ import annotations

import json
import logging
from urllib.parse import quote, urlencode

from adapters.http_transport import HttpTransport
from core.config import NotificationConfig

LOGGER = logging.getLogger(__name__)

HIPCHAT_API_ROOT = "https://api.hipchat.com"


class HipChatRoomNotifier:
    """Notifier adapter that posts to the HipChat v2 room notification API."""

    def __init__(self, config: NotificationConfig, transport: HttpTransport, api_root: str = HIPCHAT_API_ROOT) -> None:
        self._config = config
        self._transport = transport
        self._api_root = api_root.rstrip("/")

    def _endpoint(self) -> str:
        room = quote(self._config.room_id, safe="")
        token = urlencode({"auth_token": self._config.auth_token})
        return f"{self._api_root}/v2/room/{room}/notification?{token}"

    async def post_message(self, text: str, message_format: str) -> bool:
        """Send one message. Returns True when HipChat accepted it."""

        payload = {
            "color": self._config.color,
            "message_format": message_format,
            "message": text,
        }
        data = json.dumps(payload).encode("utf-8")
        response = self._transport.request("POST", self._endpoint(), data, {"Content-Type": "application/json"})
        if not response.ok:
            LOGGER.warning("HipChat API error %s: %s", response.status, response.body)
            return False
        LOGGER.info("Message successfully posted to HipChat room_id %s", self._config.room_id)
        return True


class HipChatFormNotifier:
    """Notifier adapter that posts to the HipChat v1 rooms/message API."""

    def __init__(self, config: NotificationConfig, transport: HttpTransport, api_root: str = HIPCHAT_API_ROOT) -> None:
        self._config = config
        self._transport = transport
        self._api_root = api_root.rstrip("/")

    def _endpoint(self) -> str:
        query = urlencode({"format": "json", "auth_token": self._config.auth_token})
        return f"{self._api_root}/v1/rooms/message?{query}"

    async def post_message(self, text: str, message_format: str) -> bool:
        """Send one message. Returns True when HipChat accepted it."""

        form = {
            "room_id": self._config.room_id,
            "color": self._config.color,
            "from": self._config.sender,
            "message_format": message_format,
            "message": text,
        }
        data = urlencode(form).encode("utf-8")
        response = self._transport.request(
            "POST",
            self._endpoint(),
            data,
            {"Content-Type": "application/x-www-form-urlencoded"},
        )
        if not response.ok:
            LOGGER.warning("HipChat API error %s: %s", response.status, response.body)
            return False
        LOGGER.info("Message successfully posted to HipChat room_id %s", self._config.room_id)
        return True


def build_notifier(config: NotificationConfig, transport: HttpTransport):
    """Return the notifier adapter matching `config.api`."""

    if config.api == "v2":
        return HipChatRoomNotifier(config, transport)
    if config.api == "v1":
        return HipChatFormNotifier(config, transport)
    raise ValueError(f"Unsupported HipChat API: {config.api}")
