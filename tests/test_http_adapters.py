from __future__ import annotations

import asyncio
import http.client
import io
import json
import logging
import urllib.error
import urllib.request
from typing import Optional
from urllib.parse import parse_qs, urlsplit

import pytest

from adapters.hipchat_notifier import HipChatFormNotifier, HipChatRoomNotifier, build_notifier
from adapters.http_transport import HttpTransport
from adapters.record_store import HttpRecordStore
from core.config import NotificationConfig, RecordStoreUrls
from core.errors import RecordParseError, RecordStoreError, TransportError

URLS = RecordStoreUrls(
    create_table="https://store.example/_table/pullrequests",
    check="https://store.example/pullrequests/{id}",
    update="https://store.example/pullrequests/{id}?audit=x",
)


class DummyResponse:
    def __init__(self, body: str, status: int = 200) -> None:
        self._body = body.encode("utf-8")
        self.status = status

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "DummyResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


class RecordingOpener:
    def __init__(self, body: str = "{}", status: int = 200, error: Optional[Exception] = None) -> None:
        self.requests: list[urllib.request.Request] = []
        self.timeouts: list[float] = []
        self._body = body
        self._status = status
        self._error = error

    def __call__(self, request: urllib.request.Request, timeout: float):
        self.requests.append(request)
        self.timeouts.append(timeout)
        if self._error:
            raise self._error
        if self._status >= 400:
            raise urllib.error.HTTPError(
                request.full_url, self._status, "error", {}, io.BytesIO(self._body.encode("utf-8"))
            )
        return DummyResponse(self._body, self._status)


@pytest.fixture
def opener(monkeypatch: pytest.MonkeyPatch) -> RecordingOpener:
    recording = RecordingOpener()
    monkeypatch.setattr(urllib.request, "urlopen", recording)
    return recording


def _install(monkeypatch: pytest.MonkeyPatch, **kwargs) -> RecordingOpener:
    recording = RecordingOpener(**kwargs)
    monkeypatch.setattr(urllib.request, "urlopen", recording)
    return recording


def test_transport_uses_timeout_and_returns_body(opener: RecordingOpener) -> None:
    response = HttpTransport(timeout=4).request("GET", "https://store.example/x")
    assert response.ok
    assert response.body == "{}"
    assert opener.timeouts == [4]


def test_transport_returns_http_errors_as_responses(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body="nope", status=404)
    response = HttpTransport().request("GET", "https://store.example/x")
    assert response.status == 404
    assert not response.ok
    assert response.body == "nope"


def test_transport_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, error=urllib.error.URLError("connection refused"))
    with pytest.raises(TransportError) as excinfo:
        HttpTransport().request("PUT", "https://store.example/x")
    assert excinfo.value.method == "PUT"
    assert "connection refused" in str(excinfo.value)


def test_record_store_wire_format(opener: RecordingOpener) -> None:
    store = HttpRecordStore(URLS, HttpTransport())

    asyncio.run(store.create_table_if_absent())
    asyncio.run(store.get_record("42"))
    asyncio.run(store.put_record("42", {"assigned": True}))

    create, check, update = opener.requests
    assert (create.get_method(), create.full_url, create.data) == ("PUT", URLS.create_table, b"{}")
    assert (check.get_method(), check.full_url) == ("GET", "https://store.example/pullrequests/42")
    assert check.data is None
    assert update.get_method() == "PUT"
    assert update.full_url == "https://store.example/pullrequests/42?audit=x"
    assert json.loads(update.data) == {"assigned": True}
    assert update.get_header("Content-type") == "application/json"


def test_record_store_parses_assigned_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body='{"~id": "42", "assigned": true}')
    record = asyncio.run(HttpRecordStore(URLS, HttpTransport()).get_record("42"))
    assert record["assigned"] is True


@pytest.mark.parametrize("body", ["", "<html>oops</html>", "[1, 2]"])
def test_record_store_rejects_unparseable_body(monkeypatch: pytest.MonkeyPatch, body: str) -> None:
    _install(monkeypatch, body=body)
    with pytest.raises(RecordParseError):
        asyncio.run(HttpRecordStore(URLS, HttpTransport()).get_record("42"))


def test_record_store_update_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body="boom", status=500)
    with pytest.raises(RecordStoreError):
        asyncio.run(HttpRecordStore(URLS, HttpTransport()).put_record("42", {"assigned": True}))


def test_table_create_error_status_returns_false(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body="exists", status=409)
    assert asyncio.run(HttpRecordStore(URLS, HttpTransport()).create_table_if_absent()) is False


def _notification(api: str = "v2") -> NotificationConfig:
    return NotificationConfig(room_id="1234", auth_token="tok", api=api, color="purple", sender="CI")


def test_v2_notifier_posts_json(opener: RecordingOpener) -> None:
    notifier = HipChatRoomNotifier(_notification(), HttpTransport())

    assert asyncio.run(notifier.post_message("hello", "text")) is True

    (request,) = opener.requests
    parts = urlsplit(request.full_url)
    assert parts.path == "/v2/room/1234/notification"
    assert parse_qs(parts.query) == {"auth_token": ["tok"]}
    assert json.loads(request.data) == {"color": "purple", "message_format": "text", "message": "hello"}


def test_v1_notifier_posts_form(opener: RecordingOpener) -> None:
    notifier = HipChatFormNotifier(_notification("v1"), HttpTransport())

    asyncio.run(notifier.post_message("<b>hi</b>", "html"))

    (request,) = opener.requests
    parts = urlsplit(request.full_url)
    assert parts.path == "/v1/rooms/message"
    assert parse_qs(parts.query) == {"format": ["json"], "auth_token": ["tok"]}
    form = parse_qs(request.data.decode("utf-8"))
    assert form == {
        "room_id": ["1234"],
        "color": ["purple"],
        "from": ["CI"],
        "message_format": ["html"],
        "message": ["<b>hi</b>"],
    }


def test_notifier_reports_rejected_message(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body='{"error": "unauthorized"}', status=401)
    notifier = HipChatRoomNotifier(_notification(), HttpTransport())
    assert asyncio.run(notifier.post_message("hello", "text")) is False


def test_build_notifier_selects_wire_format() -> None:
    transport = HttpTransport()
    assert isinstance(build_notifier(_notification("v2"), transport), HipChatRoomNotifier)
    assert isinstance(build_notifier(_notification("v1"), transport), HipChatFormNotifier)
    with pytest.raises(ValueError):
        build_notifier(_notification("v9"), transport)


def test_record_store_check_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, body='{"reason": "internal"}', status=500)
    with pytest.raises(RecordStoreError, match="500"):
        asyncio.run(HttpRecordStore(URLS, HttpTransport()).get_record("42"))


def test_transport_wraps_malformed_url() -> None:
    with pytest.raises(TransportError, match="unknown url type"):
        HttpTransport().request("PUT", "store.example/_table")


def test_transport_wraps_broken_response(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, error=http.client.BadStatusLine("garbage"))
    with pytest.raises(TransportError, match="BadStatusLine"):
        HttpTransport().request("GET", "https://store.example/x")


def test_debug_log_omits_query_string(opener: RecordingOpener, caplog: pytest.LogCaptureFixture) -> None:
    config = NotificationConfig(room_id="1234", auth_token="s3cr3t+/=")
    notifier = HipChatRoomNotifier(config, HttpTransport())

    with caplog.at_level(logging.DEBUG, logger="adapters.http_transport"):
        asyncio.run(notifier.post_message("hello", "text"))

    assert "https://api.hipchat.com/v2/room/1234/notification" in caplog.text
    assert "auth_token" not in caplog.text
    assert "s3cr3t" not in caplog.text
