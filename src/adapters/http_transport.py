"""Minimal HTTP client shared by the record store and HipChat adapters.

One function handles both http and https URLs; the scheme in the URL decides.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlsplit, urlunsplit

from core.errors import TransportError

LOGGER = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class HttpResponse:
    """Status and decoded body of a completed request."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpTransport:
    """Sends requests with a bounded timeout and collects the full body."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        """Perform one request.

        HTTP error statuses still count as a completed call and are returned;
        connection problems, timeouts, malformed URLs and broken responses
        raise TransportError.
        """

        LOGGER.debug("%s %s", method, _without_query(url))
        try:
            request = urllib.request.Request(url, data=body, method=method)
            for name, value in (headers or {}).items():
                request.add_header(name, value)
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                payload = response.read().decode("utf-8", errors="replace")
                return HttpResponse(status=response.status, body=payload)
        except urllib.error.HTTPError as e:
            payload = e.read().decode("utf-8", errors="replace")
            return HttpResponse(status=e.code, body=payload)
        except (urllib.error.URLError, OSError) as e:
            reason = getattr(e, "reason", e)
            raise TransportError(method, url, str(reason)) from e
        except (http.client.HTTPException, ValueError) as e:
            # Malformed URLs and broken responses (bad status line, short body).
            raise TransportError(method, url, f"{type(e).__name__}: {e}") from e


def _without_query(url: str) -> str:
    # Query strings carry auth tokens.
    return urlunsplit(urlsplit(url)._replace(query="", fragment=""))
